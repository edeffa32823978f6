"""
Integration tests for the command-line entry point (main.py).
"""

import json
import sys

import pytest
from docx import Document

import main

from test_helpers import DocxTemplateBuilder, build_package, wordml, write_json


def run_cli(monkeypatch, *args):
    monkeypatch.setattr(sys, "argv", ["main.py", *args])
    return main.main()


@pytest.mark.integration
class TestMain:
    """Test the CLI end to end with generated templates and catalogs."""

    @pytest.fixture
    def catalogs(self, tmp_path, placeholder_catalog, field_types, placeholder_types):
        return write_json(tmp_path / "catalogs.json", {
            "Placeholders": [p.model_dump() for p in placeholder_catalog],
            "FieldTypes": [t.model_dump() for t in field_types],
            "PlaceholderTypes": [t.model_dump() for t in placeholder_types],
        })

    @pytest.fixture
    def env_file(self, tmp_path, clean_env):
        env = tmp_path / ".env"
        env.write_text(
            "DOCFORM_GENERIC_DATA_TYPE_ID=pt-generic\nDOCFORM_MASTER_FOLDER_TYPE_ID=pt-master\n",
            encoding="utf-8",
        )
        return env

    def test_default_layout_is_one_step(self, monkeypatch, tmp_path, sample_template, catalogs, env_file):
        output = tmp_path / "schema.json"
        code = run_cli(
            monkeypatch,
            "--template", str(sample_template),
            "--placeholders", str(catalogs),
            "--field-types", str(catalogs),
            "--placeholder-types", str(catalogs),
            "--document-id", "doc-9",
            "--env-file", str(env_file),
            "--output", str(output),
        )

        assert code == 0
        wire = json.loads(output.read_text(encoding="utf-8"))
        assert wire["documentId"] == "doc-9"
        assert [s["title"] for s in wire["data"]] == ["Step 1"]
        assert [f["key"] for f in wire["data"][0]["fields"]] == ["SignDate", "PageLabel", "Company"]

    def test_layout_file_and_preview_docx(self, monkeypatch, tmp_path, sample_template, catalogs, env_file):
        layout = write_json(tmp_path / "layout.json", [
            {"title": "Company", "fields": ["Company.Name", "Company.Logo"]},
            {"title": "Sign-off", "fields": ["SignDate", "NotInTemplate"]},
        ])
        output = tmp_path / "schema.json"
        preview_docx = tmp_path / "preview.docx"

        code = run_cli(
            monkeypatch,
            "--template", str(sample_template),
            "--placeholders", str(catalogs),
            "--field-types", str(catalogs),
            "--steps", str(layout),
            "--preview",
            "--env-file", str(env_file),
            "--output", str(output),
            "--preview-docx", str(preview_docx),
        )

        assert code == 0
        wire = json.loads(output.read_text(encoding="utf-8"))
        assert [s["title"] for s in wire["data"]] == ["Company", "Sign-off"]
        assert wire["data"][0]["fields"][-1]["type"] == "Repeatable"
        assert len(wire["data"][0]["fields"][-1]["value"]) == 2

        body = [p.text for p in Document(str(preview_docx)).paragraphs]
        assert "Supplier: Example Text" in body

    def test_watermark_reaches_the_preview_document(self, monkeypatch, tmp_path, clean_env):
        env = tmp_path / "watermark.env"
        env.write_text("DOCFORM_WATERMARK_PART=word/document.xml\n", encoding="utf-8")
        template = DocxTemplateBuilder().paragraph("{Watermark}").paragraph("Total: {Total}").save(
            tmp_path / "template.docx"
        )
        output = tmp_path / "schema.json"
        preview_docx = tmp_path / "preview.docx"

        code = run_cli(
            monkeypatch,
            "--template", str(template),
            "--watermark", "DRAFT",
            "--env-file", str(env),
            "--output", str(output),
            "--preview-docx", str(preview_docx),
        )

        assert code == 0
        wire = json.loads(output.read_text(encoding="utf-8"))
        assert [f["key"] for f in wire["data"][0]["fields"]] == ["Total"]
        body = [p.text for p in Document(str(preview_docx)).paragraphs]
        assert "DRAFT" in body

    def test_watermarked_template_failing_validation(self, monkeypatch, tmp_path, clean_env):
        env = tmp_path / "watermark.env"
        env.write_text("DOCFORM_WATERMARK_PART=word/document.xml\n", encoding="utf-8")
        bare = tmp_path / "bare.docx"
        bare.write_bytes(build_package({"word/document.xml": wordml(["{Watermark} {A}"])}))

        code = run_cli(monkeypatch, "--template", str(bare), "--watermark", "DRAFT", "--env-file", str(env))
        assert code == 1

    def test_missing_template(self, monkeypatch, tmp_path):
        assert run_cli(monkeypatch, "--template", str(tmp_path / "missing.docx")) == 1

    def test_invalid_template(self, monkeypatch, tmp_path, clean_env):
        bad = tmp_path / "bad.docx"
        bad.write_bytes(b"not a package")
        assert run_cli(monkeypatch, "--template", str(bad), "--env-file", str(tmp_path / "none.env")) == 1
