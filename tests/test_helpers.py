"""
Testing helpers and utilities for the form builder tests.

This module provides builders for Word templates (real ones through
python-docx and hand-assembled packages for malformed cases), placeholder
factories, and a driver for running organizer action sequences.
"""

import io
import json
import zipfile
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from docx import Document
from openpyxl import Workbook

from docform.forms.models import Placeholder, Step
from docform.forms.organizer import OrganizerState, apply_action, create_state

WORD_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

# Catalog ids shared by fixtures and tests
GENERIC_ID = "pt-generic"
MASTER_ID = "pt-master"
INPUT_ID = "pt-input"

TEXT_ID = "ft-text"
NUMBER_ID = "ft-number"
DATE_ID = "ft-date"
IMAGE_ID = "ft-image"
DROPDOWN_ID = "ft-dropdown"


def make_placeholder(tag: str, placeholder_type_id: str = "", field_type_id: str = "", **kwargs) -> Placeholder:
    """
    Create a Placeholder with sensible defaults.

    Args:
        tag: full_tag_name of the placeholder
        placeholder_type_id: Category id
        field_type_id: Value-type id
        **kwargs: Any other Placeholder field

    Returns:
        Placeholder: The record
    """
    kwargs.setdefault("name", tag.split(".")[-1])
    return Placeholder(
        full_tag_name=tag,
        placeholder_type_id=placeholder_type_id,
        field_type_id=field_type_id,
        **kwargs,
    )


def make_step(title: str, tags: Sequence[str], **field_kwargs) -> Step:
    """Create a Step whose fields are untyped placeholders for the given tags."""
    fields = [make_placeholder(tag, order=index, **field_kwargs) for index, tag in enumerate(tags)]
    return Step(title=title, fields=fields, is_group=any("." in tag for tag in tags))


class DocxTemplateBuilder:
    """Builds real .docx templates with python-docx."""

    def __init__(self):
        self.doc = Document()

    def paragraph(self, text: str) -> "DocxTemplateBuilder":
        self.doc.add_paragraph(text)
        return self

    def split_paragraph(self, *runs: str) -> "DocxTemplateBuilder":
        """Add one paragraph whose text is spread over several runs."""
        paragraph = self.doc.add_paragraph()
        for text in runs:
            paragraph.add_run(text)
        return self

    def table(self, *cells: str) -> "DocxTemplateBuilder":
        table = self.doc.add_table(rows=1, cols=len(cells))
        for index, text in enumerate(cells):
            table.cell(0, index).text = text
        return self

    def header(self, text: str) -> "DocxTemplateBuilder":
        self.doc.sections[0].header.paragraphs[0].text = text
        return self

    def footer(self, text: str) -> "DocxTemplateBuilder":
        self.doc.sections[0].footer.paragraphs[0].text = text
        return self

    def save(self, path: Path) -> Path:
        self.doc.save(str(path))
        return path

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        self.doc.save(buffer)
        return buffer.getvalue()


def wordml(*paragraphs: Iterable[str], root: str = "document") -> str:
    """
    Build a minimal WordprocessingML part.

    Each paragraph is a sequence of run texts.
    """
    body = "".join(
        "<w:p>" + "".join(f"<w:r><w:t>{text}</w:t></w:r>" for text in runs) + "</w:p>"
        for runs in paragraphs
    )
    if root == "document":
        return f'<w:document xmlns:w="{WORD_NS}"><w:body>{body}</w:body></w:document>'
    return f'<w:{root} xmlns:w="{WORD_NS}">{body}</w:{root}>'


def build_package(parts: Dict[str, str]) -> bytes:
    """Zip raw part texts into a package, without any other Word plumbing."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in parts.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def write_json(path: Path, data: Any) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def write_workbook(path: Path, sheets: Dict[str, List[List[Any]]]) -> Path:
    """
    Write an Excel workbook with one sheet per entry; the first row is the header.
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(str(path))
    return path


class OrganizerDriver:
    """Runs action sequences against an organizer state, keeping every snapshot."""

    def __init__(self, placeholders: Iterable[Placeholder]):
        self.state: OrganizerState = create_state(placeholders)
        self.snapshots: List[OrganizerState] = [self.state]

    def run(self, *actions: Dict[str, Any]) -> OrganizerState:
        for action in actions:
            self.state = apply_action(self.state, action)
            self.snapshots.append(self.state)
        return self.state

    def pool_tags(self) -> List[str]:
        return [p.full_tag_name for p in self.state.pool]

    def step_tags(self, index: int = 0) -> List[str]:
        return [f.full_tag_name for f in self.state.steps[index].fields]

    def field(self, tag: str) -> Optional[Placeholder]:
        location = self.state.find_field(tag)
        if location is None:
            return None
        step_index, field_index = location
        return self.state.steps[step_index].fields[field_index]
