import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List

from docform.config import load_settings
from docform.forms import TemplateUploadSession
from docform.utils.catalog_utils import FileCatalogSource
from docform.utils.doc_filler import fill_word_document, preview_fill_values
from docform.utils.template_utils import TemplateValidationError

logger = logging.getLogger("docform")


def load_layout(layout_path: str) -> List[Dict]:
    """Reads a step layout: a list of {"title": ..., "fields": [full_tag_name, ...]}."""
    with open(layout_path, "r", encoding="utf-8") as f:
        layout = json.load(f)
    if not isinstance(layout, list):
        raise ValueError(f"Expected a list of steps in {layout_path}")
    return layout


def arrange_steps(session: TemplateUploadSession, layout: List[Dict]) -> None:
    """Lays the session's pool out into steps, one move per layout entry."""
    if not layout:
        pool_tags = [p.full_tag_name for p in session.state.pool]
        layout = [{"fields": pool_tags}] if pool_tags else []

    for entry in layout:
        pool_tags = {p.full_tag_name for p in session.state.pool}
        tags = [tag for tag in entry.get("fields", []) if tag in pool_tags]
        missing = [tag for tag in entry.get("fields", []) if tag not in pool_tags]
        if missing:
            logger.warning(f"Layout fields not in the pool: {', '.join(missing)}")
        if not tags:
            continue

        for tag in tags:
            session.dispatch({"type": "toggle_select", "tag": tag})
        session.dispatch({"type": "move_right"})
        if entry.get("title"):
            session.dispatch({
                "type": "set_step_title",
                "step_index": len(session.state.steps) - 1,
                "title": entry["title"],
            })


def main():
    parser = argparse.ArgumentParser(description="Extract placeholders from a Word template and compile a mobile form schema.")
    parser.add_argument("--template", required=True, help="Path to the Word template (.docx)")
    parser.add_argument("--placeholders", help="Placeholder catalog (.json or .xlsx)")
    parser.add_argument("--field-types", help="Field-type catalog (.json or .xlsx)")
    parser.add_argument("--placeholder-types", help="Placeholder-category catalog (.json or .xlsx)")
    parser.add_argument("--steps", help="JSON step layout; defaults to one step holding every field")
    parser.add_argument("--document-id", default="", help="Document id written into the schema")
    parser.add_argument("--preview", action="store_true", help="Fill fields with example values")
    parser.add_argument("--output", help="Path to save the schema JSON (stdout when omitted)")
    parser.add_argument("--preview-docx", help="Path to save the template filled with the preview values")
    parser.add_argument("--watermark", help="Text written over the {Watermark} token before extraction")
    parser.add_argument("--env-file", help="Optional .env file with DOCFORM_* settings")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # --- Input Validation ---
    if not os.path.exists(args.template):
        logger.error(f"Template file not found at {args.template}")
        return 1

    settings = load_settings(args.env_file)
    catalog_source = FileCatalogSource(
        placeholders_path=args.placeholders,
        placeholder_types_path=args.placeholder_types,
        field_types_path=args.field_types,
    )
    session = TemplateUploadSession(settings, catalog_source)

    # --- Processing Steps ---
    try:
        # 1. Extract, normalise and classify
        template_path = Path(args.template)
        result = asyncio.run(session.process_upload(
            lambda: asyncio.to_thread(template_path.read_bytes), watermark=args.watermark
        ))
        if result.validation_error:
            logger.error(f"Template rejected: {result.validation_error}")
            return 1
        for name, error in result.catalog_errors.items():
            logger.warning(f"Continuing without the {name} catalog: {error}")
        if result.failed_parts:
            logger.warning(f"Unreadable parts skipped: {', '.join(result.failed_parts)}")

        # 2. Arrange steps
        layout = load_layout(args.steps) if args.steps else []
        arrange_steps(session, layout)

        # 3. Compile
        schema = session.compile(args.document_id, preview=args.preview)
        wire = json.dumps(schema.to_wire(), indent=2, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(wire, encoding="utf-8")
            logger.info(f"Schema written to {args.output}")
        else:
            print(wire)

        # 4. Optional preview document
        if args.preview_docx:
            preview_schema = session.compile(args.document_id, preview=True)
            fill_word_document(session.document, preview_fill_values(preview_schema), args.preview_docx)

    except TemplateValidationError as e:
        logger.error(f"Template rejected: {e}")
        return 1
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Could not load input: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
