import io
import re
import logging
import zipfile
from typing import Any, Dict, Iterable, List, Optional, Tuple

from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from docform.config import DEFAULT_WATERMARK_PART
from docform.forms.models import CompiledSchema, FormField
from docform.utils.template_utils import TemplateSource

logger = logging.getLogger(__name__)

WATERMARK_TOKEN = "{Watermark}"


def _open_source(source: TemplateSource):
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(source)
    return source


def validate_template(source: TemplateSource) -> Tuple[bool, Optional[str]]:
    """
    Checks that a template opens as a Word document.

    Returns:
        Tuple[bool, Optional[str]]: (success, error message)
    """
    try:
        Document(_open_source(source))
        return True, None
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        logger.warning(f"Template failed validation: {e}")
        return False, f"Invalid document format: {e}"


def apply_watermark(source: TemplateSource, watermark: str, part: str = DEFAULT_WATERMARK_PART) -> bytes:
    """
    Writes a watermark into a template by replacing the {Watermark} token of
    one package part. Every other part is copied unchanged.

    Returns:
        bytes: The rewritten document, or the original bytes when the part is missing
    """
    source = _open_source(source)
    output = io.BytesIO()
    with zipfile.ZipFile(source) as archive:
        if part not in archive.namelist():
            logger.warning(f"Watermark part '{part}' not found; document left unchanged")
            if hasattr(source, "seek"):
                source.seek(0)
                return source.read()
            with open(source, "rb") as f:
                return f.read()

        with zipfile.ZipFile(output, "w", zipfile.ZIP_DEFLATED) as rewritten:
            for item in archive.infolist():
                data = archive.read(item.filename)
                if item.filename == part:
                    text = data.decode("utf-8")
                    if WATERMARK_TOKEN not in text:
                        logger.warning(f"No {WATERMARK_TOKEN} token in '{part}'")
                    data = text.replace(WATERMARK_TOKEN, watermark).encode("utf-8")
                rewritten.writestr(item, data)

    return output.getvalue()


def _as_text(value: Any) -> str:
    return "" if value is None else str(value)


def preview_fill_values(schema: CompiledSchema) -> Dict[str, str]:
    """
    Flattens a compiled schema into full_tag_name -> text for filling a
    template. Repeatable groups contribute their first record.
    """
    values: Dict[str, str] = {}
    for step in schema.data:
        for field in step.fields:
            if isinstance(field, FormField):
                values[field.full_tag_name] = _as_text(field.value)
                continue

            record = field.value[0] if field.value else {}
            for member in field.fields:
                values[member.full_tag_name] = _as_text(record.get(member.key, member.value))
    return values


def _token_pattern(key: str) -> re.Pattern:
    escaped = re.escape(key)
    return re.compile(r"\{\{\s*" + escaped + r"\s*\}\}|\{\s*" + escaped + r"\s*\}")


def _replace_in_paragraph(paragraph, patterns: Dict[str, re.Pattern], data: Dict[str, Any], matched: set):
    original = paragraph.text
    if "{" not in original:
        return

    text = original
    for key, pattern in patterns.items():
        text, count = pattern.subn(lambda _: _as_text(data[key]), text)
        if count:
            matched.add(key)

    if text == original or not paragraph.runs:
        return

    # Tokens may span runs; keep the first run's formatting
    runs = paragraph.runs
    runs[0].text = text
    for run in runs[1:]:
        run.text = ""


def _iter_paragraphs(container) -> Iterable:
    yield from container.paragraphs
    for table in container.tables:
        for row in table.rows:
            for cell in row.cells:
                yield from _iter_paragraphs(cell)


def _iter_document_paragraphs(doc) -> Iterable:
    yield from _iter_paragraphs(doc)
    for section in doc.sections:
        for part in (section.header, section.footer,
                     section.first_page_header, section.first_page_footer,
                     section.even_page_header, section.even_page_footer):
            # Linked parts have no content of their own
            if part.is_linked_to_previous:
                continue
            yield from _iter_paragraphs(part)


def fill_word_document(template: TemplateSource, data: Dict[str, Any], output_path) -> List[str]:
    """
    Fills {tag} and {{tag}} tokens in a Word document with the provided data.

    Body paragraphs, table cells, headers and footers are all filled.

    Args:
        template: Path, bytes or stream of the template
        data: full_tag_name -> value
        output_path: Where to save the filled document

    Returns:
        List[str]: Data keys that matched no token
    """
    doc = Document(_open_source(template))
    patterns = {key: _token_pattern(key) for key in data}
    matched: set = set()

    for paragraph in _iter_document_paragraphs(doc):
        _replace_in_paragraph(paragraph, patterns, data, matched)

    doc.save(output_path)

    unmatched = [key for key in data if key not in matched]
    if unmatched:
        logger.warning(f"No placeholder found for: {', '.join(unmatched)}")
    logger.info(f"Successfully created filled document: {output_path}")
    return unmatched
