"""
Template token extraction.

Reads the text parts of a packaged Word template (body, headers, footers) and
returns the placeholder tokens written into them. Tokens use either `{Name}` or
`{{Name}}` delimiters; dotted names (`{Company.Logo}`) denote group members.
"""

import io
import os
import re
import logging
import zipfile
from typing import BinaryIO, Dict, List, NamedTuple, Union

from docx.oxml.ns import qn
from lxml import etree

logger = logging.getLogger(__name__)

TEXT_TAG = qn("w:t")
PARAGRAPH_TAG = qn("w:p")

BODY_PART = "word/document.xml"
HEADER_PART_RE = re.compile(r"^word/header(\d*)\.xml$")
FOOTER_PART_RE = re.compile(r"^word/footer(\d*)\.xml$")

# Double-brace form first so "{{A}}" is captured whole rather than as "{{A}"
TOKEN_RE = re.compile(r"\{\{[^}]+\}\}|\{[^}]+\}")

TemplateSource = Union[str, os.PathLike, bytes, BinaryIO]


class TemplateValidationError(ValueError):
    """Raised when a template has no usable content or cannot be opened."""


class ExtractionResult(NamedTuple):
    tokens: List[str]
    failed_parts: List[str]


def _part_sort_key(name: str):
    match = HEADER_PART_RE.match(name) or FOOTER_PART_RE.match(name)
    number = int(match.group(1)) if match and match.group(1) else 0
    return number


def read_document_parts(source: TemplateSource) -> Dict[str, bytes]:
    """
    Opens a packaged document and collects its text parts.

    Args:
        source: Path, raw bytes or binary stream of a .docx file

    Returns:
        Dict mapping part name to raw XML: body first, then headers, then footers

    Raises:
        TemplateValidationError: If the source is not a readable package
    """
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)

    try:
        with zipfile.ZipFile(source) as archive:
            names = archive.namelist()
            headers = sorted((n for n in names if HEADER_PART_RE.match(n)), key=_part_sort_key)
            footers = sorted((n for n in names if FOOTER_PART_RE.match(n)), key=_part_sort_key)
            ordered = ([BODY_PART] if BODY_PART in names else []) + headers + footers
            parts = {name: archive.read(name) for name in ordered}
    except FileNotFoundError as e:
        raise TemplateValidationError(f"Template file not found: {e.filename}") from e
    except zipfile.BadZipFile as e:
        raise TemplateValidationError("The uploaded file is not a valid Word document.") from e

    logger.debug(f"Read {len(parts)} text parts: {', '.join(parts)}")
    return parts


def _paragraph_texts(root) -> List[str]:
    """Joins the w:t runs of each paragraph so split tokens are rejoined."""
    # Keyed by element: holding the reference keeps lxml returning the same proxy
    paragraphs: Dict[etree._Element, List[str]] = {}
    loose: List[str] = []
    for node in root.iter(TEXT_TAG):
        owner = next(node.iterancestors(PARAGRAPH_TAG), None)
        if owner is None:
            loose.append(node.text or "")
            continue
        paragraphs.setdefault(owner, []).append(node.text or "")
    return ["".join(runs) for runs in paragraphs.values()] + loose


def extract_tokens_from_xml(xml_content: Union[str, bytes]) -> List[str]:
    """
    Returns the delimiter-stripped tokens found in one WordprocessingML part.

    Raises:
        etree.XMLSyntaxError: If the part is not well-formed XML
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    root = etree.fromstring(xml_content)

    tokens: List[str] = []
    for text in _paragraph_texts(root):
        for match in TOKEN_RE.findall(text):
            cleaned = match.replace("{", "").replace("}", "").strip()
            if cleaned:
                tokens.append(cleaned)
    return tokens


def extract_tokens(parts: Dict[str, Union[str, bytes]]) -> ExtractionResult:
    """
    Scans every text part independently and concatenates the tokens in order.

    A part that is not well-formed contributes no tokens and is reported in
    failed_parts. Duplicates are kept; deduplication happens downstream.

    Raises:
        TemplateValidationError: If there are no parts, or none could be parsed
    """
    if not parts:
        raise TemplateValidationError("The document has no readable body, header or footer parts.")

    tokens: List[str] = []
    failed: List[str] = []
    for name, content in parts.items():
        try:
            found = extract_tokens_from_xml(content)
        except (etree.XMLSyntaxError, ValueError) as e:
            logger.warning(f"Skipping unreadable document part '{name}': {e}")
            failed.append(name)
            continue
        logger.debug(f"Found {len(found)} tokens in '{name}'")
        tokens.extend(found)

    if len(failed) == len(parts):
        raise TemplateValidationError("None of the document parts could be read as Word markup.")

    logger.info(f"Extracted {len(tokens)} tokens from {len(parts) - len(failed)} document parts.")
    return ExtractionResult(tokens=tokens, failed_parts=failed)


def extract_template_tokens(source: TemplateSource) -> ExtractionResult:
    """Reads a template and extracts the tokens from all of its text parts."""
    return extract_tokens(read_document_parts(source))
