import re
import logging
from datetime import datetime
from pathlib import PurePath
from typing import Optional, Union

logger = logging.getLogger(__name__)

_UNICODE_ESCAPE_RE = re.compile(r"\\u([0-9a-fA-F]{4})")
_REVISION_DATE_FORMATS = ("%d %B %Y", "%d %b %Y")


def unescape_unicode(raw: str) -> str:
    """
    Converts \\uXXXX escape sequences into the characters they name.
    Text without escapes is returned unchanged.
    """
    return _UNICODE_ESCAPE_RE.sub(lambda m: chr(int(m.group(1), 16)), raw)


def format_revision_date(date_string: Optional[str]) -> str:
    """
    Converts a revision date such as "15 March 2024" or "15, Mar 2024" into
    an ISO calendar date ("2024-03-15").

    Returns an empty string when the input cannot be parsed.
    """
    if not date_string:
        return ""

    parts = str(date_string).split()
    if len(parts) != 3:
        logger.warning(f"Could not convert revision date '{date_string}': expected day, month and year")
        return ""

    normalised = " ".join([parts[0].split(",")[0], parts[1].rstrip(","), parts[2]])
    for fmt in _REVISION_DATE_FORMATS:
        try:
            return datetime.strptime(normalised, fmt).date().isoformat()
        except ValueError:
            continue

    logger.warning(f"Could not convert revision date '{date_string}'")
    return ""


def build_document_title(file_name: str, revision_number: Union[str, int, None] = None) -> str:
    """Builds a document title from the uploaded file name and revision number."""
    stem = PurePath(file_name).stem if "." in file_name else file_name
    if revision_number in (None, ""):
        return stem
    return f"{stem}_Rev_{revision_number}"


def sanitize_file_name(file_name: str) -> str:
    # Storage keys cannot contain spaces
    return re.sub(r"\s+", "_", file_name)
