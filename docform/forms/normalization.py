"""
Placeholder normalization and deduplication.

Converts raw template tokens into Placeholder records and merges several
placeholder lists (body tokens, header tokens, catalog rows) into one list
keyed by full_tag_name.
"""

import re
import logging
from typing import Dict, Iterable, List, Union

from .constants import GROUP_SEPARATOR
from .models import Placeholder

logger = logging.getLogger(__name__)

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")
_LOWER_UPPER_RE = re.compile(r"([a-z])([A-Z])")
_ACRONYM_RE = re.compile(r"([A-Z]+)([A-Z][a-z])")
_LETTER_DIGIT_RE = re.compile(r"([A-Za-z])(\d)")
_DIGIT_LETTER_RE = re.compile(r"(\d)([A-Za-z])")


def normalise_name(segment: str) -> str:
    """
    Builds a display name from one tag segment.

    Non-alphanumerics become word breaks, camelCase, acronym and letter/digit
    boundaries are split, and each word is title-cased.

    Example:
        >>> normalise_name("signDate2")
        'Sign Date 2'
    """
    text = _NON_ALNUM_RE.sub(" ", segment)
    text = _LOWER_UPPER_RE.sub(r"\1 \2", text)
    text = _ACRONYM_RE.sub(r"\1 \2", text)
    text = _LETTER_DIGIT_RE.sub(r"\1 \2", text)
    text = _DIGIT_LETTER_RE.sub(r"\1 \2", text)
    words = [word[:1].upper() + word[1:].lower() for word in text.split()]
    return " ".join(words)


def token_to_placeholder(token: str) -> Placeholder:
    """Converts one delimiter-stripped token into an untyped Placeholder."""
    full_tag_name = token.replace("{", "").replace("}", "").strip()
    segments = full_tag_name.split(GROUP_SEPARATOR)
    return Placeholder(
        full_tag_name=full_tag_name,
        name=normalise_name(segments[-1]),
        tag_name=full_tag_name,
        parent_tag_name=GROUP_SEPARATOR.join(segments[:-1]),
        placeholder_text=f"{{{full_tag_name}}}",
    )


def convert_tokens(tokens: Iterable[str]) -> List[Placeholder]:
    """Converts tokens in order; empty tokens are skipped."""
    return [token_to_placeholder(token) for token in tokens if token and token.strip("{} ")]


def _as_placeholder(item: Union[Placeholder, dict]) -> Placeholder:
    if isinstance(item, Placeholder):
        return item
    return Placeholder(**item)


def merge_placeholders(*sources: Iterable[Union[Placeholder, dict]]) -> List[Placeholder]:
    """
    Merges placeholder lists into one list unique by full_tag_name.

    The first occurrence fixes the output position. A later record replaces the
    kept one only when the kept one is untyped and the later one carries both
    placeholder_type_id and field_type_id.

    Args:
        *sources: Placeholder lists (or dicts) in priority order

    Returns:
        List[Placeholder]: Deduplicated placeholders in first-seen order
    """
    merged: Dict[str, Placeholder] = {}
    for source in sources:
        for item in source:
            placeholder = _as_placeholder(item)
            key = placeholder.full_tag_name
            kept = merged.get(key)
            if kept is None:
                merged[key] = placeholder
            elif placeholder.is_typed and not kept.is_typed:
                merged[key] = placeholder

    logger.debug(f"Merged placeholders down to {len(merged)} unique tags.")
    return list(merged.values())


def normalise_tokens(*token_lists: Iterable[str]) -> List[Placeholder]:
    """Converts each token list and merges the results."""
    return merge_placeholders(*(convert_tokens(tokens) for tokens in token_lists))
