"""
Unit tests for document metadata helpers (docform/utils/helpers.py).
"""

import pytest

from docform.utils.helpers import (
    build_document_title,
    format_revision_date,
    sanitize_file_name,
    unescape_unicode,
)


class TestFormatRevisionDate:
    """Test revision-date conversion."""

    @pytest.mark.parametrize("raw, expected", [
        ("15 March 2024", "2024-03-15"),
        ("1 Jan 2023", "2023-01-01"),
        ("15, March 2024", "2024-03-15"),
        ("5 March, 2024", "2024-03-05"),
    ])
    def test_valid_dates(self, raw, expected):
        assert format_revision_date(raw) == expected

    @pytest.mark.parametrize("raw", ["", None, "March 2024", "31 Foo 2024", "31 February 2024", "yesterday"])
    def test_invalid_dates_give_empty_string(self, raw):
        assert format_revision_date(raw) == ""


class TestDocumentNames:
    """Test title and file-name helpers."""

    def test_title_with_revision(self):
        assert build_document_title("Service Report.docx", 3) == "Service Report_Rev_3"

    def test_title_without_revision(self):
        assert build_document_title("Service Report.docx") == "Service Report"
        assert build_document_title("Plain", "") == "Plain"

    def test_sanitize_file_name(self):
        assert sanitize_file_name("Service Report  Rev 3.docx") == "Service_Report_Rev_3.docx"


class TestUnescapeUnicode:
    """Test option-value unescaping."""

    def test_escapes_are_decoded(self):
        assert unescape_unicode("Caf\\u00e9 \\u00E9") == "Café é"

    def test_plain_text_is_unchanged(self):
        assert unescape_unicode("No escapes") == "No escapes"
