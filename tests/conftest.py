"""
Pytest configuration and fixtures for the form builder tests.

This module provides shared fixtures for settings, catalogs and Word
templates. Templates are generated per test with python-docx so no binary
fixtures live in the repository.
"""

import os
import pytest
from pathlib import Path
from typing import List

from docform.config import FormSettings
from docform.forms.models import FieldType, Placeholder, PlaceholderType
from docform.utils.catalog_utils import StaticCatalogSource

from test_helpers import (
    DATE_ID,
    DROPDOWN_ID,
    GENERIC_ID,
    IMAGE_ID,
    INPUT_ID,
    MASTER_ID,
    NUMBER_ID,
    TEXT_ID,
    DocxTemplateBuilder,
    make_placeholder,
)


# ============================================================================
# SETTINGS FIXTURES
# ============================================================================

@pytest.fixture
def settings() -> FormSettings:
    """Settings with short, recognisable category ids and example URLs."""
    return FormSettings(
        generic_data_type_id=GENERIC_ID,
        master_folder_type_id=MASTER_ID,
        logo_example_url="https://example.test/logo.png",
        signature_example_url="https://example.test/signature.png",
    )


SETTINGS_ENV_VARS = (
    "DOCFORM_GENERIC_DATA_TYPE_ID",
    "DOCFORM_MASTER_FOLDER_TYPE_ID",
    "DOCFORM_LOGO_EXAMPLE_URL",
    "DOCFORM_SIGNATURE_EXAMPLE_URL",
    "DOCFORM_WATERMARK_PART",
)


@pytest.fixture
def clean_env(monkeypatch):
    """
    Remove every DOCFORM_* variable so settings tests start from defaults.

    Variables written by load_dotenv during the test are removed afterwards.
    """
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield monkeypatch
    for name in SETTINGS_ENV_VARS:
        os.environ.pop(name, None)


# ============================================================================
# CATALOG FIXTURES
# ============================================================================

@pytest.fixture
def field_types() -> List[FieldType]:
    return [
        FieldType(id=TEXT_ID, name="Text"),
        FieldType(id=NUMBER_ID, name="Number"),
        FieldType(id=DATE_ID, name="Date"),
        FieldType(id=IMAGE_ID, name="Image"),
        FieldType(id=DROPDOWN_ID, name="Dropdown"),
    ]


@pytest.fixture
def placeholder_types() -> List[PlaceholderType]:
    return [
        PlaceholderType(id=GENERIC_ID, name="Generic Data"),
        PlaceholderType(id=MASTER_ID, name="Master Folder"),
        PlaceholderType(id=INPUT_ID, name="Input"),
    ]


@pytest.fixture
def placeholder_catalog() -> List[Placeholder]:
    """
    Master catalog used across classification and session tests.

    - Company.Name / Company.Logo: ordinary typed input
    - SignDate: typed date input
    - CompanyAddress: generic data
    - ArchiveCode: master-folder only
    """
    return [
        make_placeholder("Company.Name", INPUT_ID, TEXT_ID, name="Name"),
        make_placeholder("Company.Logo", INPUT_ID, IMAGE_ID, name="Logo"),
        make_placeholder("SignDate", INPUT_ID, DATE_ID, name="Sign Date", required=True),
        make_placeholder("CompanyAddress", GENERIC_ID, TEXT_ID, name="Company Address"),
        make_placeholder("ArchiveCode", MASTER_ID, TEXT_ID, name="Archive Code"),
    ]


@pytest.fixture
def catalog_source(placeholder_catalog, placeholder_types, field_types) -> StaticCatalogSource:
    return StaticCatalogSource(placeholder_catalog, placeholder_types, field_types)


# ============================================================================
# TEMPLATE FIXTURES
# ============================================================================

@pytest.fixture
def docx_builder():
    """Factory returning a fresh DocxTemplateBuilder."""
    return DocxTemplateBuilder


@pytest.fixture
def sample_template(tmp_path) -> Path:
    """
    A template covering body, table, header and footer tokens.

    Tokens: {{Company.Name}}, {{Company.Logo}}, {{SignDate}} in the body,
    {CompanyAddress} in a table, {ArchiveCode} in the header and
    {PageLabel} in the footer.
    """
    return (
        DocxTemplateBuilder()
        .paragraph("Supplier: {{Company.Name}}")
        .split_paragraph("Logo: {{Com", "pany.Lo", "go}}")
        .paragraph("Signed on {{SignDate}}")
        .table("Address", "{CompanyAddress}")
        .header("Ref {ArchiveCode}")
        .footer("{PageLabel}")
        .save(tmp_path / "template.docx")
    )


# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================

def pytest_configure(config):
    """Configure pytest at startup."""
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )


def pytest_collection_modifyitems(config, items):
    """Add the unit marker to every test not marked as integration."""
    for item in items:
        if "integration" not in item.keywords:
            item.add_marker(pytest.mark.unit)
