"""
Settings Module

This module handles configuration for the form builder. Values are read from a
.env file (python-dotenv) and the process environment, and collected into a
FormSettings instance that is passed explicitly into the classifier, organizer
and compiler.

Key Functions:
- load_settings(): Builds a FormSettings from .env and environment variables
- get_settings(): Returns the process-wide settings used by entry points

Environment Variables:
- DOCFORM_GENERIC_DATA_TYPE_ID: Category id of organisation-wide placeholders
- DOCFORM_MASTER_FOLDER_TYPE_ID: Category id of master-folder-only placeholders
- DOCFORM_LOGO_EXAMPLE_URL: Preview value for logo images
- DOCFORM_SIGNATURE_EXAMPLE_URL: Preview value for every other image
- DOCFORM_WATERMARK_PART: Package part holding the {Watermark} token
"""

import os
import logging
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_GENERIC_DATA_TYPE_ID = "generic-data"
DEFAULT_MASTER_FOLDER_TYPE_ID = "master-folder-only"
DEFAULT_LOGO_EXAMPLE_URL = "https://static.docform.dev/examples/generic-logo.png"
DEFAULT_SIGNATURE_EXAMPLE_URL = "https://static.docform.dev/examples/fake-signature.png"
DEFAULT_WATERMARK_PART = "word/header2.xml"


class PlaceholderCategory(str, Enum):
    """Closed set of placeholder categories the core makes decisions on."""
    GENERIC_DATA = "generic_data"
    MASTER_FOLDER_ONLY = "master_folder_only"
    INPUT = "input"


class FormSettings(BaseModel):
    """Injected configuration for classification and compilation."""
    generic_data_type_id: str = Field(default=DEFAULT_GENERIC_DATA_TYPE_ID)
    master_folder_type_id: str = Field(default=DEFAULT_MASTER_FOLDER_TYPE_ID)
    logo_example_url: str = Field(default=DEFAULT_LOGO_EXAMPLE_URL)
    signature_example_url: str = Field(default=DEFAULT_SIGNATURE_EXAMPLE_URL)
    watermark_part: str = Field(default=DEFAULT_WATERMARK_PART)

    def category_of(self, placeholder_type_id: Optional[str]) -> PlaceholderCategory:
        """
        Resolves a raw category id into a PlaceholderCategory.

        Args:
            placeholder_type_id: The id carried by a placeholder record

        Returns:
            PlaceholderCategory: INPUT for anything outside the reserved ids
        """
        if placeholder_type_id and placeholder_type_id == self.master_folder_type_id:
            return PlaceholderCategory.MASTER_FOLDER_ONLY
        if placeholder_type_id and placeholder_type_id == self.generic_data_type_id:
            return PlaceholderCategory.GENERIC_DATA
        return PlaceholderCategory.INPUT


# Process-wide settings, initialised once by get_settings()
SETTINGS: Optional[FormSettings] = None


def load_settings(env_file: Optional[str] = None) -> FormSettings:
    """
    Loads settings from a .env file and the environment.

    Args:
        env_file: Optional path to a .env file. Defaults to python-dotenv's lookup.

    Returns:
        FormSettings: Settings with unset values left at their defaults
    """
    load_dotenv(dotenv_path=env_file)

    overrides = {}
    env_map = {
        "generic_data_type_id": "DOCFORM_GENERIC_DATA_TYPE_ID",
        "master_folder_type_id": "DOCFORM_MASTER_FOLDER_TYPE_ID",
        "logo_example_url": "DOCFORM_LOGO_EXAMPLE_URL",
        "signature_example_url": "DOCFORM_SIGNATURE_EXAMPLE_URL",
        "watermark_part": "DOCFORM_WATERMARK_PART",
    }
    for field_name, env_name in env_map.items():
        value = os.getenv(env_name)
        if value:
            overrides[field_name] = value.strip()

    if overrides:
        logger.debug(f"Settings overridden from environment: {sorted(overrides)}")
    return FormSettings(**overrides)


def get_settings() -> FormSettings:
    """
    Returns the process-wide settings instance.
    Loads it on first use.
    """
    global SETTINGS
    if SETTINGS is None:
        SETTINGS = load_settings()
    return SETTINGS
