"""
Shared constants for the form core.

This module contains:
- Field-type names the compiler and organizer make decisions on
- Example values used when compiling in preview mode
- Step naming and repeatable-group constants
"""

# Field-type names from the field-type catalog
FIELD_TYPE_TEXT = "Text"
FIELD_TYPE_NUMBER = "Number"
FIELD_TYPE_DATE = "Date"
FIELD_TYPE_IMAGE = "Image"

# Preview example values
EXAMPLE_NUMBER = 123
EXAMPLE_TEXT = "Example Text"
LOGO_TAG_MARKER = "logo"
PREVIEW_RECORD_COUNT = 2

# Compiled schema
REPEATABLE_TYPE = "Repeatable"
GROUP_SEPARATOR = "."
STEP_TITLE_TEMPLATE = "Step {number}"
