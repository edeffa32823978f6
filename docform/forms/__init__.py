"""
Form core for document templates.

This package turns the placeholders written into a Word template into a
step-by-step form schema for the mobile client.

Architecture:
    Data flows strictly through the submodules in this order:
    - normalization: Raw tokens to Placeholder records, deduplicated by tag
    - classification: Catalog enrichment and the generic/input split
    - organizer: Pure state transitions over the pool and the steps
    - compiler: Steps to the wire schema, with preview example values
    - session: One upload end to end, with concurrent catalog fetches

    models and constants hold the shared records and names.

Usage:
    Run an upload and compile a preview:
        >>> from docform.forms import TemplateUploadSession
        >>> session = TemplateUploadSession(settings, catalog_source)
        >>> result = asyncio.run(session.process_upload(read_file))
        >>> session.dispatch({"type": "toggle_select", "tag": "SignDate"})
        >>> session.dispatch({"type": "move_right"})
        >>> schema = session.compile("doc-1", preview=True).to_wire()

    Compile steps built elsewhere:
        >>> from docform.forms import compile_schema
        >>> schema = compile_schema("doc-1", steps, preview=False, field_types=field_types)

Wire Contract:
    {documentId, data: [{title, fields: [FormField | RepeatableField]}]}
    Field names and nesting are fixed; see models.CompiledSchema.

See Also:
    - docform/utils/template_utils.py: Token extraction from .docx packages
    - docform/utils/catalog_utils.py: Catalog loading from JSON or Excel
"""

# Records
from .models import (
    FieldType,
    PlaceholderType,
    Placeholder,
    Step,
    FormField,
    RepeatableField,
    CompiledStep,
    CompiledSchema,
    field_type_name,
    category_name,
)

# Normalization
from .normalization import (
    normalise_name,
    token_to_placeholder,
    convert_tokens,
    merge_placeholders,
    normalise_tokens,
)

# Classification
from .classification import (
    ClassificationResult,
    filter_generic_conflicts,
    enrich_from_catalog,
    partition_placeholders,
    classify_placeholders,
    visible_placeholders,
)

# Organizer
from .organizer import (
    OrganizerState,
    StepOrganizer,
    create_state,
    apply_action,
    toggle_select,
    toggle_group_checkbox,
    toggle_step,
    move_right,
    move_left,
    reorder_within_step,
    set_step_title,
    set_field_type,
    add_option,
    remove_option,
    reset,
)

# Compiler
from .compiler import (
    transform_camel_case,
    example_value,
    compile_step,
    compile_schema,
    merge_generic_fields,
)

# Upload session
from .session import (
    TemplateUploadSession,
    UploadResult,
)

__all__ = [
    # Records
    "FieldType",
    "PlaceholderType",
    "Placeholder",
    "Step",
    "FormField",
    "RepeatableField",
    "CompiledStep",
    "CompiledSchema",
    "field_type_name",
    "category_name",

    # Normalization
    "normalise_name",
    "token_to_placeholder",
    "convert_tokens",
    "merge_placeholders",
    "normalise_tokens",

    # Classification
    "ClassificationResult",
    "filter_generic_conflicts",
    "enrich_from_catalog",
    "partition_placeholders",
    "classify_placeholders",
    "visible_placeholders",

    # Organizer
    "OrganizerState",
    "StepOrganizer",
    "create_state",
    "apply_action",
    "toggle_select",
    "toggle_group_checkbox",
    "toggle_step",
    "move_right",
    "move_left",
    "reorder_within_step",
    "set_step_title",
    "set_field_type",
    "add_option",
    "remove_option",
    "reset",

    # Compiler
    "transform_camel_case",
    "example_value",
    "compile_step",
    "compile_schema",
    "merge_generic_fields",

    # Upload session
    "TemplateUploadSession",
    "UploadResult",
]
