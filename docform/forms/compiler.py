"""
Mobile Schema Compiler Module

This module turns the finished steps of an upload session into the portable
form schema read by the mobile rendering client.

Each step's fields are split on the first dot of their full_tag_name. Dotted
fields are folded into one RepeatableField per group and appended after the
step's standalone fields. In preview mode every field gets a synthetic example
value, and every repeatable group gets exactly two example records.
"""

import re
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

from docform.config import FormSettings
from .constants import (
    EXAMPLE_NUMBER,
    EXAMPLE_TEXT,
    FIELD_TYPE_DATE,
    FIELD_TYPE_IMAGE,
    FIELD_TYPE_NUMBER,
    FIELD_TYPE_TEXT,
    GROUP_SEPARATOR,
    LOGO_TAG_MARKER,
    PREVIEW_RECORD_COUNT,
    STEP_TITLE_TEMPLATE,
)
from .models import (
    CompiledSchema,
    CompiledStep,
    FieldType,
    FormField,
    Placeholder,
    RepeatableField,
    Step,
    field_type_name,
)

logger = logging.getLogger(__name__)

_CAMEL_PATTERNS = (
    re.compile(r"([a-z])([A-Z])"),
    re.compile(r"([A-Z]+)([A-Z][a-z])"),
    re.compile(r"([A-Za-z])(\d)"),
    re.compile(r"(\d)([A-Za-z])"),
)


def transform_camel_case(text: str) -> str:
    """
    Inserts spaces at camelCase, acronym and letter/digit boundaries.

    Example:
        >>> transform_camel_case("HTMLPage2Title")
        'HTML Page 2 Title'
    """
    for pattern in _CAMEL_PATTERNS:
        text = pattern.sub(r"\1 \2", text)
    return text


def example_value(field_type: Optional[str], options: Sequence[Any], tag: str,
                  settings: FormSettings, today: Optional[date] = None) -> Any:
    """
    Synthesises a preview value for a field.

    Args:
        field_type: Declared value-type name (Number, Date, Image, ...)
        options: The field's option list
        tag: The field's full_tag_name; decides logo versus signature images
        settings: Supplies the example image URLs
        today: Date used for Date fields; defaults to the current day

    Returns:
        The example value for the type
    """
    if field_type == FIELD_TYPE_NUMBER:
        return EXAMPLE_NUMBER
    if field_type == FIELD_TYPE_DATE:
        return (today or date.today()).isoformat()
    if field_type == FIELD_TYPE_IMAGE:
        if LOGO_TAG_MARKER in (tag or "").lower():
            return settings.logo_example_url
        return settings.signature_example_url
    return options[0] if options else EXAMPLE_TEXT


def _resolve_type(field: Placeholder, field_types: Sequence[FieldType]) -> str:
    if field.type:
        return field.type
    return field_type_name(field.field_type_id, field_types)


def _compile_field(field: Placeholder, key: str, field_type: str, preview: bool,
                   settings: FormSettings, today: date) -> FormField:
    if preview:
        value = example_value(field_type, field.options, field.full_tag_name, settings, today)
    else:
        value = "" if field.value is None else field.value

    return FormField(
        key=key,
        type=field_type,
        label=transform_camel_case(field.full_tag_name),
        value=value,
        required=field.required,
        order=field.order or 0,
        options=list(field.options),
        field_type_id=field.field_type_id,
        full_tag_name=field.full_tag_name,
    )


def _example_record(group: RepeatableField, settings: FormSettings, today: date) -> Dict[str, Any]:
    return {
        member.key: example_value(member.type, member.options, member.full_tag_name, settings, today)
        for member in group.fields
    }


def compile_step(step: Step, preview: bool = False, field_types: Sequence[FieldType] = (),
                 settings: Optional[FormSettings] = None, today: Optional[date] = None) -> CompiledStep:
    """Compiles one step; repeatable groups follow the standalone fields."""
    settings = settings or FormSettings()
    today = today or date.today()

    standalone: List[FormField] = []
    groups: Dict[str, RepeatableField] = {}

    for field in step.fields:
        group_name, _, member = field.full_tag_name.partition(GROUP_SEPARATOR)
        field_type = _resolve_type(field, field_types)
        form_field = _compile_field(
            field, member or field.full_tag_name, field_type, preview, settings, today
        )

        if not member:
            standalone.append(form_field)
            continue

        if group_name not in groups:
            groups[group_name] = RepeatableField(label=group_name, key=group_name)
        groups[group_name].fields.append(form_field)

    for group in groups.values():
        if preview and group.fields:
            group.value = [_example_record(group, settings, today) for _ in range(PREVIEW_RECORD_COUNT)]

    return CompiledStep(title=step.title, fields=[*standalone, *groups.values()])


def compile_schema(document_id: str, steps: Iterable[Step], preview: bool = False,
                   field_types: Sequence[FieldType] = (),
                   settings: Optional[FormSettings] = None) -> CompiledSchema:
    """
    Compiles organised steps into the mobile form schema.

    Args:
        document_id: Id of the document the form fills
        steps: Steps in display order
        preview: Whether to synthesise example values
        field_types: Field-type catalog used when a field declares no type name
        settings: Supplies the example image URLs

    Returns:
        CompiledSchema: Call to_wire() for the JSON sent to the client
    """
    settings = settings or FormSettings()
    # One date per compilation so every Date field agrees
    today = date.today()
    field_types = list(field_types)

    data = [compile_step(step, preview, field_types, settings, today) for step in steps]
    logger.info(f"Compiled {len(data)} steps for document '{document_id}' (preview={preview})")
    return CompiledSchema(document_id=document_id, data=data)


def merge_generic_fields(steps: Sequence[Step], generic_list: Iterable[Placeholder],
                         field_types: Sequence[FieldType] = ()) -> List[Step]:
    """
    Appends generic-data placeholders to the first step for previewing.

    Each generic placeholder is typed from the field-type catalog, falling back
    to Text, and carries an empty value. A "Step 1" is created when there are
    no steps.
    """
    generic_fields = [
        placeholder.model_copy(update={
            "type": field_type_name(placeholder.field_type_id, field_types) or FIELD_TYPE_TEXT,
            "value": "",
            "order": placeholder.order or 0,
        })
        for placeholder in generic_list
    ]
    if not generic_fields:
        return list(steps)

    if not steps:
        return [Step(title=STEP_TITLE_TEMPLATE.format(number=1), fields=generic_fields)]

    first = steps[0]
    merged_first = first.model_copy(update={"fields": list(first.fields) + generic_fields})
    return [merged_first, *steps[1:]]
