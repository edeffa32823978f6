"""
Data models for placeholders, steps and the compiled mobile schema.

Placeholder and Step are the working records of an upload session. FormField,
RepeatableField, CompiledStep and CompiledSchema make up the wire contract with
the rendering client; their field names and nesting are fixed.
"""

from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import REPEATABLE_TYPE


def _blank_if_missing(value: Any) -> str:
    # Catalog rows sometimes carry 0 or None where no id was assigned
    if value is None or value == 0:
        return ""
    return str(value)


class FieldType(BaseModel):
    """Field-type catalog entry (Text, Number, Date, Dropdown, ...)."""
    id: str
    name: str = ""


class PlaceholderType(BaseModel):
    """Placeholder-category catalog entry."""
    id: str
    name: str = ""


class Placeholder(BaseModel):
    """A discovered or catalogued field definition, keyed by full_tag_name."""
    model_config = ConfigDict(frozen=True)

    full_tag_name: str
    placeholder_type_id: str = ""
    field_type_id: str = ""
    name: str = ""
    required: bool = False
    options: List[str] = Field(default_factory=list)
    order: int = 0
    tag_name: str = ""
    parent_tag_name: str = ""
    placeholder_text: str = ""
    # Declared value-type name; resolved from field_type_id when absent
    type: Optional[str] = None
    # Operator-entered value used outside preview mode
    value: Any = None

    @field_validator("placeholder_type_id", "field_type_id", mode="before")
    @classmethod
    def coerce_ids(cls, v):
        return _blank_if_missing(v)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v):
        return "" if v is None else str(v)

    @field_validator("required", mode="before")
    @classmethod
    def coerce_required(cls, v):
        return bool(v)

    @field_validator("options", mode="before")
    @classmethod
    def coerce_options(cls, v):
        if v is None:
            return []
        return [str(option) for option in v]

    @field_validator("order", mode="before")
    @classmethod
    def coerce_order(cls, v):
        return v or 0

    @property
    def is_typed(self) -> bool:
        """True when both the category and the value type are assigned."""
        return bool(self.placeholder_type_id) and bool(self.field_type_id)

    @property
    def group_name(self) -> Optional[str]:
        """The segment before the first dot, or None for ungrouped tags."""
        if "." not in self.full_tag_name:
            return None
        return self.full_tag_name.split(".", 1)[0]


class Step(BaseModel):
    """An ordered container of placeholders presented together."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    fields: List[Placeholder] = Field(default_factory=list)
    is_group: bool = Field(default=False, alias="isGroup")


class FormField(BaseModel):
    """A standalone compiled field."""
    kind: Literal["standalone"] = Field(default="standalone", exclude=True)
    key: str
    type: str = ""
    label: str
    value: Any = ""
    required: bool = False
    order: int = 0
    options: List[Any] = Field(default_factory=list)
    field_type_id: str = ""
    full_tag_name: str


class RepeatableField(BaseModel):
    """A dotted-path group compiled into one composite, repeatable field."""
    kind: Literal["repeatable"] = Field(default="repeatable", exclude=True)
    type: Literal[REPEATABLE_TYPE] = REPEATABLE_TYPE
    label: str
    key: str
    fields: List[FormField] = Field(default_factory=list)
    value: Optional[List[Dict[str, Any]]] = None


CompiledField = Annotated[Union[FormField, RepeatableField], Field(discriminator="kind")]


class CompiledStep(BaseModel):
    title: str
    fields: List[CompiledField] = Field(default_factory=list)


class CompiledSchema(BaseModel):
    """The portable schema consumed by the rendering client."""
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    data: List[CompiledStep] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        """Serialises to the exact JSON structure the rendering client expects."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def field_type_name(field_type_id: Optional[str], field_types: Iterable[FieldType]) -> str:
    """Returns the display name for a field-type id, or "" when unknown."""
    for field_type in field_types:
        if field_type.id == field_type_id:
            return field_type.name
    return ""


def category_name(placeholder_type_id: Optional[str], placeholder_types: Iterable[PlaceholderType]) -> str:
    """Returns the display name for a placeholder category id, or "" when unknown."""
    for placeholder_type in placeholder_types:
        if placeholder_type.id == placeholder_type_id:
            return placeholder_type.name
    return ""
