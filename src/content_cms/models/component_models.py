"""
# Component Models

Pydantic models for component type schemas and component instances.

## Field definitions

A `FieldDefinition` is a tagged union discriminated by `kind`:

- `ScalarFieldDefinition`: text, textarea, richText, number, image, boolean, date, select
- `ArrayFieldDefinition`: a repeated group; `children` describe one item
- `ObjectFieldDefinition`: a nested group; `children` describe its fields

The union is recursive, so schemas nest to any depth, for example an `array` of
testimonials whose items hold an `object` with an `image` and a `text` caption.

## Stored data

Component instance `data` is a mapping of field name to **value wrapper**:

```json
{"title": {"type": "text", "fieldType": "text", "value": "What Our Clients Say"},
 "testimonials": {"type": "array", "fieldType": "array",
                  "value": [{"name": {"type": "text", "fieldType": "text", "value": "Ada"}}],
                  "itemStructure": [{"name": "name", "kind": "text"}]}}
```
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

SCALAR_KIND_LITERAL = Literal["text", "textarea", "richText", "number", "image", "boolean", "date", "select"]


class SelectOption(BaseModel):
    """A choice offered by a `select` field."""

    label: str = Field(..., description="Human readable label")
    value: Any = Field(..., description="Stored value")


class FieldConstraints(BaseModel):
    """Optional constraints attached to a field definition."""

    min: Optional[float] = Field(None, description="Minimum numeric value or length")
    max: Optional[float] = Field(None, description="Maximum numeric value or length")
    step: Optional[float] = Field(None, description="Numeric step for editor inputs")
    pattern: Optional[str] = Field(None, description="Regular expression a text value must match")
    options: List[SelectOption] = Field(default_factory=list, description="Choices for select fields")


class _FieldDefinitionBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=50, description="Identifier, unique among siblings")
    label: Optional[str] = Field(None, description="Editor label")
    description: Optional[str] = Field(None, description="Editor help text")
    required: bool = Field(False, description="Whether editors must provide a value")
    default_value: Any = Field(None, description="Value used when the instance has none")
    constraints: FieldConstraints = Field(default_factory=FieldConstraints)


class ScalarFieldDefinition(_FieldDefinitionBase):
    kind: SCALAR_KIND_LITERAL


class ArrayFieldDefinition(_FieldDefinitionBase):
    kind: Literal["array"]
    children: List["FieldDefinition"] = Field(..., min_length=1, description="Shape of one array item")


class ObjectFieldDefinition(_FieldDefinitionBase):
    kind: Literal["object"]
    children: List["FieldDefinition"] = Field(..., min_length=1, description="Nested fields")


FieldDefinition = Annotated[
    Union[ScalarFieldDefinition, ArrayFieldDefinition, ObjectFieldDefinition],
    Field(discriminator="kind"),
]

ArrayFieldDefinition.model_rebuild()
ObjectFieldDefinition.model_rebuild()


class ChangeLogEntry(BaseModel):
    """One entry of a bounded change history."""

    version: int = Field(..., description="Version reached by this change")
    changed_at: datetime = Field(..., description="When the change happened")
    changed_by: Optional[str] = Field(None, description="Who made the change")
    summary: str = Field("", description="Short description of the change")


class ComponentTypeSchema(BaseModel):
    """A named, versioned set of field definitions."""

    type_id: str = Field(..., description="Unique component type ID")
    name: str = Field(..., description="Display name, unique case-insensitively")
    name_key: str = Field(..., description="Lower-cased name used for uniqueness")
    description: Optional[str] = Field(None, description="What the component is for")
    version: int = Field(1, ge=1, description="Incremented on every structural edit")
    fields: List[FieldDefinition] = Field(default_factory=list)
    is_active: bool = Field(True, description="Inactive types are hidden from the catalogue")
    tags: List[str] = Field(default_factory=list)
    change_history: List[ChangeLogEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class ComponentInstance(BaseModel):
    """A concrete component holding type-tagged data."""

    component_id: str = Field(..., description="Unique component ID")
    type_name: str = Field(..., description="Name of the component type")
    name: str = Field(..., description="Unique component name")
    data: Dict[str, Any] = Field(default_factory=dict, description="Field name to value wrapper")
    order: int = Field(0, description="Position within the layout")
    is_active: bool = Field(True)
    layout_id: Optional[str] = Field(None, description="Owning layout")
    version: int = Field(1, ge=1)
    change_history: List[ChangeLogEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


# --- Requests ---


class CreateComponentTypeRequest(BaseModel):
    """
    Request model for defining a component type.

    `fields` is accepted as raw dictionaries; field definitions in the legacy dialect
    (`type`/`fieldType`, `itemStructure`, `subFields`, `default`, top-level `options`) are
    normalized and validated by the service so errors report the offending field path.
    """

    name: str = Field(..., min_length=1, max_length=100, description="Component type name")
    description: Optional[str] = Field(None, max_length=500)
    fields: List[Dict[str, Any]] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class UpdateComponentTypeRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    fields: Optional[List[Dict[str, Any]]] = None
    tags: Optional[List[str]] = None
    is_active: Optional[bool] = None


class CreateComponentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type_name: str = Field(..., alias="type", min_length=1, description="Component type name")
    name: str = Field(..., min_length=1, max_length=100)
    data: Dict[str, Any] = Field(default_factory=dict)
    order: int = 0
    layout_id: Optional[str] = None


class UpdateComponentRequest(BaseModel):
    """Partial update; `data` is merged per top-level field into the stored data."""

    model_config = ConfigDict(populate_by_name=True)

    type_name: Optional[str] = Field(None, alias="type")
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    data: Optional[Dict[str, Any]] = None
    order: Optional[int] = None
    is_active: Optional[bool] = None


class ReorderItem(BaseModel):
    id: str = Field(..., description="Component ID")
    order: int = Field(..., description="New position")


class ReorderRequest(BaseModel):
    components: List[ReorderItem] = Field(..., min_length=1)
