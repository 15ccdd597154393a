"""
Page and layout models.

A page is addressed by a unique slug and points at its primary layout. Layouts group
component instances; the instances reference their layout by `layout_id`.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content_cms.models.component_models import ChangeLogEntry


class PageStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Layout(BaseModel):
    layout_id: str = Field(..., description="Unique layout ID")
    name: str = Field(..., description="Unique layout name")
    page_id: Optional[str] = Field(None, description="Page this layout belongs to")
    is_active: bool = True
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


class Page(BaseModel):
    model_config = ConfigDict(use_enum_values=True)

    page_id: str = Field(..., description="Unique page ID")
    slug: str = Field(..., description="Unique URL slug")
    title: str
    status: PageStatus = PageStatus.DRAFT
    is_active: bool = True
    layout_id: Optional[str] = None
    order: int = 0
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    version: int = Field(1, ge=1)
    change_history: List[ChangeLogEntry] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    created_by: Optional[str] = None
    updated_by: Optional[str] = None


def _normalize_slug(v: str) -> str:
    v = v.lower().strip().strip("/")
    if not v.replace("-", "").replace("_", "").isalnum():
        raise ValueError("Slug can only contain letters, numbers, hyphens, and underscores")
    if v.startswith(("-", "_")) or v.endswith(("-", "_")):
        raise ValueError("Slug cannot start or end with hyphens or underscores")
    return v


def _clean_text(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    import bleach
    return bleach.clean(v, tags=[], strip=True).strip()


class CreatePageRequest(BaseModel):
    """
    Request model for creating a page.

    Titles and meta fields are stripped of HTML.
    """

    slug: str = Field(..., min_length=1, max_length=100, description="Unique URL slug")
    title: str = Field(..., min_length=1, max_length=200)
    status: PageStatus = PageStatus.DRAFT
    is_active: bool = True
    order: int = 0
    meta_title: Optional[str] = Field(None, max_length=70)
    meta_description: Optional[str] = Field(None, max_length=300)
    keywords: List[str] = Field(default_factory=list)

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _normalize_slug(v)

    @field_validator("title", "meta_title", "meta_description")
    @classmethod
    def validate_text(cls, v):
        return _clean_text(v)


class UpdatePageRequest(BaseModel):
    slug: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[PageStatus] = None
    is_active: Optional[bool] = None
    layout_id: Optional[str] = None
    order: Optional[int] = None
    meta_title: Optional[str] = Field(None, max_length=70)
    meta_description: Optional[str] = Field(None, max_length=300)
    keywords: Optional[List[str]] = None

    # Omitted means unchanged; only layout_id and the meta fields may be cleared with null.
    @field_validator("slug", "title", "status", "is_active", "order", "keywords", mode="before")
    @classmethod
    def reject_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v):
        return _normalize_slug(v) if v is not None else v

    @field_validator("title", "meta_title", "meta_description")
    @classmethod
    def validate_text(cls, v):
        return _clean_text(v)


class CreateLayoutRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    page_id: Optional[str] = None


class LayoutComponentPayload(BaseModel):
    """One component as sent by the layout editor. Without `_id` (or `id`) a new instance is created."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, alias="_id", description="Existing component ID")
    name: str = Field(..., min_length=1, max_length=100)
    type_name: str = Field(..., alias="type", min_length=1)
    order: int = 0
    data: Dict[str, Any] = Field(default_factory=dict)
    is_active: Optional[bool] = None


class UpdateLayoutRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    is_active: Optional[bool] = None
    page_id: Optional[str] = None
    components: Optional[List[LayoutComponentPayload]] = None
