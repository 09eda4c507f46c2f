"""Pydantic schemas for filtered content trees."""

from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field

from edustore.catalog.models import ItemType, LeafKind


class AccessType(str, Enum):
    """How much of a tree the caller sees."""

    FULL = "full"  # Entitled: every leaf with its payload
    LIMITED = "limited"  # Free and preview leaves only


class FilteredLeaf(BaseModel):
    """A visible leaf.

    ``payload`` is set for entitled callers and free leaves; preview-only
    leaves carry ``preview_payload`` instead.
    """

    id: UUID
    kind: LeafKind
    title: str
    position: int = 0
    is_free: bool = False
    is_preview: bool = False
    payload: str | None = None
    preview_payload: str | None = None


class FilteredSubcategory(BaseModel):
    """A subcategory with its visible leaves."""

    name: str
    description: str = ""
    leaves: list[FilteredLeaf] = Field(default_factory=list)
    hidden_count: int = Field(0, description="Locked leaves under this node")


class FilteredCategory(BaseModel):
    """A category with its visible leaves and subcategories."""

    name: str
    description: str = ""
    leaves: list[FilteredLeaf] = Field(default_factory=list)
    subcategories: list[FilteredSubcategory] = Field(default_factory=list)
    hidden_count: int = Field(0, description="Locked leaves under this node")


class FilteredTree(BaseModel):
    """Content tree as seen by one caller."""

    access_type: AccessType
    categories: list[FilteredCategory] = Field(default_factory=list)
    total_leaves: int = 0
    total_locked: int = 0


class ContentTreeResponse(FilteredTree):
    """Filtered tree of a catalog item."""

    item_type: ItemType
    item_id: UUID
    title: str


class LeafAccessResponse(BaseModel):
    """Playable/readable pointer for one leaf."""

    item_type: ItemType
    item_id: UUID
    leaf: FilteredLeaf
    is_preview_mode: bool = Field(
        ..., description="Only the preview payload is exposed"
    )
