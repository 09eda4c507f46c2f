"""Catalog models and Cassandra schema.

Read-only view of purchasable items and their content trees:
- CatalogItem: Course, TestSeries, Ebook or StudyMaterial
- ContentTree: Category -> Subcategory -> Leaf hierarchy
- Leaf: Video, Test or Book carrying its own free/preview flags

The stored tree references leaves by id. Catalog edits can delete or
deactivate a leaf after the tree was written, so resolved trees keep a
``None`` slot for every reference that no longer resolves.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import orjson


class ItemType(str, Enum):
    """Purchasable catalog item type."""

    COURSE = "course"
    TEST_SERIES = "test_series"
    EBOOK = "ebook"
    STUDY_MATERIAL = "study_material"


class LeafKind(str, Enum):
    """Smallest content unit type."""

    VIDEO = "video"  # payload: playback id
    TEST = "test"  # payload: question set id
    BOOK = "book"  # payload: file pointer


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

CATALOG_ITEMS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.catalog_items (
    item_type TEXT,
    item_id UUID,
    title TEXT,
    price DECIMAL,
    is_active BOOLEAN,
    content_tree TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((item_type, item_id))
)
"""

# Leaves of an item, one partition per item (counted at call time)
CATALOG_LEAVES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.catalog_leaves (
    item_id UUID,
    leaf_id UUID,
    kind TEXT,
    title TEXT,
    position INT,
    is_free BOOLEAN,
    is_preview BOOLEAN,
    is_active BOOLEAN,
    payload TEXT,
    preview_payload TEXT,
    PRIMARY KEY ((item_id), leaf_id)
)
"""

CATALOG_TABLES_CQL = [
    CATALOG_ITEMS_TABLE_CQL,
    CATALOG_LEAVES_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


@dataclass(frozen=True)
class ItemCapabilities:
    """What the engine can do with an item type."""

    has_entitlement_check: bool
    has_content_tree: bool
    tracks_progress: bool
    leaf_kinds: frozenset[LeafKind]


ITEM_CAPABILITIES: dict[ItemType, ItemCapabilities] = {
    ItemType.COURSE: ItemCapabilities(
        has_entitlement_check=True,
        has_content_tree=True,
        tracks_progress=True,
        leaf_kinds=frozenset({LeafKind.VIDEO}),
    ),
    ItemType.TEST_SERIES: ItemCapabilities(
        has_entitlement_check=True,
        has_content_tree=True,
        tracks_progress=False,
        leaf_kinds=frozenset({LeafKind.TEST}),
    ),
    ItemType.EBOOK: ItemCapabilities(
        has_entitlement_check=True,
        has_content_tree=True,
        tracks_progress=False,
        leaf_kinds=frozenset({LeafKind.BOOK}),
    ),
    ItemType.STUDY_MATERIAL: ItemCapabilities(
        has_entitlement_check=True,
        has_content_tree=True,
        tracks_progress=False,
        leaf_kinds=frozenset({LeafKind.BOOK, LeafKind.VIDEO}),
    ),
}


def get_capabilities(item_type: ItemType | str) -> ItemCapabilities:
    """Get capabilities of an item type."""
    return ITEM_CAPABILITIES[ItemType(item_type)]


@dataclass
class Leaf:
    """A video, test or book inside a content tree."""

    leaf_id: UUID
    kind: LeafKind
    title: str
    position: int = 0
    is_free: bool = False
    is_preview: bool = False
    is_active: bool = True
    payload: str | None = None
    preview_payload: str | None = None

    @property
    def is_open(self) -> bool:
        """Visible without an entitlement."""
        return self.is_free or self.is_preview

    @classmethod
    def from_row(cls, row: Any) -> "Leaf":
        """Create Leaf instance from Cassandra row."""
        return cls(
            leaf_id=row.leaf_id,
            kind=LeafKind(row.kind),
            title=row.title or "",
            position=row.position or 0,
            is_free=bool(row.is_free),
            is_preview=bool(row.is_preview),
            is_active=row.is_active is not False,
            payload=row.payload,
            preview_payload=row.preview_payload,
        )


@dataclass
class Subcategory:
    """Named group of leaves inside a category."""

    name: str
    description: str = ""
    leaves: list[Leaf | None] = field(default_factory=list)


@dataclass
class Category:
    """Top-level group holding subcategories and/or direct leaves."""

    name: str
    description: str = ""
    leaves: list[Leaf | None] = field(default_factory=list)
    subcategories: list[Subcategory | None] = field(default_factory=list)


@dataclass
class ContentTree:
    """Ordered categories of a catalog item."""

    categories: list[Category | None] = field(default_factory=list)


@dataclass
class CatalogItem:
    """A purchasable product."""

    item_type: ItemType
    item_id: UUID
    title: str
    price: Decimal = Decimal(0)
    is_active: bool = True
    raw_tree: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_free(self) -> bool:
        """Free items are entitled through auto-approved orders."""
        return self.price == 0

    @property
    def capabilities(self) -> ItemCapabilities:
        """Capabilities of this item's type."""
        return get_capabilities(self.item_type)

    def accepts(self, leaf: Leaf) -> bool:
        """Whether a leaf's kind belongs to this item's type."""
        return leaf.kind in self.capabilities.leaf_kinds

    @classmethod
    def from_row(cls, row: Any) -> "CatalogItem":
        """Create CatalogItem instance from Cassandra row."""
        return cls(
            item_type=ItemType(row.item_type),
            item_id=row.item_id,
            title=row.title or "",
            price=row.price if row.price is not None else Decimal(0),
            is_active=row.is_active is not False,
            raw_tree=row.content_tree,
        )


# ==============================================================================
# Tree Resolution
# ==============================================================================


def _text(value: Any) -> str:
    """Read a stored name or description; numbers are kept, anything else is blank."""
    if isinstance(value, str):
        return value
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(value)
    return ""


def _resolve_leaves(refs: Any, leaves: dict[UUID, Leaf]) -> list[Leaf | None]:
    """Resolve a list of leaf id references, keeping dangling slots."""
    if not isinstance(refs, list):
        return []

    resolved: list[Leaf | None] = []
    for ref in refs:
        try:
            leaf_id = UUID(str(ref))
        except ValueError:
            resolved.append(None)
            continue
        resolved.append(leaves.get(leaf_id))
    return resolved


def build_content_tree(raw_tree: str | bytes | None, leaves: dict[UUID, Leaf]) -> ContentTree:
    """Build a ContentTree from its stored JSON form.

    Stored shape::

        [{"name": ..., "description": ..., "leaves": [leaf_id, ...],
          "subcategories": [{"name": ..., "leaves": [leaf_id, ...]}]}]

    Null or malformed nodes become ``None`` slots; unknown or inactive leaf
    ids become ``None`` leaf slots. Child lists of the wrong type read as
    empty and non-text names as blank.
    """
    if not raw_tree:
        return ContentTree()

    data = orjson.loads(raw_tree)
    if not isinstance(data, list):
        return ContentTree()

    categories: list[Category | None] = []
    for node in data:
        if not isinstance(node, dict):
            categories.append(None)
            continue

        subcategories: list[Subcategory | None] = []
        raw_subcategories = node.get("subcategories")
        if not isinstance(raw_subcategories, list):
            raw_subcategories = []
        for sub in raw_subcategories:
            if not isinstance(sub, dict):
                subcategories.append(None)
                continue
            subcategories.append(
                Subcategory(
                    name=_text(sub.get("name")),
                    description=_text(sub.get("description")),
                    leaves=_resolve_leaves(sub.get("leaves"), leaves),
                )
            )

        categories.append(
            Category(
                name=_text(node.get("name")),
                description=_text(node.get("description")),
                leaves=_resolve_leaves(node.get("leaves"), leaves),
                subcategories=subcategories,
            )
        )

    return ContentTree(categories=categories)
