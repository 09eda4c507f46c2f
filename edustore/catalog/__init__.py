"""Catalog module.

Read-only view of purchasable items (courses, test series, e-books,
study materials) and their Category -> Subcategory -> Leaf content trees.
"""

from .models import (
    CATALOG_TABLES_CQL,
    CatalogItem,
    Category,
    ContentTree,
    ItemCapabilities,
    ItemType,
    Leaf,
    LeafKind,
    Subcategory,
    get_capabilities,
)
from .service import CatalogService


__all__ = [
    "CATALOG_TABLES_CQL",
    "CatalogItem",
    "CatalogService",
    "Category",
    "ContentTree",
    "ItemCapabilities",
    "ItemType",
    "Leaf",
    "LeafKind",
    "Subcategory",
    "get_capabilities",
]
