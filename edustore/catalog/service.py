# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Catalog read service.

The catalog is owned by the administrative CRUD surface; the engine only
reads items, leaves and content trees from it.
"""

from typing import TYPE_CHECKING
from uuid import UUID

import orjson
import structlog

from .models import CatalogItem, ContentTree, ItemType, Leaf, LeafKind, build_content_tree


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


class CatalogService:
    """Read-only access to catalog items and their content trees."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._get_item = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.catalog_items
            WHERE item_type = ? AND item_id = ?
        """)

        self._get_leaves = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.catalog_leaves
            WHERE item_id = ?
        """)

        self._get_leaf = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.catalog_leaves
            WHERE item_id = ? AND leaf_id = ?
        """)

    async def get_item(
        self, item_type: ItemType | str, item_id: UUID
    ) -> CatalogItem | None:
        """Get an active catalog item.

        Returns:
            The item, or None when unknown or deactivated
        """
        result = await self.session.aexecute(
            self._get_item, [ItemType(item_type).value, item_id]
        )
        row = result.one()
        if not row:
            return None

        item = CatalogItem.from_row(row)
        return item if item.is_active else None

    async def get_active_leaves(
        self, item_id: UUID, kinds: frozenset[LeafKind] | None = None
    ) -> dict[UUID, Leaf]:
        """Get active leaves of an item keyed by leaf id.

        Args:
            item_id: Item ID
            kinds: Leaf kinds to keep, all kinds when None
        """
        rows = await self.session.aexecute(self._get_leaves, [item_id])

        leaves: dict[UUID, Leaf] = {}
        for row in rows:
            leaf = Leaf.from_row(row)
            if leaf.is_active and (kinds is None or leaf.kind in kinds):
                leaves[leaf.leaf_id] = leaf
        return leaves

    async def get_content_tree(self, item: CatalogItem) -> ContentTree:
        """Resolve the content tree of an item.

        References to deleted or deactivated leaves, or to leaves of a kind
        the item type does not hold, resolve to ``None``. An unreadable
        stored tree resolves to an empty tree.
        """
        leaves = await self.get_active_leaves(item.item_id, item.capabilities.leaf_kinds)

        try:
            tree = build_content_tree(item.raw_tree, leaves)
        except orjson.JSONDecodeError as e:
            logger.warning(
                "content_tree_unreadable",
                item_type=item.item_type.value,
                item_id=str(item.item_id),
                error=str(e),
            )
            return ContentTree()

        return tree

    async def get_leaf(self, item_id: UUID, leaf_id: UUID) -> Leaf | None:
        """Get an active leaf of an item."""
        result = await self.session.aexecute(self._get_leaf, [item_id, leaf_id])
        row = result.one()
        if not row:
            return None

        leaf = Leaf.from_row(row)
        return leaf if leaf.is_active else None

    async def count_active_leaves(
        self, item_id: UUID, kinds: frozenset[LeafKind] | None = None
    ) -> int:
        """Count active leaves of an item at call time."""
        return len(await self.get_active_leaves(item_id, kinds))
