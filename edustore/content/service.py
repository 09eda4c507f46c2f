"""Content access service.

Serves catalog content trees and single leaves through the entitlement
resolver and the visibility filter.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from edustore.catalog.models import CatalogItem, ItemType
from edustore.core.errors import NotEntitledError, NotFoundError
from edustore.core.logging import get_logger

from .filtering import filter_leaf, filter_tree
from .schemas import ContentTreeResponse, LeafAccessResponse


if TYPE_CHECKING:
    from edustore.auth.schemas import UserResponse
    from edustore.catalog.service import CatalogService
    from edustore.entitlements.service import EntitlementService


logger = get_logger(__name__)


class ContentService:
    """Filtered views of catalog content."""

    def __init__(self, catalog: "CatalogService", entitlements: "EntitlementService"):
        self.catalog = catalog
        self.entitlements = entitlements

    async def _require_item(self, item_type: ItemType, item_id: UUID) -> CatalogItem:
        item = await self.catalog.get_item(item_type, item_id)
        if not item or not item.capabilities.has_content_tree:
            raise NotFoundError(f"{item_type.value} not found")
        return item

    async def has_full_access(
        self, user: "UserResponse | None", item: CatalogItem
    ) -> bool:
        """Full visibility: entitled, or any signed-in caller of a free item."""
        return await self.entitlements.has_access(user.id if user else None, item)

    async def get_content_tree(
        self,
        user: "UserResponse | None",
        item_type: ItemType,
        item_id: UUID,
    ) -> ContentTreeResponse:
        """Get an item's content tree as the caller may see it.

        Raises:
            NotFoundError: If the item does not exist, is inactive or has no
                content tree
        """
        item = await self._require_item(item_type, item_id)
        entitled = await self.has_full_access(user, item)

        tree = await self.catalog.get_content_tree(item)
        filtered = filter_tree(tree, entitled)

        logger.debug(
            "content_tree_served",
            item_type=item_type.value,
            item_id=str(item_id),
            access_type=filtered.access_type.value,
            total_locked=filtered.total_locked,
        )

        return ContentTreeResponse(
            item_type=item.item_type,
            item_id=item.item_id,
            title=item.title,
            **filtered.model_dump(),
        )

    async def get_leaf_access(
        self,
        user: "UserResponse | None",
        item_type: ItemType,
        item_id: UUID,
        leaf_id: UUID,
    ) -> LeafAccessResponse:
        """Get the payload of one leaf.

        Entitled callers and free leaves get the full payload; preview
        leaves get only the preview payload.

        Raises:
            NotFoundError: If the item or leaf does not exist, or the leaf
                kind does not belong to the item type
            NotEntitledError: If the leaf is locked for the caller
        """
        item = await self._require_item(item_type, item_id)

        leaf = await self.catalog.get_leaf(item_id, leaf_id)
        if not leaf or not item.accepts(leaf):
            raise NotFoundError("Content not found")

        entitled = await self.has_full_access(user, item)
        projected = filter_leaf(leaf, entitled)
        if projected is None:
            logger.info(
                "content_access_denied",
                item_type=item_type.value,
                item_id=str(item_id),
                leaf_id=str(leaf_id),
            )
            raise NotEntitledError

        return LeafAccessResponse(
            item_type=item.item_type,
            item_id=item.item_id,
            leaf=projected,
            is_preview_mode=not entitled and not leaf.is_free,
        )
