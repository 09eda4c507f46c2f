# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Entitlement resolver.

A user is entitled to an item iff the (user, item) order slot exists and
its order is approved. Slots are only ever held by the live (pending or
approved) order, so this is the same as "the most recent non-rejected
order is approved". Every content-serving path asks this service.
"""

from typing import TYPE_CHECKING
from uuid import UUID

from redis.exceptions import RedisError

from edustore.catalog.models import CatalogItem, ItemType, get_capabilities
from edustore.core.logging import get_logger
from edustore.core.redis import entitlement_cache_key
from edustore.orders.models import OrderSlot, OrderStatus

from .schemas import CheckAccessResponse


if TYPE_CHECKING:
    from cassandra.cluster import Session
    from redis.asyncio import Redis


logger = get_logger(__name__)


class EntitlementService:
    """Answers "may this user see this item's protected content?"."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        redis: "Redis | None" = None,
        cache_ttl: int = 60,
    ):
        """Initialize with Cassandra session and optional Redis cache."""
        self.session = session
        self.keyspace = keyspace
        self.redis = redis
        self.cache_ttl = cache_ttl
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._get_slot = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.order_slots
            WHERE user_id = ? AND item_type = ? AND item_id = ?
        """)

        self._get_user_slots = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.order_slots
            WHERE user_id = ?
        """)

    @property
    def cache_enabled(self) -> bool:
        """Verdicts are cached only with Redis and a positive TTL."""
        return self.redis is not None and self.cache_ttl > 0

    # ==========================================================================
    # Resolution
    # ==========================================================================

    async def get_slot(
        self, user_id: UUID, item_type: ItemType | str, item_id: UUID
    ) -> OrderSlot | None:
        """Get the live order slot of a (user, item) pair."""
        result = await self.session.aexecute(
            self._get_slot, [user_id, ItemType(item_type).value, item_id]
        )
        row = result.one()
        return OrderSlot.from_row(row) if row else None

    async def is_entitled(
        self,
        user_id: UUID | None,
        item_type: ItemType | str,
        item_id: UUID,
        use_cache: bool = True,
    ) -> bool:
        """Check if a user holds an approved order for an item.

        Args:
            user_id: Caller, None for anonymous
            item_type: Item type
            item_id: Item ID
            use_cache: Read a cached verdict first. Write paths pass False.

        Returns:
            True if entitled; always False for anonymous callers
        """
        if user_id is None:
            return False

        item_type = ItemType(item_type)
        if not get_capabilities(item_type).has_entitlement_check:
            return True

        cache_key = entitlement_cache_key(str(user_id), item_type.value, str(item_id))
        if use_cache and self.cache_enabled:
            cached = await self._cache_get(cache_key)
            if cached is not None:
                return cached == "1"

        slot = await self.get_slot(user_id, item_type, item_id)
        entitled = slot is not None and slot.grants_access

        # Approved is terminal; a negative verdict may go stale on approval
        if entitled and self.cache_enabled:
            await self._cache_set(cache_key)

        return entitled

    async def has_access(
        self, user_id: UUID | None, item: CatalogItem, use_cache: bool = True
    ) -> bool:
        """Check full access to an item.

        Signed-in callers always have access to free items; everyone else
        needs an approved order.
        """
        if user_id is not None and item.is_free:
            return True
        return await self.is_entitled(
            user_id, item.item_type, item.item_id, use_cache=use_cache
        )

    async def check_access(
        self, user_id: UUID, item_type: ItemType | str, item_id: UUID
    ) -> CheckAccessResponse:
        """Check access with ledger details (always a fresh read)."""
        slot = await self.get_slot(user_id, item_type, item_id)
        if slot is None:
            return CheckAccessResponse(has_access=False, can_order=True)

        return CheckAccessResponse(
            has_access=slot.grants_access,
            order_id=slot.order_id,
            order_status=slot.status,
            purchase_date=slot.approved_at if slot.grants_access else None,
            can_order=False,
        )

    async def list_entitlements(self, user_id: UUID) -> list[OrderSlot]:
        """List every item the user is entitled to."""
        rows = await self.session.aexecute(self._get_user_slots, [user_id])

        slots = []
        for row in rows:
            slot = OrderSlot.from_row(row)
            if slot.status == OrderStatus.APPROVED:
                slots.append(slot)
        return slots

    # ==========================================================================
    # Cache
    # ==========================================================================

    async def invalidate(
        self, user_id: UUID, item_type: ItemType | str, item_id: UUID
    ) -> None:
        """Drop a cached verdict after an order transition."""
        if not self.redis:
            return

        cache_key = entitlement_cache_key(
            str(user_id), ItemType(item_type).value, str(item_id)
        )
        try:
            await self.redis.delete(cache_key)
        except RedisError as e:
            logger.warning("entitlement_cache_invalidate_failed", key=cache_key, error=str(e))

    async def _cache_get(self, key: str) -> str | None:
        try:
            return await self.redis.get(key)
        except RedisError as e:
            logger.warning("entitlement_cache_read_failed", key=key, error=str(e))
            return None

    async def _cache_set(self, key: str) -> None:
        try:
            await self.redis.setex(key, self.cache_ttl, "1")
        except RedisError as e:
            logger.warning("entitlement_cache_write_failed", key=key, error=str(e))
