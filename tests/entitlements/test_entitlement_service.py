"""Tests for the entitlement resolver."""

from decimal import Decimal
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from edustore.catalog.models import CatalogItem, ItemType
from edustore.entitlements.service import EntitlementService
from edustore.orders.models import OrderStatus


@pytest.fixture
def service(fake_session) -> EntitlementService:
    """Resolver without a cache."""
    return EntitlementService(session=fake_session, keyspace="test_keyspace")


@pytest.fixture
def cached_service(fake_session, mock_redis) -> EntitlementService:
    """Resolver with a Redis cache."""
    return EntitlementService(
        session=fake_session, keyspace="test_keyspace", redis=mock_redis, cache_ttl=30
    )


class TestIsEntitled:
    """Tests for is_entitled."""

    @pytest.mark.asyncio
    async def test_anonymous(self, service, fake_session) -> None:
        """Anonymous callers are never entitled and nothing is read."""
        assert await service.is_entitled(None, ItemType.COURSE, uuid4()) is False
        fake_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_approved_slot(self, service, fake_session, make_slot_row) -> None:
        """An approved order grants access."""
        slot = make_slot_row(status="approved")
        fake_session.on(service._get_slot, fake_session.result([slot]))

        assert await service.is_entitled(slot.user_id, "course", slot.item_id) is True
        assert fake_session.calls_to(service._get_slot) == [
            [slot.user_id, "course", slot.item_id]
        ]

    @pytest.mark.asyncio
    async def test_pending_slot(self, service, fake_session, make_slot_row) -> None:
        """A pending order does not grant access."""
        slot = make_slot_row(status="pending")
        fake_session.on(service._get_slot, fake_session.result([slot]))

        entitled = await service.is_entitled(slot.user_id, ItemType.EBOOK, slot.item_id)

        assert entitled is False

    @pytest.mark.asyncio
    async def test_no_order(self, service) -> None:
        """Without a live order there is no access."""
        assert await service.is_entitled(uuid4(), ItemType.COURSE, uuid4()) is False

    @pytest.mark.asyncio
    async def test_cache_hit_skips_database(
        self, cached_service, fake_session, mock_redis
    ) -> None:
        """A cached verdict is returned without a ledger read."""
        mock_redis.get = AsyncMock(return_value="1")

        assert await cached_service.is_entitled(uuid4(), ItemType.COURSE, uuid4()) is True
        fake_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cache_miss_stores_verdict(
        self, cached_service, fake_session, mock_redis, make_slot_row
    ) -> None:
        """Fresh verdicts are cached with the configured TTL."""
        slot = make_slot_row()
        fake_session.on(cached_service._get_slot, fake_session.result([slot]))

        await cached_service.is_entitled(slot.user_id, ItemType.COURSE, slot.item_id)

        mock_redis.setex.assert_awaited_once_with(
            f"entitlement:{slot.user_id}:course:{slot.item_id}", 30, "1"
        )

    @pytest.mark.asyncio
    async def test_negative_verdict_not_cached(
        self, cached_service, fake_session, mock_redis, make_slot_row
    ) -> None:
        """A pending order is re-read on every call so approval shows at once."""
        slot = make_slot_row(status="pending")
        fake_session.on(cached_service._get_slot, fake_session.result([slot]))

        first = await cached_service.is_entitled(slot.user_id, ItemType.COURSE, slot.item_id)
        slot.status = "approved"
        second = await cached_service.is_entitled(slot.user_id, ItemType.COURSE, slot.item_id)

        assert (first, second) == (False, True)
        mock_redis.setex.assert_awaited_once()
        assert len(fake_session.calls_to(cached_service._get_slot)) == 2

    @pytest.mark.asyncio
    async def test_bypass_cache(
        self, cached_service, fake_session, mock_redis, make_slot_row
    ) -> None:
        """use_cache=False always reads the ledger."""
        mock_redis.get = AsyncMock(return_value="1")
        slot = make_slot_row(status="pending")
        fake_session.on(cached_service._get_slot, fake_session.result([slot]))

        entitled = await cached_service.is_entitled(
            slot.user_id, ItemType.COURSE, slot.item_id, use_cache=False
        )

        assert entitled is False
        mock_redis.get.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_cache(self, fake_session, mock_redis) -> None:
        """A zero TTL never touches Redis."""
        service = EntitlementService(
            session=fake_session, keyspace="test_keyspace", redis=mock_redis, cache_ttl=0
        )

        await service.is_entitled(uuid4(), ItemType.COURSE, uuid4())

        mock_redis.get.assert_not_awaited()
        mock_redis.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_errors_fall_back_to_ledger(
        self, cached_service, fake_session, mock_redis, make_slot_row
    ) -> None:
        """Cache failures are logged and the ledger answers."""
        mock_redis.get = AsyncMock(side_effect=RedisConnectionError("down"))
        mock_redis.setex = AsyncMock(side_effect=RedisConnectionError("down"))
        slot = make_slot_row()
        fake_session.on(cached_service._get_slot, fake_session.result([slot]))

        assert await cached_service.is_entitled(slot.user_id, "course", slot.item_id) is True


class TestHasAccess:
    """Tests for has_access."""

    @staticmethod
    def _item(price: str) -> CatalogItem:
        return CatalogItem(
            item_type=ItemType.COURSE, item_id=uuid4(), title="Course", price=Decimal(price)
        )

    @pytest.mark.asyncio
    async def test_free_item_signed_in(self, service, fake_session) -> None:
        """Signed-in callers reach free items without a ledger read."""
        assert await service.has_access(uuid4(), self._item("0")) is True
        fake_session.aexecute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_free_item_anonymous(self, service) -> None:
        assert await service.has_access(None, self._item("0")) is False

    @pytest.mark.asyncio
    async def test_paid_item_uses_ledger(
        self, cached_service, fake_session, mock_redis, make_slot_row
    ) -> None:
        item = self._item("499")
        slot = make_slot_row(item_id=item.item_id)
        fake_session.on(cached_service._get_slot, fake_session.result([slot]))
        mock_redis.get = AsyncMock(return_value="0")

        assert await cached_service.has_access(slot.user_id, item, use_cache=False) is True
        mock_redis.get.assert_not_awaited()


class TestCheckAccess:
    """Tests for check_access."""

    @pytest.mark.asyncio
    async def test_no_order_can_order(self, service) -> None:
        response = await service.check_access(uuid4(), ItemType.COURSE, uuid4())

        assert response.has_access is False
        assert response.can_order is True
        assert response.order_id is None

    @pytest.mark.asyncio
    async def test_pending_order(self, service, fake_session, make_slot_row) -> None:
        """A pending order blocks re-ordering without granting access."""
        slot = make_slot_row(status="pending")
        fake_session.on(service._get_slot, fake_session.result([slot]))

        response = await service.check_access(slot.user_id, ItemType.COURSE, slot.item_id)

        assert response.has_access is False
        assert response.can_order is False
        assert response.order_status == OrderStatus.PENDING
        assert response.purchase_date is None

    @pytest.mark.asyncio
    async def test_approved_order(self, service, fake_session, make_slot_row) -> None:
        slot = make_slot_row(status="approved")
        fake_session.on(service._get_slot, fake_session.result([slot]))

        response = await service.check_access(slot.user_id, ItemType.COURSE, slot.item_id)

        assert response.has_access is True
        assert response.order_id == slot.order_id
        assert response.purchase_date is not None


class TestListAndInvalidate:
    """Tests for list_entitlements and invalidate."""

    @pytest.mark.asyncio
    async def test_only_approved_listed(self, service, fake_session, make_slot_row) -> None:
        user_id = uuid4()
        approved = make_slot_row(user_id=user_id, item_type="ebook")
        pending = make_slot_row(user_id=user_id, status="pending")
        fake_session.on(service._get_user_slots, fake_session.result([approved, pending]))

        slots = await service.list_entitlements(user_id)

        assert [s.item_id for s in slots] == [approved.item_id]
        assert slots[0].item_type == ItemType.EBOOK

    @pytest.mark.asyncio
    async def test_invalidate_deletes_key(self, cached_service, mock_redis) -> None:
        user_id, item_id = uuid4(), uuid4()

        await cached_service.invalidate(user_id, ItemType.COURSE, item_id)

        mock_redis.delete.assert_awaited_once_with(f"entitlement:{user_id}:course:{item_id}")

    @pytest.mark.asyncio
    async def test_invalidate_without_redis(self, service) -> None:
        """No cache means nothing to invalidate."""
        await service.invalidate(uuid4(), ItemType.COURSE, uuid4())
