# ruff: noqa: S608 - All CQL queries use keyspace from config, not user input
"""Order ledger service layer.

Business logic for:
- Creating orders (free orders are approved on creation)
- Payment evidence submission
- Admin approval / rejection
- Gateway payment confirmation
- Listing orders (user and admin views)

Every transition is a single-row lightweight transaction guarded by
``IF status = 'pending'``. The (user, item) uniqueness rule is enforced by
claiming ``order_slots`` rows with ``IF NOT EXISTS``.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any
from uuid import UUID

from edustore.catalog.models import get_capabilities
from edustore.core.errors import (
    DuplicateOrderError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from edustore.core.logging import get_logger

from .models import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    create_free_order,
    create_pending_order,
)
from .payments import build_payment_instructions, verify_gateway_signature
from .schemas import PaymentInstructions


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from edustore.catalog.service import CatalogService
    from edustore.config.settings import Settings
    from edustore.entitlements.service import EntitlementService
    from edustore.notifications.service import OrderNotifier
    from edustore.progress.service import ProgressService


logger = get_logger(__name__)


class OrderService:
    """Service for the order ledger and its state machine."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        settings: "Settings",
        catalog: "CatalogService",
        entitlements: "EntitlementService",
        progress: "ProgressService",
        notifier: "OrderNotifier",
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.settings = settings
        self.catalog = catalog
        self.entitlements = entitlements
        self.progress = progress
        self.notifier = notifier
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        # Orders
        self._insert_order = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.orders
            (order_id, user_id, items, amount, payment_method, status,
             gateway_order_id, approved_at, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_order = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.orders
            WHERE order_id = ?
        """)

        self._submit_evidence = self.session.prepare(f"""
            UPDATE {self.keyspace}.orders
            SET payment_evidence = ?, evidence_submitted_at = ?, updated_at = ?
            WHERE order_id = ?
            IF status = ?
        """)

        self._approve_order = self.session.prepare(f"""
            UPDATE {self.keyspace}.orders
            SET status = ?, approved_by = ?, approved_at = ?,
                gateway_payment_id = ?, updated_at = ?
            WHERE order_id = ?
            IF status = ?
        """)

        self._reject_order = self.session.prepare(f"""
            UPDATE {self.keyspace}.orders
            SET status = ?, rejected_by = ?, rejected_at = ?,
                rejection_reason = ?, updated_at = ?
            WHERE order_id = ?
            IF status = ?
        """)

        # Order slots (one live order per user and item)
        self._claim_slot = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.order_slots
            (user_id, item_type, item_id, order_id, status, approved_at, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

        self._approve_slot = self.session.prepare(f"""
            UPDATE {self.keyspace}.order_slots
            SET status = ?, approved_at = ?
            WHERE user_id = ? AND item_type = ? AND item_id = ?
            IF order_id = ?
        """)

        self._release_slot = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.order_slots
            WHERE user_id = ? AND item_type = ? AND item_id = ?
            IF order_id = ?
        """)

        # Lookup tables
        self._insert_order_by_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.orders_by_user
            (user_id, created_at, order_id)
            VALUES (?, ?, ?)
        """)

        self._get_user_orders = self.session.prepare(f"""
            SELECT order_id FROM {self.keyspace}.orders_by_user
            WHERE user_id = ?
        """)

        self._insert_order_by_status = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.orders_by_status
            (status, created_at, order_id)
            VALUES (?, ?, ?)
        """)

        self._delete_order_by_status = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.orders_by_status
            WHERE status = ? AND created_at = ? AND order_id = ?
        """)

        self._get_orders_by_status = self.session.prepare(f"""
            SELECT order_id FROM {self.keyspace}.orders_by_status
            WHERE status = ?
            LIMIT ?
        """)

    # ==========================================================================
    # Creation
    # ==========================================================================

    async def create_order(
        self,
        user_id: UUID,
        line_items: list[OrderLineItem],
        amount: Decimal,
        payment_method: PaymentMethod = PaymentMethod.MANUAL_TRANSFER,
    ) -> Order:
        """Create an order for one or more catalog items.

        A zero-amount order is approved on creation and progress is
        initialised for every item that tracks it.

        Raises:
            ValidationError: Negative/mismatched amount, empty or repeated items
            NotFoundError: If an item is unknown or inactive
            DuplicateOrderError: If a pending or approved order already
                exists for one of the items
        """
        if not line_items:
            raise ValidationError("Order has no items")

        keys = {(li.item_type, li.item_id) for li in line_items}
        if len(keys) != len(line_items):
            raise ValidationError("Order repeats an item")

        if amount < 0:
            raise ValidationError("Amount cannot be negative")

        priced = await self._price_line_items(line_items)
        total = sum((li.price for li in priced), Decimal(0))
        if amount != total:
            raise ValidationError(
                f"Amount {amount} does not match catalog price {total}"
            )

        if total == 0:
            order = create_free_order(user_id, priced)
        else:
            if payment_method == PaymentMethod.FREE:
                raise ValidationError("Paid items cannot be ordered for free")
            if (
                payment_method == PaymentMethod.GATEWAY
                and not self.settings.gateway_configured
            ):
                raise ValidationError("Gateway payments are not available")
            order = create_pending_order(user_id, priced, total, payment_method)

        await self._claim_slots(order)

        try:
            await self.session.aexecute(
                self._insert_order,
                [
                    order.order_id,
                    order.user_id,
                    [li.as_tuple() for li in order.line_items],
                    order.amount,
                    order.payment_method.value,
                    order.status.value,
                    order.gateway_order_id,
                    order.approved_at,
                    order.created_at,
                    order.updated_at,
                ],
            )
            await self.session.aexecute(
                self._insert_order_by_user,
                [order.user_id, order.created_at, order.order_id],
            )
            await self.session.aexecute(
                self._insert_order_by_status,
                [order.status.value, order.created_at, order.order_id],
            )
        except Exception:
            await self._release_slots(order, order.line_items)
            raise

        logger.info(
            "order_created",
            order_id=str(order.order_id),
            user_id=str(user_id),
            status=order.status.value,
            amount=str(order.amount),
            payment_method=order.payment_method.value,
            items_count=len(order.line_items),
        )

        if order.is_approved:
            await self._grant(order)

        return order

    async def _price_line_items(
        self, line_items: list[OrderLineItem]
    ) -> list[OrderLineItem]:
        """Attach current catalog prices."""
        priced = []
        for li in line_items:
            item = await self.catalog.get_item(li.item_type, li.item_id)
            if not item:
                raise NotFoundError(f"{li.item_type.value} {li.item_id} not found")
            priced.append(
                OrderLineItem(item_type=li.item_type, item_id=li.item_id, price=item.price)
            )
        return priced

    async def _claim_slots(self, order: Order) -> None:
        """Claim the (user, item) slot of every line item, all or nothing."""
        claimed: list[OrderLineItem] = []
        for li in order.line_items:
            params = [
                order.user_id,
                li.item_type.value,
                li.item_id,
                order.order_id,
                order.status.value,
                order.approved_at,
                order.created_at,
            ]
            result = await self.session.aexecute(self._claim_slot, params)
            if not result.was_applied and await self._release_stale_slot(
                order.user_id, li, result.one()
            ):
                result = await self.session.aexecute(self._claim_slot, params)

            if not result.was_applied:
                await self._release_slots(order, claimed)
                logger.info(
                    "order_duplicate_rejected",
                    user_id=str(order.user_id),
                    item_type=li.item_type.value,
                    item_id=str(li.item_id),
                )
                raise DuplicateOrderError
            claimed.append(li)

    async def _release_stale_slot(
        self, user_id: UUID, li: OrderLineItem, existing: Any
    ) -> bool:
        """Free a slot still held by a rejected order.

        Rejection releases its slots, but a failed release leaves the slot
        behind. Slots of pending or approved orders are never touched.
        """
        holder_id = existing.order_id if existing else None
        if holder_id is None:
            return False

        holder = await self.get_order(holder_id)
        if holder is None or holder.status != OrderStatus.REJECTED:
            return False

        result = await self.session.aexecute(
            self._release_slot,
            [user_id, li.item_type.value, li.item_id, holder_id],
        )
        logger.warning(
            "order_stale_slot_released",
            order_id=str(holder_id),
            user_id=str(user_id),
            item_type=li.item_type.value,
            item_id=str(li.item_id),
            released=result.was_applied,
        )
        return result.was_applied

    async def _release_slots(self, order: Order, line_items: list[OrderLineItem]) -> None:
        """Release slots held by this order (others are left alone)."""
        for li in line_items:
            await self.session.aexecute(
                self._release_slot,
                [order.user_id, li.item_type.value, li.item_id, order.order_id],
            )

    def payment_instructions(self, order: Order) -> PaymentInstructions | None:
        """Instructions for paying a pending order."""
        if not order.is_pending:
            return None
        return build_payment_instructions(order, self.settings)

    # ==========================================================================
    # Transitions
    # ==========================================================================

    async def submit_proof_of_payment(
        self, order_id: UUID, user_id: UUID, evidence: str
    ) -> Order:
        """Attach payment evidence to the caller's pending order.

        Raises:
            NotFoundError: If the order does not exist or is not the caller's
            InvalidTransitionError: If the order is no longer pending
        """
        order = await self._require_owned_order(order_id, user_id)
        if not order.is_pending:
            raise InvalidTransitionError(f"Order is already {order.status.value}")

        now = datetime.now(UTC)
        result = await self.session.aexecute(
            self._submit_evidence,
            [evidence, now, now, order_id, OrderStatus.PENDING.value],
        )
        if not result.was_applied:
            raise InvalidTransitionError

        order.payment_evidence = evidence
        order.evidence_submitted_at = now
        order.updated_at = now

        logger.info("order_evidence_submitted", order_id=str(order_id), user_id=str(user_id))
        return order

    async def approve(self, order_id: UUID, actor_id: UUID | None) -> Order:
        """Approve a pending order and grant access.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the order is not pending
        """
        order = await self._require_order(order_id)
        return await self._approve(order, actor_id)

    async def confirm_gateway_payment(
        self,
        order_id: UUID,
        user_id: UUID,
        gateway_order_id: str,
        gateway_payment_id: str,
        signature: str,
    ) -> Order:
        """Approve a gateway order from a signed payment confirmation.

        An unverifiable signature leaves the order pending; the caller may
        retry.

        Raises:
            NotFoundError: If the order does not exist or is not the caller's
            ValidationError: If the order is not a gateway order or the
                signature does not verify
            InvalidTransitionError: If the order is not pending
        """
        order = await self._require_owned_order(order_id, user_id)
        if order.payment_method != PaymentMethod.GATEWAY:
            raise ValidationError("Order is not a gateway order")
        if not order.is_pending:
            raise InvalidTransitionError(f"Order is already {order.status.value}")

        verified = gateway_order_id == order.gateway_order_id and verify_gateway_signature(
            gateway_order_id,
            gateway_payment_id,
            signature,
            self.settings.payment_gateway_key_secret,
        )
        if not verified:
            logger.warning(
                "gateway_signature_invalid",
                order_id=str(order_id),
                gateway_order_id=gateway_order_id,
            )
            raise ValidationError("Payment signature could not be verified")

        return await self._approve(order, None, gateway_payment_id=gateway_payment_id)

    async def reject(self, order_id: UUID, actor_id: UUID, reason: str) -> Order:
        """Reject a pending order; the record is kept for audit.

        Raises:
            NotFoundError: If the order does not exist
            InvalidTransitionError: If the order is not pending
        """
        order = await self._require_order(order_id)
        if not order.is_pending:
            raise InvalidTransitionError(f"Order is already {order.status.value}")

        now = datetime.now(UTC)
        result = await self.session.aexecute(
            self._reject_order,
            [
                OrderStatus.REJECTED.value,
                actor_id,
                now,
                reason,
                now,
                order_id,
                OrderStatus.PENDING.value,
            ],
        )
        if not result.was_applied:
            raise InvalidTransitionError

        order.status = OrderStatus.REJECTED
        order.rejected_by = actor_id
        order.rejected_at = now
        order.rejection_reason = reason
        order.updated_at = now

        # The order is rejected at this point; a held slot is reclaimed on reorder
        try:
            await self._release_slots(order, order.line_items)
        except Exception:
            logger.exception(
                "order_slot_release_failed",
                order_id=str(order_id),
                user_id=str(order.user_id),
            )
        await self._move_status_index(order, OrderStatus.PENDING)
        await self._invalidate(order)

        logger.info(
            "order_rejected",
            order_id=str(order_id),
            rejected_by=str(actor_id),
            reason=reason,
        )

        await self.notifier.order_rejected(order)
        return order

    async def _approve(
        self,
        order: Order,
        actor_id: UUID | None,
        gateway_payment_id: str | None = None,
    ) -> Order:
        if not order.is_pending:
            raise InvalidTransitionError(f"Order is already {order.status.value}")

        now = datetime.now(UTC)
        result = await self.session.aexecute(
            self._approve_order,
            [
                OrderStatus.APPROVED.value,
                actor_id,
                now,
                gateway_payment_id,
                now,
                order.order_id,
                OrderStatus.PENDING.value,
            ],
        )
        if not result.was_applied:
            raise InvalidTransitionError

        order.status = OrderStatus.APPROVED
        order.approved_by = actor_id
        order.approved_at = now
        order.gateway_payment_id = gateway_payment_id
        order.updated_at = now

        for li in order.line_items:
            await self.session.aexecute(
                self._approve_slot,
                [
                    OrderStatus.APPROVED.value,
                    now,
                    order.user_id,
                    li.item_type.value,
                    li.item_id,
                    order.order_id,
                ],
            )
        await self._move_status_index(order, OrderStatus.PENDING)

        logger.info(
            "order_approved",
            order_id=str(order.order_id),
            user_id=str(order.user_id),
            approved_by=str(actor_id) if actor_id else None,
            gateway_payment_id=gateway_payment_id,
        )

        await self._grant(order)
        await self.notifier.order_approved(order)
        return order

    async def _grant(self, order: Order) -> None:
        """Side effects of an approved order."""
        for li in order.line_items:
            await self.entitlements.invalidate(order.user_id, li.item_type, li.item_id)
            if get_capabilities(li.item_type).tracks_progress:
                await self.progress.initialize_progress(
                    order.user_id, li.item_id, order_id=order.order_id
                )

    async def _invalidate(self, order: Order) -> None:
        for li in order.line_items:
            await self.entitlements.invalidate(order.user_id, li.item_type, li.item_id)

    async def _move_status_index(self, order: Order, previous: OrderStatus) -> None:
        await self.session.aexecute(
            self._delete_order_by_status,
            [previous.value, order.created_at, order.order_id],
        )
        await self.session.aexecute(
            self._insert_order_by_status,
            [order.status.value, order.created_at, order.order_id],
        )

    # ==========================================================================
    # Queries
    # ==========================================================================

    async def get_order(self, order_id: UUID) -> Order | None:
        """Get an order by ID."""
        result = await self.session.aexecute(self._get_order, [order_id])
        row = result.one()
        return Order.from_row(row) if row else None

    async def _require_order(self, order_id: UUID) -> Order:
        order = await self.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")
        return order

    async def _require_owned_order(self, order_id: UUID, user_id: UUID) -> Order:
        order = await self._require_order(order_id)
        if order.user_id != user_id:
            raise NotFoundError("Order not found")
        return order

    async def get_order_for(
        self, order_id: UUID, user_id: UUID, is_admin: bool = False
    ) -> Order:
        """Get an order visible to the caller (owner or admin)."""
        if is_admin:
            return await self._require_order(order_id)
        return await self._require_owned_order(order_id, user_id)

    async def list_user_orders(self, user_id: UUID) -> list[Order]:
        """List a user's orders, newest first."""
        rows = await self.session.aexecute(self._get_user_orders, [user_id])
        return await self._load_orders(row.order_id for row in rows)

    async def list_orders_by_status(
        self, status: OrderStatus, limit: int = 100
    ) -> list[Order]:
        """List orders in a status, newest first (admin review queue)."""
        rows = await self.session.aexecute(
            self._get_orders_by_status, [status.value, limit]
        )
        orders = await self._load_orders(row.order_id for row in rows)
        # Index rows may briefly outlive a transition
        return [o for o in orders if o.status == status]

    async def _load_orders(self, order_ids) -> list[Order]:
        orders = []
        for order_id in order_ids:
            order = await self.get_order(order_id)
            if order:
                orders.append(order)
        return orders
