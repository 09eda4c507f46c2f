"""Order ledger models and Cassandra schema.

An order is one purchase attempt by one user. It always holds a list of
line items; single-item requests are normalised to one line item at the
API boundary.

Lifecycle:
- PENDING: created for paid items, awaiting payment proof / approval
- APPROVED: terminal, grants access (free orders are created approved)
- REJECTED: terminal, kept for audit; a fresh order must be created
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from edustore.catalog.models import ItemType


class OrderStatus(str, Enum):
    """Order status."""

    PENDING = "pending"  # Awaiting payment confirmation
    APPROVED = "approved"  # Access granted
    REJECTED = "rejected"  # Refused by admin


class PaymentMethod(str, Enum):
    """How the order is paid."""

    MANUAL_TRANSFER = "manual_transfer"  # Screenshot upload + admin approval
    GATEWAY = "gateway"  # Signed gateway confirmation
    FREE = "free"  # Zero amount, auto-approved


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Full order record, kept forever (audit)
ORDERS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.orders (
    order_id UUID PRIMARY KEY,
    user_id UUID,
    items LIST<FROZEN<TUPLE<TEXT, UUID, DECIMAL>>>,
    amount DECIMAL,
    payment_method TEXT,
    status TEXT,
    payment_evidence TEXT,
    evidence_submitted_at TIMESTAMP,
    gateway_order_id TEXT,
    gateway_payment_id TEXT,
    approved_by UUID,
    approved_at TIMESTAMP,
    rejected_by UUID,
    rejected_at TIMESTAMP,
    rejection_reason TEXT,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# One row per (user, item) holding the live (pending or approved) order.
# Claimed with INSERT ... IF NOT EXISTS, released when the order is rejected.
# This is also the index the entitlement resolver reads.
ORDER_SLOTS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.order_slots (
    user_id UUID,
    item_type TEXT,
    item_id UUID,
    order_id UUID,
    status TEXT,
    approved_at TIMESTAMP,
    created_at TIMESTAMP,
    PRIMARY KEY ((user_id), item_type, item_id)
)
"""

# Lookup: orders per user, newest first
ORDERS_BY_USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.orders_by_user (
    user_id UUID,
    created_at TIMESTAMP,
    order_id UUID,
    PRIMARY KEY ((user_id), created_at, order_id)
) WITH CLUSTERING ORDER BY (created_at DESC, order_id ASC)
"""

# Lookup: admin review queue per status, newest first
ORDERS_BY_STATUS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.orders_by_status (
    status TEXT,
    created_at TIMESTAMP,
    order_id UUID,
    PRIMARY KEY ((status), created_at, order_id)
) WITH CLUSTERING ORDER BY (created_at DESC, order_id ASC)
"""

ORDERS_TABLES_CQL = [
    ORDERS_TABLE_CQL,
    ORDER_SLOTS_TABLE_CQL,
    ORDERS_BY_USER_TABLE_CQL,
    ORDERS_BY_STATUS_TABLE_CQL,
]


# ==============================================================================
# Entity
# ==============================================================================


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


@dataclass(frozen=True)
class OrderLineItem:
    """One purchased item and the price it was ordered at."""

    item_type: ItemType
    item_id: UUID
    price: Decimal = Decimal(0)

    def as_tuple(self) -> tuple[str, UUID, Decimal]:
        """Tuple form stored in the orders.items column."""
        return (self.item_type.value, self.item_id, self.price)

    @classmethod
    def from_tuple(cls, value: Any) -> "OrderLineItem":
        """Create from the stored tuple form."""
        item_type, item_id, price = value
        return cls(
            item_type=ItemType(item_type),
            item_id=item_id,
            price=price if price is not None else Decimal(0),
        )


@dataclass
class Order:
    """A purchase attempt and its resolution."""

    user_id: UUID
    line_items: list[OrderLineItem]
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.MANUAL_TRANSFER
    status: OrderStatus = OrderStatus.PENDING
    order_id: UUID = field(default_factory=uuid4)
    payment_evidence: str | None = None
    evidence_submitted_at: datetime | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_by: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_pending(self) -> bool:
        """Check if the order still awaits a decision."""
        return self.status == OrderStatus.PENDING

    @property
    def is_approved(self) -> bool:
        """Check if the order grants access."""
        return self.status == OrderStatus.APPROVED

    @classmethod
    def from_row(cls, row: Any) -> "Order":
        """Create instance from Cassandra row."""
        return cls(
            order_id=row.order_id,
            user_id=row.user_id,
            line_items=[OrderLineItem.from_tuple(v) for v in row.items or []],
            amount=row.amount if row.amount is not None else Decimal(0),
            payment_method=PaymentMethod(row.payment_method),
            status=OrderStatus(row.status),
            payment_evidence=row.payment_evidence,
            evidence_submitted_at=ensure_utc_aware(row.evidence_submitted_at),
            gateway_order_id=row.gateway_order_id,
            gateway_payment_id=row.gateway_payment_id,
            approved_by=row.approved_by,
            approved_at=ensure_utc_aware(row.approved_at),
            rejected_by=row.rejected_by,
            rejected_at=ensure_utc_aware(row.rejected_at),
            rejection_reason=row.rejection_reason,
            created_at=ensure_utc_aware(row.created_at) or datetime.now(UTC),
            updated_at=ensure_utc_aware(row.updated_at) or datetime.now(UTC),
        )


@dataclass
class OrderSlot:
    """The live order of a (user, item) pair."""

    user_id: UUID
    item_type: ItemType
    item_id: UUID
    order_id: UUID
    status: OrderStatus
    approved_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def grants_access(self) -> bool:
        """Check if the slot's order is approved."""
        return self.status == OrderStatus.APPROVED

    @classmethod
    def from_row(cls, row: Any) -> "OrderSlot":
        """Create instance from Cassandra row."""
        return cls(
            user_id=row.user_id,
            item_type=ItemType(row.item_type),
            item_id=row.item_id,
            order_id=row.order_id,
            status=OrderStatus(row.status),
            approved_at=ensure_utc_aware(row.approved_at),
            created_at=ensure_utc_aware(row.created_at),
        )


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_free_order(user_id: UUID, line_items: list[OrderLineItem]) -> Order:
    """Create an order that is approved on creation."""
    now = datetime.now(UTC)
    return Order(
        user_id=user_id,
        line_items=line_items,
        amount=Decimal(0),
        payment_method=PaymentMethod.FREE,
        status=OrderStatus.APPROVED,
        approved_at=now,
        created_at=now,
        updated_at=now,
    )


def create_pending_order(
    user_id: UUID,
    line_items: list[OrderLineItem],
    amount: Decimal,
    payment_method: PaymentMethod,
) -> Order:
    """Create an order awaiting payment."""
    order = Order(
        user_id=user_id,
        line_items=line_items,
        amount=amount,
        payment_method=payment_method,
        status=OrderStatus.PENDING,
    )
    if payment_method == PaymentMethod.GATEWAY:
        order.gateway_order_id = f"order_{order.order_id.hex}"
    return order
