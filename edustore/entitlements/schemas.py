"""Pydantic schemas for entitlement checks."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from edustore.catalog.models import ItemType
from edustore.orders.models import OrderSlot, OrderStatus


class CheckAccessResponse(BaseModel):
    """Access verdict for one item with ledger details."""

    has_access: bool
    order_id: UUID | None = Field(None, description="Live order for the item")
    order_status: OrderStatus | None = None
    purchase_date: datetime | None = Field(None, description="Approval time")
    can_order: bool = Field(..., description="Whether a new order can be placed")


class EntitlementResponse(BaseModel):
    """One purchased item."""

    item_type: ItemType
    item_id: UUID
    order_id: UUID
    purchase_date: datetime | None = None

    @classmethod
    def from_slot(cls, slot: OrderSlot) -> "EntitlementResponse":
        """Create response from an approved order slot."""
        return cls(
            item_type=slot.item_type,
            item_id=slot.item_id,
            order_id=slot.order_id,
            purchase_date=slot.approved_at,
        )


class EntitlementListResponse(BaseModel):
    """Response schema for listing entitlements."""

    items: list[EntitlementResponse]
    total: int
