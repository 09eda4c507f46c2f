"""Pydantic schemas for the order ledger.

Request/Response models for:
- Creating orders (legacy single-item and multi-item shapes)
- Submitting payment evidence
- Gateway payment confirmation
- Admin approval / rejection
"""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from edustore.catalog.models import ItemType

from .models import Order, OrderLineItem, OrderStatus, PaymentMethod


# ==============================================================================
# Request Schemas
# ==============================================================================


class OrderItemRequest(BaseModel):
    """One item to purchase."""

    item_type: ItemType
    item_id: UUID


class CreateOrderRequest(BaseModel):
    """Create an order.

    Accepts the multi-item shape ``{"items": [...], "amount": ...}`` and
    the legacy single-item shape ``{"item_type", "item_id", "amount"}``.
    Both are normalised to ``items``.
    """

    items: list[OrderItemRequest] = Field(..., min_length=1)
    amount: Decimal = Field(..., description="Total amount, must match catalog prices")
    payment_method: PaymentMethod = PaymentMethod.MANUAL_TRANSFER

    @model_validator(mode="before")
    @classmethod
    def normalise_single_item(cls, data: Any) -> Any:
        """Fold the legacy single-item shape into ``items``."""
        if isinstance(data, dict) and "items" not in data and "item_type" in data:
            data = dict(data)
            data["items"] = [
                {"item_type": data.pop("item_type"), "item_id": data.pop("item_id", None)}
            ]
        return data

    def line_items(self) -> list[OrderLineItem]:
        """Line items in request order (priced later from the catalog)."""
        return [OrderLineItem(item_type=i.item_type, item_id=i.item_id) for i in self.items]


class SubmitProofRequest(BaseModel):
    """Attach payment evidence (e.g. uploaded screenshot pointer)."""

    evidence: str = Field(..., min_length=1, max_length=2048)


class GatewayConfirmRequest(BaseModel):
    """Gateway callback data forwarded by the client."""

    gateway_order_id: str = Field(..., min_length=1, max_length=128)
    gateway_payment_id: str = Field(..., min_length=1, max_length=128)
    signature: str = Field(..., min_length=1, max_length=256)


class RejectOrderRequest(BaseModel):
    """Reject a pending order."""

    reason: str = Field(..., min_length=1, max_length=500)


# ==============================================================================
# Response Schemas
# ==============================================================================


class PaymentInstructions(BaseModel):
    """Opaque payment instructions returned for pending orders."""

    method: PaymentMethod
    amount: Decimal
    currency: str
    # Manual transfer
    payee_name: str | None = None
    upi_id: str | None = None
    note: str | None = None
    # Gateway
    gateway_order_id: str | None = None
    gateway_key_id: str | None = None
    amount_minor: int | None = Field(None, description="Amount in minor currency units")


class CreateOrderResponse(BaseModel):
    """Result of order creation."""

    order_id: UUID
    status: OrderStatus
    payment_instructions: PaymentInstructions | None = None


class ProofSubmittedResponse(BaseModel):
    """Result of evidence submission."""

    order_id: UUID
    status: OrderStatus


class OrderLineItemResponse(BaseModel):
    """One ordered item."""

    item_type: ItemType
    item_id: UUID
    price: Decimal


class OrderResponse(BaseModel):
    """Full order view."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Order ID")
    user_id: UUID
    items: list[OrderLineItemResponse]
    amount: Decimal
    payment_method: PaymentMethod
    status: OrderStatus
    payment_evidence: str | None = None
    evidence_submitted_at: datetime | None = None
    gateway_order_id: str | None = None
    gateway_payment_id: str | None = None
    approved_by: UUID | None = None
    approved_at: datetime | None = None
    rejected_by: UUID | None = None
    rejected_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderResponse":
        """Create response from Order entity."""
        return cls(
            id=order.order_id,
            user_id=order.user_id,
            items=[
                OrderLineItemResponse(
                    item_type=li.item_type, item_id=li.item_id, price=li.price
                )
                for li in order.line_items
            ],
            amount=order.amount,
            payment_method=order.payment_method,
            status=order.status,
            payment_evidence=order.payment_evidence,
            evidence_submitted_at=order.evidence_submitted_at,
            gateway_order_id=order.gateway_order_id,
            gateway_payment_id=order.gateway_payment_id,
            approved_by=order.approved_by,
            approved_at=order.approved_at,
            rejected_by=order.rejected_by,
            rejected_at=order.rejected_at,
            rejection_reason=order.rejection_reason,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    """Response schema for listing orders."""

    items: list[OrderResponse]
    total: int
