"""HTTP endpoints for the order ledger.

Provides:
- POST /v1/orders - Create an order
- POST /v1/orders/{order_id}/proof - Submit payment evidence
- POST /v1/orders/{order_id}/gateway/confirm - Confirm a gateway payment
- GET  /v1/orders/my - List own orders
- GET  /v1/orders/{order_id} - Order detail
- Admin endpoints for approving/rejecting and the review queue
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from edustore.auth.dependencies import AdminUser, CurrentUser

from .dependencies import OrderServiceDep
from .models import OrderStatus
from .schemas import (
    CreateOrderRequest,
    CreateOrderResponse,
    GatewayConfirmRequest,
    OrderListResponse,
    OrderResponse,
    ProofSubmittedResponse,
    RejectOrderRequest,
    SubmitProofRequest,
)


router = APIRouter(prefix="/v1/orders", tags=["orders"])
admin_router = APIRouter(prefix="/v1/admin/orders", tags=["admin-orders"])


# ==============================================================================
# Buyer Endpoints
# ==============================================================================


@router.post(
    "",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an order",
)
async def create_order(
    request: CreateOrderRequest,
    service: OrderServiceDep,
    current_user: CurrentUser,
) -> CreateOrderResponse:
    """Create an order for one or more items.

    Free items are approved immediately; paid items return payment
    instructions and stay pending until approved.
    """
    order = await service.create_order(
        user_id=current_user.id,
        line_items=request.line_items(),
        amount=request.amount,
        payment_method=request.payment_method,
    )
    return CreateOrderResponse(
        order_id=order.order_id,
        status=order.status,
        payment_instructions=service.payment_instructions(order),
    )


@router.post(
    "/{order_id}/proof",
    response_model=ProofSubmittedResponse,
    summary="Submit payment evidence",
)
async def submit_proof(
    order_id: UUID,
    request: SubmitProofRequest,
    service: OrderServiceDep,
    current_user: CurrentUser,
) -> ProofSubmittedResponse:
    """Attach payment evidence to a pending order."""
    order = await service.submit_proof_of_payment(
        order_id=order_id,
        user_id=current_user.id,
        evidence=request.evidence,
    )
    return ProofSubmittedResponse(order_id=order.order_id, status=order.status)


@router.post(
    "/{order_id}/gateway/confirm",
    response_model=OrderResponse,
    summary="Confirm a gateway payment",
)
async def confirm_gateway_payment(
    order_id: UUID,
    request: GatewayConfirmRequest,
    service: OrderServiceDep,
    current_user: CurrentUser,
) -> OrderResponse:
    """Approve a gateway order from the signed gateway callback data."""
    order = await service.confirm_gateway_payment(
        order_id=order_id,
        user_id=current_user.id,
        gateway_order_id=request.gateway_order_id,
        gateway_payment_id=request.gateway_payment_id,
        signature=request.signature,
    )
    return OrderResponse.from_order(order)


@router.get(
    "/my",
    response_model=OrderListResponse,
    summary="List my orders",
)
async def list_my_orders(
    service: OrderServiceDep,
    current_user: CurrentUser,
) -> OrderListResponse:
    """List the current user's orders, newest first."""
    orders = await service.list_user_orders(current_user.id)
    items = [OrderResponse.from_order(o) for o in orders]
    return OrderListResponse(items=items, total=len(items))


@router.get(
    "/{order_id}",
    response_model=OrderResponse,
    summary="Get order",
)
async def get_order(
    order_id: UUID,
    service: OrderServiceDep,
    current_user: CurrentUser,
) -> OrderResponse:
    """Get an order (owner or admin)."""
    order = await service.get_order_for(
        order_id, current_user.id, is_admin=current_user.is_admin
    )
    return OrderResponse.from_order(order)


# ==============================================================================
# Admin Endpoints
# ==============================================================================


@admin_router.get(
    "",
    response_model=OrderListResponse,
    summary="List orders by status",
)
async def list_orders(
    service: OrderServiceDep,
    _: AdminUser,
    order_status: OrderStatus = Query(OrderStatus.PENDING, alias="status"),
    limit: int = Query(100, ge=1, le=500),
) -> OrderListResponse:
    """Review queue: orders in a status, newest first."""
    orders = await service.list_orders_by_status(order_status, limit=limit)
    items = [OrderResponse.from_order(o) for o in orders]
    return OrderListResponse(items=items, total=len(items))


@admin_router.post(
    "/{order_id}/approve",
    response_model=OrderResponse,
    summary="Approve an order",
)
async def approve_order(
    order_id: UUID,
    service: OrderServiceDep,
    admin: AdminUser,
) -> OrderResponse:
    """Approve a pending order and grant access."""
    order = await service.approve(order_id, actor_id=admin.id)
    return OrderResponse.from_order(order)


@admin_router.post(
    "/{order_id}/reject",
    response_model=OrderResponse,
    summary="Reject an order",
)
async def reject_order(
    order_id: UUID,
    request: RejectOrderRequest,
    service: OrderServiceDep,
    admin: AdminUser,
) -> OrderResponse:
    """Reject a pending order with a reason."""
    order = await service.reject(order_id, actor_id=admin.id, reason=request.reason)
    return OrderResponse.from_order(order)
