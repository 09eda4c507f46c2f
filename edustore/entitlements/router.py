"""HTTP endpoints for entitlement checks.

Provides:
- GET /v1/entitlements/check/{item_type}/{item_id} - Access check with order details
- GET /v1/entitlements/my - Items the caller is entitled to
"""

from uuid import UUID

from fastapi import APIRouter

from edustore.auth.dependencies import CurrentUser
from edustore.catalog.models import ItemType

from .dependencies import EntitlementServiceDep
from .schemas import CheckAccessResponse, EntitlementListResponse, EntitlementResponse


router = APIRouter(prefix="/v1/entitlements", tags=["entitlements"])


@router.get(
    "/check/{item_type}/{item_id}",
    response_model=CheckAccessResponse,
    summary="Check access to an item",
)
async def check_access(
    item_type: ItemType,
    item_id: UUID,
    service: EntitlementServiceDep,
    current_user: CurrentUser,
) -> CheckAccessResponse:
    """Check whether the current user has purchased an item."""
    return await service.check_access(current_user.id, item_type, item_id)


@router.get(
    "/my",
    response_model=EntitlementListResponse,
    summary="List my entitlements",
)
async def list_my_entitlements(
    service: EntitlementServiceDep,
    current_user: CurrentUser,
) -> EntitlementListResponse:
    """List every item the current user is entitled to."""
    slots = await service.list_entitlements(current_user.id)
    items = [EntitlementResponse.from_slot(s) for s in slots]
    return EntitlementListResponse(items=items, total=len(items))
