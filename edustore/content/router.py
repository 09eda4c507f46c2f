"""HTTP endpoints for content access.

Provides:
- GET /v1/content/{item_type}/{item_id}/tree - Filtered content tree
- GET /v1/content/{item_type}/{item_id}/leaves/{leaf_id} - Single leaf payload

Both work for anonymous callers, who only see free and preview content.
"""

from uuid import UUID

from fastapi import APIRouter

from edustore.auth.dependencies import OptionalUser
from edustore.catalog.models import ItemType

from .dependencies import ContentServiceDep
from .schemas import ContentTreeResponse, LeafAccessResponse


router = APIRouter(prefix="/v1/content", tags=["content"])


@router.get(
    "/{item_type}/{item_id}/tree",
    response_model=ContentTreeResponse,
    summary="Get content tree",
)
async def get_content_tree(
    item_type: ItemType,
    item_id: UUID,
    service: ContentServiceDep,
    current_user: OptionalUser,
) -> ContentTreeResponse:
    """Get an item's content tree filtered for the caller."""
    return await service.get_content_tree(current_user, item_type, item_id)


@router.get(
    "/{item_type}/{item_id}/leaves/{leaf_id}",
    response_model=LeafAccessResponse,
    summary="Get leaf payload",
)
async def get_leaf(
    item_type: ItemType,
    item_id: UUID,
    leaf_id: UUID,
    service: ContentServiceDep,
    current_user: OptionalUser,
) -> LeafAccessResponse:
    """Get the playable/readable payload of one leaf."""
    return await service.get_leaf_access(current_user, item_type, item_id, leaf_id)
