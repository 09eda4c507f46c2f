"""Dependency injection for the orders module."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import OrderService


async def get_order_service(request: Request) -> OrderService:
    """Get order service from app state."""
    service = getattr(request.app.state, "order_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Order service not available",
        )
    return service


OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]
