"""HTTP tests for the order endpoints."""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest

from edustore.catalog.models import ItemType
from edustore.core.errors import DuplicateOrderError, InvalidTransitionError, NotFoundError
from edustore.orders.models import (
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    create_free_order,
    create_pending_order,
)
from edustore.orders.schemas import PaymentInstructions


@pytest.fixture
def order_service(app):
    """Order service double installed on the app."""
    service = Mock()
    service.payment_instructions = Mock(return_value=None)
    for name in (
        "create_order",
        "submit_proof_of_payment",
        "confirm_gateway_payment",
        "approve",
        "reject",
        "get_order_for",
        "list_user_orders",
        "list_orders_by_status",
    ):
        setattr(service, name, AsyncMock())
    app.state.order_service = service
    return service


def _pending(user_id=None):
    return create_pending_order(
        user_id or uuid4(),
        [OrderLineItem(item_type=ItemType.COURSE, item_id=uuid4(), price=Decimal(499))],
        Decimal(499),
        PaymentMethod.MANUAL_TRANSFER,
    )


class TestCreateOrder:
    """Tests for POST /v1/orders."""

    def test_requires_authentication(self, client, order_service) -> None:
        response = client.post(
            "/v1/orders", json={"item_type": "course", "item_id": str(uuid4()), "amount": 0}
        )

        assert response.status_code == 401
        assert response.json()["kind"] == "http_error"
        order_service.create_order.assert_not_awaited()

    def test_single_item_body(self, client, order_service, auth_headers) -> None:
        """The single-item body reaches the service as one line item."""
        user_id, item_id = uuid4(), uuid4()
        order = create_free_order(
            user_id, [OrderLineItem(item_type=ItemType.COURSE, item_id=item_id)]
        )
        order_service.create_order.return_value = order

        response = client.post(
            "/v1/orders",
            json={"item_type": "course", "item_id": str(item_id), "amount": 0},
            headers=auth_headers(user_id=user_id),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "approved"
        assert data["payment_instructions"] is None
        kwargs = order_service.create_order.await_args.kwargs
        assert kwargs["user_id"] == user_id
        assert [li.item_id for li in kwargs["line_items"]] == [item_id]

    def test_pending_with_instructions(self, client, order_service, auth_headers) -> None:
        order = _pending()
        order_service.create_order.return_value = order
        order_service.payment_instructions.return_value = PaymentInstructions(
            method=PaymentMethod.MANUAL_TRANSFER,
            amount=Decimal(499),
            currency="INR",
            upi_id="store@upi",
        )

        response = client.post(
            "/v1/orders",
            json={"items": [{"item_type": "course", "item_id": str(uuid4())}], "amount": 499},
            headers=auth_headers(),
        )

        assert response.status_code == 201
        assert response.json()["payment_instructions"]["upi_id"] == "store@upi"

    def test_duplicate(self, client, order_service, auth_headers) -> None:
        order_service.create_order.side_effect = DuplicateOrderError()

        response = client.post(
            "/v1/orders",
            json={"item_type": "ebook", "item_id": str(uuid4()), "amount": 99},
            headers=auth_headers(),
        )

        assert response.status_code == 409
        data = response.json()
        assert data["error"] is True
        assert data["kind"] == "duplicate_order"

    def test_malformed_body(self, client, order_service, auth_headers) -> None:
        response = client.post(
            "/v1/orders", json={"items": [], "amount": 0}, headers=auth_headers()
        )

        assert response.status_code == 422
        assert response.json()["kind"] == "validation_error"

    def test_service_unavailable(self, app, client, auth_headers) -> None:
        """Without a database the endpoints answer 503."""
        app.state.order_service = None

        response = client.get("/v1/orders/my", headers=auth_headers())

        assert response.status_code == 503


class TestBuyerEndpoints:
    """Tests for proof, gateway and read endpoints."""

    def test_submit_proof(self, client, order_service, auth_headers) -> None:
        order = _pending()
        order.payment_evidence = "uploads/r.png"
        order_service.submit_proof_of_payment.return_value = order

        response = client.post(
            f"/v1/orders/{order.order_id}/proof",
            json={"evidence": "uploads/r.png"},
            headers=auth_headers(user_id=order.user_id),
        )

        assert response.status_code == 200
        assert response.json() == {"order_id": str(order.order_id), "status": "pending"}

    def test_other_users_order(self, client, order_service, auth_headers) -> None:
        order_service.get_order_for.side_effect = NotFoundError("Order not found")

        response = client.get(f"/v1/orders/{uuid4()}", headers=auth_headers())

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"

    def test_admin_reads_any_order(self, client, order_service, auth_headers) -> None:
        order = _pending()
        order_service.get_order_for.return_value = order

        response = client.get(f"/v1/orders/{order.order_id}", headers=auth_headers("admin"))

        assert response.status_code == 200
        assert response.json()["id"] == str(order.order_id)
        assert order_service.get_order_for.await_args.kwargs["is_admin"] is True

    def test_list_my_orders(self, client, order_service, auth_headers) -> None:
        order_service.list_user_orders.return_value = [_pending(), _pending()]

        response = client.get("/v1/orders/my", headers=auth_headers())

        assert response.status_code == 200
        assert response.json()["total"] == 2


class TestAdminEndpoints:
    """Tests for /v1/admin/orders."""

    def test_student_forbidden(self, client, order_service, auth_headers) -> None:
        response = client.post(f"/v1/admin/orders/{uuid4()}/approve", headers=auth_headers())

        assert response.status_code == 403
        order_service.approve.assert_not_awaited()

    def test_approve(self, client, order_service, auth_headers) -> None:
        admin_id = uuid4()
        order = _pending()
        order.status = OrderStatus.APPROVED
        order.approved_by = admin_id
        order_service.approve.return_value = order

        response = client.post(
            f"/v1/admin/orders/{order.order_id}/approve",
            headers=auth_headers("admin", user_id=admin_id),
        )

        assert response.status_code == 200
        assert response.json()["approved_by"] == str(admin_id)
        order_service.approve.assert_awaited_once_with(order.order_id, actor_id=admin_id)

    def test_reapprove_conflict(self, client, order_service, auth_headers) -> None:
        order_service.approve.side_effect = InvalidTransitionError("Order is already approved")

        response = client.post(
            f"/v1/admin/orders/{uuid4()}/approve", headers=auth_headers("admin")
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "invalid_transition"

    def test_reject_requires_reason(self, client, order_service, auth_headers) -> None:
        response = client.post(
            f"/v1/admin/orders/{uuid4()}/reject", json={}, headers=auth_headers("admin")
        )

        assert response.status_code == 422

    def test_review_queue(self, client, order_service, auth_headers) -> None:
        order_service.list_orders_by_status.return_value = [_pending()]

        response = client.get(
            "/v1/admin/orders?status=pending&limit=10", headers=auth_headers("admin")
        )

        assert response.status_code == 200
        assert response.json()["total"] == 1
        order_service.list_orders_by_status.assert_awaited_once_with(
            OrderStatus.PENDING, limit=10
        )
