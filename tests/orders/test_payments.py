"""Tests for payment instructions and gateway signatures."""

from decimal import Decimal
from uuid import uuid4

from edustore.catalog.models import ItemType
from edustore.config.settings import Settings
from edustore.orders.models import OrderLineItem, PaymentMethod, create_pending_order
from edustore.orders.payments import (
    build_payment_instructions,
    compute_gateway_signature,
    to_minor_units,
    verify_gateway_signature,
)


def _order(method: PaymentMethod, amount: str = "1299.99"):
    return create_pending_order(
        uuid4(),
        [OrderLineItem(item_type=ItemType.COURSE, item_id=uuid4(), price=Decimal(amount))],
        Decimal(amount),
        method,
    )


class TestMinorUnits:
    """Tests for to_minor_units."""

    def test_whole_amount(self) -> None:
        assert to_minor_units(Decimal(499)) == 49900

    def test_fractional_amount(self) -> None:
        assert to_minor_units(Decimal("1299.99")) == 129999

    def test_rounds_half_up(self) -> None:
        assert to_minor_units(Decimal("0.005")) == 1


class TestGatewaySignature:
    """Tests for signature verification."""

    def test_valid_signature(self) -> None:
        """A signature computed with the shared secret verifies."""
        signature = compute_gateway_signature("order_abc", "pay_1", "secret")

        assert verify_gateway_signature("order_abc", "pay_1", signature, "secret")

    def test_tampered_payment_id(self) -> None:
        """The payment id is part of the signed message."""
        signature = compute_gateway_signature("order_abc", "pay_1", "secret")

        assert not verify_gateway_signature("order_abc", "pay_2", signature, "secret")

    def test_wrong_secret(self) -> None:
        signature = compute_gateway_signature("order_abc", "pay_1", "other")

        assert not verify_gateway_signature("order_abc", "pay_1", signature, "secret")

    def test_no_secret_configured(self) -> None:
        """Nothing verifies without a configured secret."""
        signature = compute_gateway_signature("order_abc", "pay_1", "secret")

        assert not verify_gateway_signature("order_abc", "pay_1", signature, None)

    def test_non_ascii_signature(self) -> None:
        """Non-ASCII input is a mismatch, not an error."""
        assert not verify_gateway_signature("order_x", "pay_1", "é" * 64, "secret")


class TestPaymentInstructions:
    """Tests for build_payment_instructions."""

    def test_manual_transfer(self) -> None:
        """Manual orders get payee details and no gateway fields."""
        settings = Settings(
            payment_manual_payee_name="EduStore", payment_manual_upi_id="edu@upi"
        )
        order = _order(PaymentMethod.MANUAL_TRANSFER)

        instructions = build_payment_instructions(order, settings)

        assert instructions.method == PaymentMethod.MANUAL_TRANSFER
        assert instructions.payee_name == "EduStore"
        assert instructions.upi_id == "edu@upi"
        assert instructions.gateway_order_id is None
        assert instructions.amount_minor is None

    def test_gateway(self) -> None:
        """Gateway orders carry the gateway order id and minor-unit amount."""
        settings = Settings(
            payment_gateway_key_id="key_live", payment_gateway_key_secret="s3cret"
        )
        order = _order(PaymentMethod.GATEWAY)

        instructions = build_payment_instructions(order, settings)

        assert instructions.gateway_order_id == f"order_{order.order_id.hex}"
        assert instructions.gateway_key_id == "key_live"
        assert instructions.amount_minor == 129999
        assert instructions.currency == "INR"
