"""Payment instructions and gateway signature checks."""

import hashlib
import hmac
from decimal import ROUND_HALF_UP, Decimal

from edustore.config.settings import Settings

from .models import Order, PaymentMethod
from .schemas import PaymentInstructions


# Minor currency units per major unit (paise per rupee)
MINOR_UNITS = 100


def to_minor_units(amount: Decimal) -> int:
    """Convert an amount to integer minor units."""
    return int((amount * MINOR_UNITS).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def build_payment_instructions(order: Order, settings: Settings) -> PaymentInstructions:
    """Build what the buyer needs to pay a pending order."""
    if order.payment_method == PaymentMethod.GATEWAY:
        return PaymentInstructions(
            method=order.payment_method,
            amount=order.amount,
            currency=settings.payment_currency,
            gateway_order_id=order.gateway_order_id,
            gateway_key_id=settings.payment_gateway_key_id,
            amount_minor=to_minor_units(order.amount),
        )

    return PaymentInstructions(
        method=order.payment_method,
        amount=order.amount,
        currency=settings.payment_currency,
        payee_name=settings.payment_manual_payee_name,
        upi_id=settings.payment_manual_upi_id,
        note=settings.payment_manual_note,
    )


def compute_gateway_signature(
    gateway_order_id: str, gateway_payment_id: str, key_secret: str
) -> str:
    """HMAC-SHA256 hex digest of ``"{order_id}|{payment_id}"``."""
    return hmac.new(
        key_secret.encode("utf-8"),
        f"{gateway_order_id}|{gateway_payment_id}".encode(),
        hashlib.sha256,
    ).hexdigest()


def verify_gateway_signature(
    gateway_order_id: str,
    gateway_payment_id: str,
    signature: str,
    key_secret: str | None,
) -> bool:
    """Check a gateway signature in constant time.

    Always False when no key secret is configured.
    """
    if not key_secret:
        return False
    expected = compute_gateway_signature(gateway_order_id, gateway_payment_id, key_secret)
    return hmac.compare_digest(expected.encode(), signature.encode())
