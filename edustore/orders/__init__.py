"""Order ledger module.

Purchase attempts, their pending -> approved/rejected state machine and
the one-live-order-per-item rule.
"""

from .models import (
    ORDERS_TABLES_CQL,
    Order,
    OrderLineItem,
    OrderSlot,
    OrderStatus,
    PaymentMethod,
)


__all__ = [
    "ORDERS_TABLES_CQL",
    "Order",
    "OrderLineItem",
    "OrderSlot",
    "OrderStatus",
    "PaymentMethod",
]
