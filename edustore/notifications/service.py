"""Order notifications.

Best-effort publication of order decisions to the user's Redis Pub/Sub
channel. Delivery (websocket, email) is handled by other services that
subscribe to ``notifications:user:{user_id}``.
"""

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from edustore.core.logging import get_logger
from edustore.core.redis import notification_channel


if TYPE_CHECKING:
    from redis.asyncio import Redis

    from edustore.orders.models import Order


logger = get_logger(__name__)


class OrderNotifier:
    """Publishes order approval/rejection events."""

    def __init__(self, redis: "Redis | None" = None, enabled: bool = True):
        self.redis = redis
        self.enabled = enabled

    async def order_approved(self, order: "Order") -> None:
        """Tell the buyer their order grants access."""
        await self._publish(order, "order_approved")

    async def order_rejected(self, order: "Order") -> None:
        """Tell the buyer their order was refused."""
        await self._publish(order, "order_rejected", reason=order.rejection_reason)

    async def _publish(self, order: "Order", event: str, **extra) -> None:
        if not self.enabled or not self.redis:
            return

        message = {
            "type": event,
            "data": {
                "order_id": str(order.order_id),
                "status": order.status.value,
                "items": [
                    {"item_type": li.item_type.value, "item_id": str(li.item_id)}
                    for li in order.line_items
                ],
                **extra,
            },
            "timestamp": datetime.now(UTC).isoformat(),
        }

        # Non-critical: a lost notification never undoes the transition
        try:
            await self.redis.publish(
                notification_channel(str(order.user_id)), json.dumps(message)
            )
        except Exception as e:
            logger.warning(
                "order_notification_failed",
                order_id=str(order.order_id),
                event=event,
                error=str(e),
            )
