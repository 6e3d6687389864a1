from __future__ import annotations

import json
import logging
from typing import Any

from redis import Redis
from redis.exceptions import RedisError

from services.storefront.application.interfaces import OrderNotifier
from services.storefront.domain.order import Order
from services.storefront.domain.user import User

LOGGER = logging.getLogger(__name__)


def _confirmation_payload(order: Order, user: User) -> dict[str, Any]:
    return {
        "event": "order_confirmed",
        "order_id": order.order_id,
        "order_number": order.order_number,
        "user_id": user.user_id,
        "email": user.email,
        "name": user.name,
        "status": order.status.value,
        "payment_status": order.payment_status.value,
        "item_count": order.item_count,
        "total_amount": str(order.total_amount),
        "shipping_address": order.shipping_address.formatted(),
        "estimated_delivery_date": (
            order.estimated_delivery_date.isoformat()
            if order.estimated_delivery_date
            else None
        ),
    }


class LoggingOrderNotifier(OrderNotifier):
    def order_confirmed(self, order: Order, user: User) -> None:
        LOGGER.info(_confirmation_payload(order, user))


class RedisOrderNotifier(OrderNotifier):
    """Publishes order confirmations for the mail worker to pick up."""

    def __init__(self, *, host: str, port: int, db: int, channel: str) -> None:
        self._redis = Redis(host=host, port=port, db=db, decode_responses=False)
        self._channel = channel

    def order_confirmed(self, order: Order, user: User) -> None:
        payload = _confirmation_payload(order, user)
        try:
            self._redis.publish(self._channel, json.dumps(payload))
        except RedisError as exc:
            LOGGER.error(
                "Failed to publish confirmation for order %s: %s",
                order.order_number,
                exc,
            )
