from __future__ import annotations

import logging

from services.storefront.application.dto import CancelOrderCommand, OrderUpdate
from services.storefront.application.interfaces import OrderRepository, UserRepository
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.order import Order, OrderStatus

LOGGER = logging.getLogger(__name__)


class CancelOrderUseCase:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._users = user_repository
        self._orders = order_repository

    def execute(self, command: CancelOrderCommand) -> Order:
        user = self._users.get_by_id(command.user_id)
        order = self._orders.get(command.order_id)
        if (
            user is None
            or order is None
            or (order.user_id != user.user_id and not user.is_admin)
        ):
            raise NotFoundError(f"Order not found with id: {command.order_id}")

        if order.status is OrderStatus.DELIVERED:
            raise BadRequestError("Cannot cancel delivered order")
        if order.status in (OrderStatus.SHIPPED, OrderStatus.OUT_FOR_DELIVERY):
            raise BadRequestError(
                "Cannot cancel shipped order. Please contact support."
            )
        if not order.customer_cancellable:
            raise BadRequestError(f"Order is already {order.status.value.lower()}")

        reason = (command.reason or "").strip() or "No reason given"
        cancelled = self._orders.apply(
            order.order_id,
            OrderUpdate(
                expected_status=order.status,
                status=OrderStatus.CANCELLED,
                customer_notes=order.with_note(
                    f"Cancellation reason: {reason}"
                ).customer_notes,
                release_inventory=True,
            ),
        )
        LOGGER.info("Cancelled order: %s Reason: %s", order.order_number, reason)
        return cancelled
