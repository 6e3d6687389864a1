from __future__ import annotations

import logging
from datetime import datetime, timezone

from services.storefront.application.dto import (
    OrderUpdate,
    UpdateOrderStatusCommand,
    UpdatePaymentStatusCommand,
)
from services.storefront.application.interfaces import IdProvider, OrderRepository
from services.storefront.domain.errors import (
    BadRequestError,
    InvalidStatusTransitionError,
    NotFoundError,
)
from services.storefront.domain.order import (
    Order,
    OrderStatus,
    PaymentStatus,
    allowed_transitions,
    can_transition,
)

LOGGER = logging.getLogger(__name__)

_UNPAYABLE = frozenset({OrderStatus.CANCELLED, OrderStatus.RETURNED})


def _load(orders: OrderRepository, order_id: int) -> Order:
    order = orders.get(order_id)
    if order is None:
        raise NotFoundError(f"Order not found with id: {order_id}")
    return order


def _ensure_transition(order: Order, target: OrderStatus) -> None:
    if not can_transition(order.status, target):
        raise InvalidStatusTransitionError(
            order.status.value,
            target.value,
            [status.value for status in allowed_transitions(order.status)],
        )


class UpdateOrderStatusUseCase:
    """Support-side status changes, restricted to the transition table."""

    def __init__(
        self,
        *,
        order_repository: OrderRepository,
        tracking_number_provider: IdProvider,
    ) -> None:
        self._orders = order_repository
        self._tracking_numbers = tracking_number_provider

    def execute(self, command: UpdateOrderStatusCommand) -> Order:
        order = _load(self._orders, command.order_id)
        _ensure_transition(order, command.status)

        now = datetime.now(timezone.utc)
        tracking_number = command.tracking_number
        shipped_at = delivered_at = None
        notes = None
        if command.status is OrderStatus.SHIPPED:
            shipped_at = now
            tracking_number = tracking_number or order.tracking_number
            tracking_number = tracking_number or self._tracking_numbers.generate()
        elif command.status is OrderStatus.DELIVERED:
            delivered_at = now
        elif command.status is OrderStatus.CANCELLED:
            notes = order.with_note("Cancelled by support").customer_notes

        updated = self._orders.apply(
            order.order_id,
            OrderUpdate(
                expected_status=order.status,
                status=command.status,
                tracking_number=tracking_number,
                shipped_at=shipped_at,
                delivered_at=delivered_at,
                customer_notes=notes,
                release_inventory=command.status is OrderStatus.CANCELLED,
            ),
        )
        LOGGER.info(
            "Updated order status: %s to %s", order.order_number, command.status.value
        )
        return updated


class UpdatePaymentStatusUseCase:
    """Record a payment status and keep the order status in line with it.

    PAID confirms a pending order and is refused on CANCELLED or RETURNED
    orders; on fulfilment stages it only records the payment (cash on
    delivery). FAILED cancels the order and releases its stock; REFUNDED and
    PENDING leave the order status alone.
    """

    def __init__(self, *, order_repository: OrderRepository) -> None:
        self._orders = order_repository

    def execute(self, command: UpdatePaymentStatusCommand) -> Order:
        order = _load(self._orders, command.order_id)
        status = None
        release = False
        notes = None
        if command.payment_status is PaymentStatus.PAID:
            if order.status in _UNPAYABLE:
                raise BadRequestError(
                    f"Cannot mark payment PAID for {order.status.value} order"
                )
            if order.status is OrderStatus.PENDING:
                status = OrderStatus.CONFIRMED
        elif (
            command.payment_status is PaymentStatus.FAILED
            and order.status is not OrderStatus.CANCELLED
        ):
            _ensure_transition(order, OrderStatus.CANCELLED)
            status = OrderStatus.CANCELLED
            release = True
            notes = order.with_note("Cancelled: payment failed").customer_notes

        updated = self._orders.apply(
            order.order_id,
            OrderUpdate(
                expected_status=order.status,
                status=status,
                payment_status=command.payment_status,
                customer_notes=notes,
                release_inventory=release,
            ),
        )
        LOGGER.info(
            "Updated payment status: %s to %s",
            order.order_number,
            command.payment_status.value,
        )
        return updated
