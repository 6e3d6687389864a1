from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from services.storefront.application.dto import (
    CheckoutCommand,
    OrderUpdate,
    PaymentRequest,
    PaymentResult,
    mask_card,
)
from services.storefront.application.interfaces import (
    CartRepository,
    IdProvider,
    OrderNotifier,
    OrderRepository,
    PaymentGateway,
    UserRepository,
)
from services.storefront.domain.cart import validate_cart
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.order import (
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)
from services.storefront.domain.pricing import PricingPolicy
from services.storefront.domain.user import User

LOGGER = logging.getLogger(__name__)


class CheckoutUseCase:
    """Turn the user's cart into an order.

    The order row, its items and the inventory reservations are written in a
    single transaction by ``OrderRepository.place``; an insufficient stock
    count at that point rolls everything back. Payment runs afterwards. A
    declined payment, or a gateway that raises, keeps the order as
    CANCELLED/FAILED for audit, releases the reserved stock and leaves the
    cart untouched.
    """

    def __init__(
        self,
        *,
        user_repository: UserRepository,
        cart_repository: CartRepository,
        order_repository: OrderRepository,
        order_number_provider: IdProvider,
        payment_gateway: PaymentGateway,
        notifier: OrderNotifier,
        pricing: PricingPolicy,
        delivery_days: int = 7,
        currency: str = "usd",
    ) -> None:
        self._users = user_repository
        self._carts = cart_repository
        self._orders = order_repository
        self._order_numbers = order_number_provider
        self._payments = payment_gateway
        self._notifier = notifier
        self._pricing = pricing
        self._delivery_window = timedelta(days=delivery_days)
        self._currency = currency

    def execute(self, command: CheckoutCommand) -> Order:
        user = self._users.get_by_id(command.user_id)
        if user is None:
            raise NotFoundError(f"User not found with id: {command.user_id}")

        cart = self._carts.get(command.user_id)
        if cart is None:
            raise NotFoundError("Cart not found")
        if cart.is_empty:
            raise BadRequestError("Cannot checkout with empty cart")

        validation = validate_cart(cart)
        if not validation.valid:
            details = "; ".join(issue.describe() for issue in validation.issues)
            raise BadRequestError(f"Cart contains invalid items: {details}")

        items = [OrderItem.snapshot(item.product, item.quantity) for item in cart.items]
        totals = self._pricing.totals(items, command.shipping_address.country)
        now = datetime.now(timezone.utc)

        order = Order(
            order_number=self._order_numbers.generate(),
            user_id=user.user_id,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=command.payment_method,
            shipping_address=command.shipping_address,
            billing_address=command.billing_address or command.shipping_address,
            customer_notes=command.customer_notes,
            subtotal=totals.subtotal,
            shipping_amount=totals.shipping_amount,
            tax_amount=totals.tax_amount,
            discount_amount=totals.discount_amount,
            total_amount=totals.total_amount,
            estimated_delivery_date=now + self._delivery_window,
            created_at=now,
            updated_at=now,
            items=items,
        )
        order = self._orders.place(order)

        if command.payment_details is not None:
            order = self._charge(order, command)

        self._carts.clear(user.user_id)
        self._send_confirmation(order, user)

        LOGGER.info(
            "Order created successfully: %s for user: %s",
            order.order_number,
            user.user_id,
        )
        return order

    def _charge(self, order: Order, command: CheckoutCommand) -> Order:
        LOGGER.info(
            "Processing payment for order: %s Amount: %s Card: %s",
            order.order_number,
            order.total_amount,
            mask_card(command.payment_details.card_number),
        )
        try:
            result = self._payments.charge(
                PaymentRequest(
                    order_number=order.order_number,
                    amount=Decimal(order.total_amount),
                    currency=self._currency,
                    method=order.payment_method,
                    details=command.payment_details,
                )
            )
        except Exception as exc:
            LOGGER.error(
                "Payment gateway error for order: %s",
                order.order_number,
                exc_info=True,
            )
            result = PaymentResult(
                success=False, failure_reason=f"gateway error ({type(exc).__name__})"
            )
        if result.success:
            return self._orders.apply(
                order.order_id,
                OrderUpdate(
                    expected_status=OrderStatus.PENDING,
                    status=OrderStatus.CONFIRMED,
                    payment_status=PaymentStatus.PAID,
                    payment_reference=result.reference,
                ),
            )

        reason = result.failure_reason or "declined"
        LOGGER.error(
            "Payment processing failed for order: %s (%s)", order.order_number, reason
        )
        self._orders.apply(
            order.order_id,
            OrderUpdate(
                expected_status=OrderStatus.PENDING,
                status=OrderStatus.CANCELLED,
                payment_status=PaymentStatus.FAILED,
                payment_reference=result.reference,
                customer_notes=order.with_note(f"Payment failed: {reason}").customer_notes,
                release_inventory=True,
            ),
        )
        raise BadRequestError(f"Payment processing failed: {reason}")

    def _send_confirmation(self, order: Order, user: User) -> None:
        try:
            self._notifier.order_confirmed(order, user)
        except Exception:
            LOGGER.warning(
                "Failed to send order confirmation for order: %s",
                order.order_number,
                exc_info=True,
            )
