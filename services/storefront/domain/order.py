"""Order domain model and status rules."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Mapping, Optional, FrozenSet

from services.storefront.domain.product import Product


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"
    RETURNED = "RETURNED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, Enum):
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    PAYPAL = "PAYPAL"
    APPLE_PAY = "APPLE_PAY"
    GOOGLE_PAY = "GOOGLE_PAY"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"

    @property
    def is_card(self) -> bool:
        return self in (PaymentMethod.CREDIT_CARD, PaymentMethod.DEBIT_CARD)


_TRANSITIONS: Mapping[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.CONFIRMED, OrderStatus.CANCELLED}
    ),
    OrderStatus.CONFIRMED: frozenset(
        {OrderStatus.PROCESSING, OrderStatus.CANCELLED}
    ),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset(
        {OrderStatus.OUT_FOR_DELIVERY, OrderStatus.CANCELLED}
    ),
    OrderStatus.OUT_FOR_DELIVERY: frozenset(
        {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
    ),
    OrderStatus.DELIVERED: frozenset({OrderStatus.RETURNED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.RETURNED: frozenset(),
}

# Orders past this point are with the carrier; only support may cancel them.
_CUSTOMER_CANCELLABLE = frozenset(
    {OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.PROCESSING}
)


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in _TRANSITIONS[current]


def allowed_transitions(current: OrderStatus) -> FrozenSet[OrderStatus]:
    return _TRANSITIONS[current]


@dataclass(frozen=True)
class Address:
    line1: str
    city: str
    country: str
    line2: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None

    def formatted(self) -> str:
        locality = " ".join(
            part for part in [self.city + ",", self.state, self.postal_code] if part
        ).rstrip(",")
        lines = [self.full_name, self.line1, self.line2, locality, self.country]
        return ", ".join(line for line in lines if line)


@dataclass(frozen=True)
class OrderItem:
    product_id: int
    product_name: str
    quantity: int
    price: Decimal
    unit_price: Decimal
    discount_price: Optional[Decimal] = None
    product_description: Optional[str] = None
    product_category: Optional[str] = None
    product_image_url: Optional[str] = None
    item_id: Optional[int] = None

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    @classmethod
    def snapshot(cls, product: Product, quantity: int) -> "OrderItem":
        """Copy the product fields an order must keep after catalog edits."""
        return cls(
            product_id=product.product_id,
            product_name=product.name,
            quantity=quantity,
            price=product.price,
            unit_price=product.effective_price,
            discount_price=product.discount_price,
            product_description=product.description,
            product_category=", ".join(product.categories) or None,
            product_image_url=product.image_url,
        )


@dataclass(frozen=True)
class Order:
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    shipping_address: Address
    billing_address: Address
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime
    items: List[OrderItem] = field(default_factory=list)
    customer_notes: Optional[str] = None
    payment_reference: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    order_id: Optional[int] = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def customer_cancellable(self) -> bool:
        return self.status in _CUSTOMER_CANCELLABLE

    def with_note(self, note: str) -> "Order":
        notes = f"{self.customer_notes}\n\n{note}" if self.customer_notes else note
        return replace(self, customer_notes=notes)
