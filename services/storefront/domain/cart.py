from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from services.storefront.domain.product import Product


@dataclass(frozen=True)
class CartItem:
    product: Product
    quantity: int
    added_at: datetime
    updated_at: datetime

    @property
    def unit_price(self) -> Decimal:
        # Read live from the product; carts do not lock prices.
        return self.product.effective_price

    @property
    def total_price(self) -> Decimal:
        return self.unit_price * self.quantity

    @property
    def available(self) -> bool:
        return self.product.can_supply(self.quantity)


@dataclass(frozen=True)
class Cart:
    cart_id: int
    user_id: int
    created_at: datetime
    updated_at: datetime
    items: List[CartItem] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.items

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def subtotal(self) -> Decimal:
        return sum(
            (item.product.price * item.quantity for item in self.items), Decimal("0")
        )

    @property
    def total_amount(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))

    @property
    def total_discount(self) -> Decimal:
        return self.subtotal - self.total_amount

    def find_item(self, product_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.product.product_id == product_id:
                return item
        return None


class CartIssueReason(str, Enum):
    PRODUCT_INACTIVE = "PRODUCT_INACTIVE"
    INSUFFICIENT_INVENTORY = "INSUFFICIENT_INVENTORY"


@dataclass(frozen=True)
class CartIssue:
    product_id: int
    product_name: str
    reason: CartIssueReason
    requested: int
    available: int

    def describe(self) -> str:
        if self.reason is CartIssueReason.PRODUCT_INACTIVE:
            return f"{self.product_name} is no longer available"
        return (
            f"{self.product_name}: requested {self.requested}, "
            f"only {self.available} in stock"
        )


@dataclass(frozen=True)
class CartValidation:
    issues: List[CartIssue] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.issues


def validate_cart(cart: Cart) -> CartValidation:
    """Check every cart line against the product's current state."""
    issues = []
    for item in cart.items:
        product = item.product
        if not product.active:
            reason = CartIssueReason.PRODUCT_INACTIVE
        elif product.inventory_count < item.quantity:
            reason = CartIssueReason.INSUFFICIENT_INVENTORY
        else:
            continue
        issues.append(
            CartIssue(
                product_id=product.product_id,
                product_name=product.name,
                reason=reason,
                requested=item.quantity,
                available=max(product.inventory_count, 0),
            )
        )
    return CartValidation(issues=issues)
