"""Order totals: flat shipping by country, fixed-rate tax."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

from services.storefront.domain.order import OrderItem

DOMESTIC_COUNTRY = "RW"

SHIPPING_RATES: Mapping[str, Decimal] = {
    "RW": Decimal("5.00"),
    "RWANDA": Decimal("5.00"),
    "US": Decimal("15.00"),
    "CA": Decimal("15.00"),
    "GB": Decimal("15.00"),
    "AU": Decimal("20.00"),
    "DE": Decimal("20.00"),
    "FR": Decimal("20.00"),
    "IT": Decimal("20.00"),
    "ES": Decimal("20.00"),
}
DEFAULT_SHIPPING_RATE = Decimal("25.00")


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class PricingPolicy:
    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold: Decimal = Decimal("100")

    def shipping_for(self, subtotal: Decimal, country: Optional[str]) -> Decimal:
        if subtotal >= self.free_shipping_threshold:
            return Decimal("0")
        key = (country or DOMESTIC_COUNTRY).strip().upper()
        return SHIPPING_RATES.get(key, DEFAULT_SHIPPING_RATE)

    def tax_for(self, subtotal: Decimal) -> Decimal:
        return subtotal * self.tax_rate

    def totals(
        self,
        items: Iterable[OrderItem],
        country: Optional[str],
        discount_amount: Decimal = Decimal("0"),
    ) -> OrderTotals:
        subtotal = sum((item.total_price for item in items), Decimal("0"))
        shipping = self.shipping_for(subtotal, country)
        tax = self.tax_for(subtotal)
        return OrderTotals(
            subtotal=subtotal,
            shipping_amount=shipping,
            tax_amount=tax,
            discount_amount=discount_amount,
            total_amount=subtotal + shipping + tax - discount_amount,
        )
