from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class Product:
    product_id: int
    name: str
    price: Decimal
    inventory_count: int
    active: bool = True
    description: Optional[str] = None
    discount_price: Optional[Decimal] = None
    categories: List[str] = field(default_factory=list)
    image_url: Optional[str] = None

    @property
    def effective_price(self) -> Decimal:
        if self.discount_price is not None and self.discount_price > 0:
            return self.discount_price
        return self.price

    def can_supply(self, quantity: int) -> bool:
        return self.active and self.inventory_count >= quantity
