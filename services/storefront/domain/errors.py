"""Errors raised by storefront use cases."""

from __future__ import annotations

from typing import Iterable


class NotFoundError(LookupError):
    """A referenced entity does not exist (or is not visible to the caller)."""


class BadRequestError(ValueError):
    """The request is invalid for the current state of the system."""


class InsufficientInventoryError(BadRequestError):
    def __init__(self, product_id: int, product_name: str | None = None) -> None:
        self.product_id = product_id
        label = product_name or f"#{product_id}"
        super().__init__(f"Insufficient inventory for product: {label}")


class InvalidStatusTransitionError(BadRequestError):
    def __init__(self, current: str, target: str, allowed: Iterable[str] = ()) -> None:
        self.current = current
        self.target = target
        self.allowed = sorted(allowed)
        options = ", ".join(self.allowed) or "none"
        super().__init__(
            f"Cannot change order status from {current} to {target} (allowed: {options})"
        )


class ConcurrentModificationError(BadRequestError):
    def __init__(self, entity: str = "Order") -> None:
        super().__init__(f"{entity} was modified concurrently, please retry")
