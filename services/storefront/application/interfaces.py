from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from services.storefront.application.dto import (
        OrderUpdate,
        PaymentRequest,
        PaymentResult,
    )
    from services.storefront.domain.cart import Cart
    from services.storefront.domain.order import Order, OrderStatus
    from services.storefront.domain.product import Product
    from services.storefront.domain.profile import ProfileDetails
    from services.storefront.domain.user import User


class IdProvider(Protocol):
    def generate(self) -> str: ...


class UserRepository(Protocol):
    def create(self, user: "User") -> "User": ...

    def get_by_id(self, user_id: int) -> Optional["User"]: ...


class ProductRepository(Protocol):
    def create(self, product: "Product") -> "Product": ...

    def get(self, product_id: int) -> Optional["Product"]: ...

    def update(self, product: "Product") -> "Product": ...


class CartRepository(Protocol):
    def get(self, user_id: int) -> Optional["Cart"]: ...

    def get_or_create(self, user_id: int) -> "Cart": ...

    def set_item_quantity(
        self, *, user_id: int, product_id: int, quantity: int
    ) -> "Cart": ...

    def remove_item(self, *, user_id: int, product_id: int) -> "Cart": ...

    def clear(self, user_id: int) -> None: ...


class OrderRepository(Protocol):
    def place(self, order: "Order") -> "Order":
        """Persist the order and reserve inventory for every item atomically."""
        ...

    def get(self, order_id: int) -> Optional["Order"]: ...

    def get_by_number(self, order_number: str) -> Optional["Order"]: ...

    def list_for_user(
        self, user_id: int, *, offset: int, limit: int
    ) -> tuple[list["Order"], int]: ...

    def list_all(
        self, *, status: Optional["OrderStatus"], offset: int, limit: int
    ) -> tuple[list["Order"], int]: ...

    def apply(self, order_id: int, update: "OrderUpdate") -> "Order": ...


class ProfileRepository(Protocol):
    def get(self, user_id: int) -> "ProfileDetails": ...

    def save(
        self, details: "ProfileDetails", *, mark_completed: bool = False
    ) -> "ProfileDetails": ...


class PaymentGateway(Protocol):
    def charge(self, request: "PaymentRequest") -> "PaymentResult": ...


class OrderNotifier(Protocol):
    def order_confirmed(self, order: "Order", user: "User") -> None: ...


class ProfilePictureStorage(Protocol):
    def upload(self, *, object_key: str, data: bytes, content_type: str) -> str: ...

    def delete(self, url: str) -> None: ...
