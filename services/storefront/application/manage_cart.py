"""Cart use cases."""

from __future__ import annotations

import logging

from services.storefront.application.dto import (
    AddCartItemCommand,
    UpdateCartItemCommand,
)
from services.storefront.application.interfaces import (
    CartRepository,
    ProductRepository,
    UserRepository,
)
from services.storefront.domain.cart import Cart, CartValidation, validate_cart
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.product import Product

LOGGER = logging.getLogger(__name__)


class _CartUseCase:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        cart_repository: CartRepository,
    ) -> None:
        self._users = user_repository
        self._carts = cart_repository

    def _load_cart(self, user_id: int) -> Cart:
        if self._users.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found with id: {user_id}")
        return self._carts.get_or_create(user_id)


class GetCartUseCase(_CartUseCase):
    def execute(self, user_id: int) -> Cart:
        return self._load_cart(user_id)


class CountCartItemsUseCase(_CartUseCase):
    def execute(self, user_id: int) -> int:
        return self._load_cart(user_id).item_count


class ClearCartUseCase(_CartUseCase):
    def execute(self, user_id: int) -> None:
        self._load_cart(user_id)
        self._carts.clear(user_id)


class ValidateCartUseCase(_CartUseCase):
    def execute(self, user_id: int) -> CartValidation:
        return validate_cart(self._load_cart(user_id))


class RemoveCartItemUseCase(_CartUseCase):
    def execute(self, user_id: int, product_id: int) -> Cart:
        cart = self._load_cart(user_id)
        if cart.find_item(product_id) is None:
            raise NotFoundError(f"Product {product_id} is not in the cart")
        return self._carts.remove_item(user_id=user_id, product_id=product_id)


class _CartItemWriter(_CartUseCase):
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        cart_repository: CartRepository,
        product_repository: ProductRepository,
    ) -> None:
        super().__init__(user_repository=user_repository, cart_repository=cart_repository)
        self._products = product_repository

    def _load_product(self, product_id: int) -> Product:
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError(f"Product not found with id: {product_id}")
        return product


def _check_quantity(product: Product, quantity: int) -> None:
    if quantity < 1:
        raise BadRequestError("Quantity must be at least 1")
    if not product.active:
        raise BadRequestError(f"Product is not available: {product.name}")
    if product.inventory_count < quantity:
        raise BadRequestError(
            f"Only {product.inventory_count} units of {product.name} are in stock"
        )


class AddCartItemUseCase(_CartItemWriter):
    def execute(self, command: AddCartItemCommand) -> Cart:
        if command.quantity < 1:
            raise BadRequestError("Quantity must be at least 1")
        cart = self._load_cart(command.user_id)
        product = self._load_product(command.product_id)
        existing = cart.find_item(product.product_id)
        quantity = command.quantity + (existing.quantity if existing else 0)
        _check_quantity(product, quantity)
        LOGGER.info(
            "Cart of user %s: product %s quantity -> %s",
            command.user_id,
            product.product_id,
            quantity,
        )
        return self._carts.set_item_quantity(
            user_id=command.user_id, product_id=product.product_id, quantity=quantity
        )


class UpdateCartItemUseCase(_CartItemWriter):
    def execute(self, command: UpdateCartItemCommand) -> Cart:
        cart = self._load_cart(command.user_id)
        if cart.find_item(command.product_id) is None:
            raise NotFoundError(f"Product {command.product_id} is not in the cart")
        product = self._load_product(command.product_id)
        _check_quantity(product, command.quantity)
        return self._carts.set_item_quantity(
            user_id=command.user_id,
            product_id=command.product_id,
            quantity=command.quantity,
        )
