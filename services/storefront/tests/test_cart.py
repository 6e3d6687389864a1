from dataclasses import replace
from decimal import Decimal

import pytest

from services.storefront.application.dto import AddCartItemCommand, UpdateCartItemCommand
from services.storefront.application.manage_cart import (
    AddCartItemUseCase,
    ClearCartUseCase,
    CountCartItemsUseCase,
    GetCartUseCase,
    RemoveCartItemUseCase,
    UpdateCartItemUseCase,
    ValidateCartUseCase,
)
from services.storefront.domain.cart import CartIssueReason
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.infrastructure.products import reserve_stock


def _cart_args(store):
    return dict(user_repository=store.users, cart_repository=store.carts)


def _writer_args(store):
    return dict(_cart_args(store), product_repository=store.products)


def test_get_cart_creates_empty_cart(store):
    user = store.add_user()
    cart = GetCartUseCase(**_cart_args(store)).execute(user.user_id)

    assert cart.user_id == user.user_id
    assert cart.is_empty
    assert cart.total_amount == Decimal("0")


def test_get_cart_for_unknown_user(store):
    with pytest.raises(NotFoundError):
        GetCartUseCase(**_cart_args(store)).execute(999)


def test_adding_same_product_accumulates_quantity(store):
    user = store.add_user()
    mat = store.add_product(inventory=5)
    add = AddCartItemUseCase(**_writer_args(store))

    add.execute(AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=2))
    cart = add.execute(
        AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=1)
    )

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 3
    assert CountCartItemsUseCase(**_cart_args(store)).execute(user.user_id) == 3


def test_add_rejects_more_than_stock(store):
    user = store.add_user()
    mat = store.add_product(inventory=2)
    add = AddCartItemUseCase(**_writer_args(store))

    with pytest.raises(BadRequestError):
        add.execute(
            AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=3)
        )


def test_add_rejects_inactive_and_unknown_products(store):
    user = store.add_user()
    retired = store.add_product(active=False)
    add = AddCartItemUseCase(**_writer_args(store))

    with pytest.raises(BadRequestError):
        add.execute(AddCartItemCommand(user_id=user.user_id, product_id=retired.product_id))
    with pytest.raises(NotFoundError):
        add.execute(AddCartItemCommand(user_id=user.user_id, product_id=4242))


def test_cart_totals_use_discount_price(store):
    user = store.add_user()
    shoes = store.add_product("Running Shoes", "80.00", discount_price="60.00")
    bottle = store.add_product("Bottle", "10.00")
    add = AddCartItemUseCase(**_writer_args(store))
    add.execute(AddCartItemCommand(user_id=user.user_id, product_id=shoes.product_id))
    cart = add.execute(
        AddCartItemCommand(user_id=user.user_id, product_id=bottle.product_id, quantity=2)
    )

    assert cart.subtotal == Decimal("100.00")
    assert cart.total_amount == Decimal("80.00")
    assert cart.total_discount == Decimal("20.00")
    assert cart.total_amount == sum(item.total_price for item in cart.items)


def test_update_and_remove_item(store):
    user = store.add_user()
    mat = store.add_product(inventory=10)
    AddCartItemUseCase(**_writer_args(store)).execute(
        AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id)
    )

    cart = UpdateCartItemUseCase(**_writer_args(store)).execute(
        UpdateCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=7)
    )
    assert cart.items[0].quantity == 7

    with pytest.raises(BadRequestError):
        UpdateCartItemUseCase(**_writer_args(store)).execute(
            UpdateCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=0)
        )

    cart = RemoveCartItemUseCase(**_cart_args(store)).execute(user.user_id, mat.product_id)
    assert cart.is_empty
    with pytest.raises(NotFoundError):
        RemoveCartItemUseCase(**_cart_args(store)).execute(user.user_id, mat.product_id)


def test_update_item_not_in_cart(store):
    user = store.add_user()
    mat = store.add_product()
    with pytest.raises(NotFoundError):
        UpdateCartItemUseCase(**_writer_args(store)).execute(
            UpdateCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=1)
        )


def test_clear_cart(store):
    user = store.add_user()
    mat = store.add_product()
    AddCartItemUseCase(**_writer_args(store)).execute(
        AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=2)
    )

    ClearCartUseCase(**_cart_args(store)).execute(user.user_id)

    assert CountCartItemsUseCase(**_cart_args(store)).execute(user.user_id) == 0


def test_validate_reports_stock_and_availability_changes(store, session_factory):
    user = store.add_user()
    mat = store.add_product("Yoga Mat", inventory=5)
    band = store.add_product("Band", inventory=5)
    add = AddCartItemUseCase(**_writer_args(store))
    add.execute(AddCartItemCommand(user_id=user.user_id, product_id=mat.product_id, quantity=4))
    add.execute(AddCartItemCommand(user_id=user.user_id, product_id=band.product_id))

    # Stock sold elsewhere and a product retired after it was carted.
    with session_factory() as db:
        assert reserve_stock(db, mat.product_id, 3)
        db.commit()
    store.products.update(replace(band, active=False))

    validation = ValidateCartUseCase(**_cart_args(store)).execute(user.user_id)

    assert not validation.valid
    reasons = {issue.product_id: issue for issue in validation.issues}
    assert reasons[mat.product_id].reason is CartIssueReason.INSUFFICIENT_INVENTORY
    assert reasons[mat.product_id].requested == 4
    assert reasons[mat.product_id].available == 2
    assert reasons[band.product_id].reason is CartIssueReason.PRODUCT_INACTIVE
