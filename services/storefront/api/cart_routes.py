from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from services.storefront.api.dependencies import AuthDependencies, domain_errors
from services.storefront.application.dto import (
    AddCartItemCommand,
    UpdateCartItemCommand,
)
from services.storefront.application.manage_cart import (
    AddCartItemUseCase,
    ClearCartUseCase,
    CountCartItemsUseCase,
    GetCartUseCase,
    RemoveCartItemUseCase,
    UpdateCartItemUseCase,
    ValidateCartUseCase,
)
from services.storefront.domain.cart import Cart, CartItem, CartValidation
from services.storefront.domain.user import User


class CartItemResponse(BaseModel):
    product_id: int
    product_name: str
    product_image_url: str | None
    price: Decimal
    discount_price: Decimal | None
    unit_price: Decimal
    quantity: int
    total_price: Decimal
    inventory_count: int
    available: bool
    added_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, item: CartItem) -> "CartItemResponse":
        product = item.product
        return cls(
            product_id=product.product_id,
            product_name=product.name,
            product_image_url=product.image_url,
            price=product.price,
            discount_price=product.discount_price,
            unit_price=item.unit_price,
            quantity=item.quantity,
            total_price=item.total_price,
            inventory_count=product.inventory_count,
            available=item.available,
            added_at=item.added_at,
            updated_at=item.updated_at,
        )


class CartResponse(BaseModel):
    id: int
    user_id: int
    items: List[CartItemResponse]
    item_count: int
    subtotal: Decimal
    total_discount: Decimal
    total_amount: Decimal
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, cart: Cart) -> "CartResponse":
        return cls(
            id=cart.cart_id,
            user_id=cart.user_id,
            items=[CartItemResponse.from_domain(item) for item in cart.items],
            item_count=cart.item_count,
            subtotal=cart.subtotal,
            total_discount=cart.total_discount,
            total_amount=cart.total_amount,
            created_at=cart.created_at,
            updated_at=cart.updated_at,
        )


class AddToCartRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


class CartCountResponse(BaseModel):
    count: int


class CartIssueResponse(BaseModel):
    product_id: int
    product_name: str
    reason: str
    requested: int
    available: int
    message: str


class CartValidationResponse(BaseModel):
    valid: bool
    issues: List[CartIssueResponse]

    @classmethod
    def from_domain(cls, validation: CartValidation) -> "CartValidationResponse":
        return cls(
            valid=validation.valid,
            issues=[
                CartIssueResponse(
                    product_id=issue.product_id,
                    product_name=issue.product_name,
                    reason=issue.reason.value,
                    requested=issue.requested,
                    available=issue.available,
                    message=issue.describe(),
                )
                for issue in validation.issues
            ],
        )


def create_cart_router(
    auth: AuthDependencies,
    *,
    get_cart_use_case: GetCartUseCase,
    add_item_use_case: AddCartItemUseCase,
    update_item_use_case: UpdateCartItemUseCase,
    remove_item_use_case: RemoveCartItemUseCase,
    clear_cart_use_case: ClearCartUseCase,
    count_items_use_case: CountCartItemsUseCase,
    validate_cart_use_case: ValidateCartUseCase,
) -> APIRouter:
    router = APIRouter(prefix="/api/cart", tags=["cart"])

    @router.get("", response_model=CartResponse)
    def get_cart(user: User = Depends(auth.current_user)):
        with domain_errors():
            cart = get_cart_use_case.execute(user.user_id)
        return CartResponse.from_domain(cart)

    @router.post("/add", response_model=CartResponse)
    def add_to_cart(payload: AddToCartRequest, user: User = Depends(auth.current_user)):
        command = AddCartItemCommand(
            user_id=user.user_id,
            product_id=payload.product_id,
            quantity=payload.quantity,
        )
        with domain_errors():
            cart = add_item_use_case.execute(command)
        return CartResponse.from_domain(cart)

    @router.put("/items/{product_id}", response_model=CartResponse)
    def update_cart_item(
        product_id: int,
        quantity: int = Query(...),
        user: User = Depends(auth.current_user),
    ):
        command = UpdateCartItemCommand(
            user_id=user.user_id, product_id=product_id, quantity=quantity
        )
        with domain_errors():
            cart = update_item_use_case.execute(command)
        return CartResponse.from_domain(cart)

    @router.delete("/items/{product_id}", response_model=CartResponse)
    def remove_cart_item(product_id: int, user: User = Depends(auth.current_user)):
        with domain_errors():
            cart = remove_item_use_case.execute(user.user_id, product_id)
        return CartResponse.from_domain(cart)

    @router.delete("/clear", status_code=204)
    def clear_cart(user: User = Depends(auth.current_user)):
        with domain_errors():
            clear_cart_use_case.execute(user.user_id)
        return None

    @router.get("/count", response_model=CartCountResponse)
    def count_cart_items(user: User = Depends(auth.current_user)):
        with domain_errors():
            count = count_items_use_case.execute(user.user_id)
        return CartCountResponse(count=count)

    @router.get("/validate", response_model=CartValidationResponse)
    def validate_cart(user: User = Depends(auth.current_user)):
        with domain_errors():
            validation = validate_cart_use_case.execute(user.user_id)
        return CartValidationResponse.from_domain(validation)

    return router
