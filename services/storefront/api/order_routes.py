from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from services.storefront.api.dependencies import AuthDependencies, domain_errors
from services.storefront.application.cancel_order import CancelOrderUseCase
from services.storefront.application.checkout import CheckoutUseCase
from services.storefront.application.dto import (
    CancelOrderCommand,
    CheckoutCommand,
    OrderPage,
    PaymentDetails,
    UpdateOrderStatusCommand,
    UpdatePaymentStatusCommand,
)
from services.storefront.application.query_orders import OrderQueries
from services.storefront.application.update_order_status import (
    UpdateOrderStatusUseCase,
    UpdatePaymentStatusUseCase,
)
from services.storefront.domain.order import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.storefront.domain.user import User

LOGGER = logging.getLogger(__name__)


class AddressPayload(BaseModel):
    full_name: str | None = None
    line1: str = Field(min_length=1)
    line2: str | None = None
    city: str = Field(min_length=1)
    state: str | None = None
    postal_code: str | None = None
    country: str = "RW"
    phone: str | None = None

    def to_domain(self) -> Address:
        return Address(
            full_name=self.full_name,
            line1=self.line1,
            line2=self.line2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
            phone=self.phone,
        )


class AddressResponse(AddressPayload):
    formatted: str

    @classmethod
    def from_domain(cls, address: Address) -> "AddressResponse":
        return cls(
            full_name=address.full_name,
            line1=address.line1,
            line2=address.line2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
            phone=address.phone,
            formatted=address.formatted(),
        )


class PaymentDetailsPayload(BaseModel):
    card_number: str | None = None
    expiry_month: str | None = None
    expiry_year: str | None = None
    cvv: str | None = None
    card_holder_name: str | None = None
    wallet_id: str | None = None
    wallet_provider: str | None = None
    bank_account_number: str | None = None
    routing_number: str | None = None
    bank_name: str | None = None
    payment_token: str | None = None


class CheckoutRequest(BaseModel):
    payment_method: PaymentMethod
    shipping_address: AddressPayload
    billing_address: AddressPayload | None = None
    customer_notes: str | None = Field(default=None, max_length=1000)
    payment_details: PaymentDetailsPayload | None = None


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus
    tracking_number: str | None = None


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: PaymentStatus


class OrderItemResponse(BaseModel):
    id: int | None
    product_id: int
    product_name: str
    product_description: str | None
    product_category: str | None
    product_image_url: str | None
    quantity: int
    price: Decimal
    discount_price: Decimal | None
    unit_price: Decimal
    total_price: Decimal

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.item_id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_description=item.product_description,
            product_category=item.product_category,
            product_image_url=item.product_image_url,
            quantity=item.quantity,
            price=item.price,
            discount_price=item.discount_price,
            unit_price=item.unit_price,
            total_price=item.total_price,
        )


class OrderResponse(BaseModel):
    id: int
    order_number: str
    user_id: int
    status: OrderStatus
    payment_status: PaymentStatus
    payment_method: PaymentMethod
    payment_reference: str | None
    shipping_address: AddressResponse
    billing_address: AddressResponse
    customer_notes: str | None
    subtotal: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    item_count: int
    items: List[OrderItemResponse]
    tracking_number: str | None
    estimated_delivery_date: datetime | None
    shipped_at: datetime | None
    delivered_at: datetime | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.order_id,
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            payment_reference=order.payment_reference,
            shipping_address=AddressResponse.from_domain(order.shipping_address),
            billing_address=AddressResponse.from_domain(order.billing_address),
            customer_notes=order.customer_notes,
            subtotal=order.subtotal,
            shipping_amount=order.shipping_amount,
            tax_amount=order.tax_amount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            item_count=order.item_count,
            items=[OrderItemResponse.from_domain(item) for item in order.items],
            tracking_number=order.tracking_number,
            estimated_delivery_date=order.estimated_delivery_date,
            shipped_at=order.shipped_at,
            delivered_at=order.delivered_at,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderPageResponse(BaseModel):
    content: List[OrderResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int

    @classmethod
    def from_domain(cls, page: OrderPage) -> "OrderPageResponse":
        return cls(
            content=[OrderResponse.from_domain(order) for order in page.orders],
            page=page.page,
            size=page.size,
            total_elements=page.total,
            total_pages=page.total_pages,
        )


def _payment_details(payload: Optional[PaymentDetailsPayload]) -> Optional[PaymentDetails]:
    if payload is None:
        return None
    return PaymentDetails(**payload.model_dump())


def create_order_router(
    auth: AuthDependencies,
    *,
    checkout_use_case: CheckoutUseCase,
    order_queries: OrderQueries,
    cancel_order_use_case: CancelOrderUseCase,
    update_status_use_case: UpdateOrderStatusUseCase,
    update_payment_status_use_case: UpdatePaymentStatusUseCase,
) -> APIRouter:
    router = APIRouter(prefix="/api/orders", tags=["orders"])

    @router.post("/checkout", response_model=OrderResponse, status_code=201)
    def checkout(payload: CheckoutRequest, user: User = Depends(auth.current_user)):
        LOGGER.info("Checkout requested by user %s", user.user_id)
        command = CheckoutCommand(
            user_id=user.user_id,
            payment_method=payload.payment_method,
            shipping_address=payload.shipping_address.to_domain(),
            billing_address=(
                payload.billing_address.to_domain() if payload.billing_address else None
            ),
            customer_notes=payload.customer_notes,
            payment_details=_payment_details(payload.payment_details),
        )
        with domain_errors():
            order = checkout_use_case.execute(command)
        return OrderResponse.from_domain(order)

    @router.get("/my-orders", response_model=OrderPageResponse)
    def my_orders(
        page: int = Query(0),
        size: int = Query(10),
        user: User = Depends(auth.current_user),
    ):
        with domain_errors():
            result = order_queries.user_orders(user.user_id, page=page, size=size)
        return OrderPageResponse.from_domain(result)

    @router.get("/recent", response_model=List[OrderResponse])
    def recent_orders(
        limit: int = Query(5),
        user: User = Depends(auth.current_user),
    ):
        with domain_errors():
            orders = order_queries.recent_orders(user.user_id, limit=limit)
        return [OrderResponse.from_domain(order) for order in orders]

    @router.get("/number/{order_number}", response_model=OrderResponse)
    def get_order_by_number(order_number: str, user: User = Depends(auth.current_user)):
        with domain_errors():
            order = order_queries.get_by_number(order_number, user.user_id)
        return OrderResponse.from_domain(order)

    @router.get("", response_model=OrderPageResponse)
    def list_orders(
        status: Optional[OrderStatus] = Query(None),
        page: int = Query(0),
        size: int = Query(20),
        _admin: User = Depends(auth.admin_user),
    ):
        with domain_errors():
            result = order_queries.all_orders(status=status, page=page, size=size)
        return OrderPageResponse.from_domain(result)

    @router.get("/{order_id}", response_model=OrderResponse)
    def get_order(order_id: int, user: User = Depends(auth.current_user)):
        with domain_errors():
            order = order_queries.get(order_id, user.user_id)
        return OrderResponse.from_domain(order)

    @router.put("/{order_id}/cancel", response_model=OrderResponse)
    def cancel_order(
        order_id: int,
        payload: CancelOrderRequest | None = None,
        user: User = Depends(auth.current_user),
    ):
        command = CancelOrderCommand(
            order_id=order_id,
            user_id=user.user_id,
            reason=(payload.reason if payload else None) or "",
        )
        with domain_errors():
            order = cancel_order_use_case.execute(command)
        return OrderResponse.from_domain(order)

    @router.put("/{order_id}/status", response_model=OrderResponse)
    def update_order_status(
        order_id: int,
        payload: UpdateOrderStatusRequest,
        _admin: User = Depends(auth.admin_user),
    ):
        command = UpdateOrderStatusCommand(
            order_id=order_id,
            status=payload.status,
            tracking_number=payload.tracking_number,
        )
        with domain_errors():
            order = update_status_use_case.execute(command)
        return OrderResponse.from_domain(order)

    @router.put("/{order_id}/payment-status", response_model=OrderResponse)
    def update_payment_status(
        order_id: int,
        payload: UpdatePaymentStatusRequest,
        _admin: User = Depends(auth.admin_user),
    ):
        command = UpdatePaymentStatusCommand(
            order_id=order_id, payment_status=payload.payment_status
        )
        with domain_errors():
            order = update_payment_status_use_case.execute(command)
        return OrderResponse.from_domain(order)

    return router
