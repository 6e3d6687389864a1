from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from services.storefront.application.dto import OrderUpdate
from services.storefront.domain.errors import (
    ConcurrentModificationError,
    InsufficientInventoryError,
    NotFoundError,
)
from services.storefront.domain.order import (
    Address,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.storefront.infrastructure.db import Base
from services.storefront.infrastructure.products import (
    MONEY,
    release_stock,
    reserve_stock,
)

LOGGER = logging.getLogger(__name__)

_ADDRESS_FIELDS = (
    "full_name",
    "line1",
    "line2",
    "city",
    "state",
    "postal_code",
    "country",
    "phone",
)


class OrderRecord(Base):
    __tablename__ = "orders"

    order_id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String, unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.user_id"), nullable=False, index=True)
    status = Column(String, nullable=False, index=True)
    payment_status = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)
    payment_reference = Column(String, nullable=True)

    shipping_full_name = Column(String, nullable=True)
    shipping_line1 = Column(String, nullable=False)
    shipping_line2 = Column(String, nullable=True)
    shipping_city = Column(String, nullable=False)
    shipping_state = Column(String, nullable=True)
    shipping_postal_code = Column(String, nullable=True)
    shipping_country = Column(String, nullable=False)
    shipping_phone = Column(String, nullable=True)

    billing_full_name = Column(String, nullable=True)
    billing_line1 = Column(String, nullable=False)
    billing_line2 = Column(String, nullable=True)
    billing_city = Column(String, nullable=False)
    billing_state = Column(String, nullable=True)
    billing_postal_code = Column(String, nullable=True)
    billing_country = Column(String, nullable=False)
    billing_phone = Column(String, nullable=True)

    customer_notes = Column(Text, nullable=True)
    subtotal = Column(MONEY, nullable=False)
    shipping_amount = Column(MONEY, nullable=False)
    tax_amount = Column(MONEY, nullable=False)
    discount_amount = Column(MONEY, nullable=False)
    total_amount = Column(MONEY, nullable=False)

    tracking_number = Column(String, nullable=True)
    estimated_delivery_date = Column(DateTime(timezone=True), nullable=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class OrderItemRecord(Base):
    __tablename__ = "order_items"

    item_id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(Integer, ForeignKey("orders.order_id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    product_name = Column(String, nullable=False)
    product_description = Column(Text, nullable=True)
    product_category = Column(String, nullable=True)
    product_image_url = Column(String, nullable=True)
    quantity = Column(Integer, nullable=False)
    price = Column(MONEY, nullable=False)
    discount_price = Column(MONEY, nullable=True)
    unit_price = Column(MONEY, nullable=False)
    total_price = Column(MONEY, nullable=False)


def _address_columns(prefix: str, address: Address) -> dict[str, object]:
    return {f"{prefix}_{name}": getattr(address, name) for name in _ADDRESS_FIELDS}


def _address_from(record: OrderRecord, prefix: str) -> Address:
    return Address(
        **{name: getattr(record, f"{prefix}_{name}") for name in _ADDRESS_FIELDS}
    )


def _money(value) -> Optional[Decimal]:
    return Decimal(value) if value is not None else None


def _item_from(record: OrderItemRecord) -> OrderItem:
    return OrderItem(
        item_id=record.item_id,
        product_id=record.product_id,
        product_name=record.product_name,
        product_description=record.product_description,
        product_category=record.product_category,
        product_image_url=record.product_image_url,
        quantity=record.quantity,
        price=_money(record.price),
        discount_price=_money(record.discount_price),
        unit_price=_money(record.unit_price),
    )


def _order_from(record: OrderRecord, items: Iterable[OrderItemRecord]) -> Order:
    return Order(
        order_id=record.order_id,
        order_number=record.order_number,
        user_id=record.user_id,
        status=OrderStatus(record.status),
        payment_status=PaymentStatus(record.payment_status),
        payment_method=PaymentMethod(record.payment_method),
        payment_reference=record.payment_reference,
        shipping_address=_address_from(record, "shipping"),
        billing_address=_address_from(record, "billing"),
        customer_notes=record.customer_notes,
        subtotal=_money(record.subtotal),
        shipping_amount=_money(record.shipping_amount),
        tax_amount=_money(record.tax_amount),
        discount_amount=_money(record.discount_amount),
        total_amount=_money(record.total_amount),
        tracking_number=record.tracking_number,
        estimated_delivery_date=record.estimated_delivery_date,
        shipped_at=record.shipped_at,
        delivered_at=record.delivered_at,
        created_at=record.created_at,
        updated_at=record.updated_at,
        items=[_item_from(item) for item in items],
    )


class PostgresOrderRepository:
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def place(self, order: Order) -> Order:
        """Insert the order and reserve its stock in one transaction.

        If any product cannot supply its quantity the transaction is rolled
        back: no order row exists and no stock count has changed.
        """
        with self._session_factory.begin() as db:
            # Stable row order keeps concurrent reservations from deadlocking.
            for item in sorted(order.items, key=lambda i: i.product_id):
                if not reserve_stock(db, item.product_id, item.quantity):
                    raise InsufficientInventoryError(item.product_id, item.product_name)

            record = OrderRecord(
                order_number=order.order_number,
                user_id=order.user_id,
                status=order.status.value,
                payment_status=order.payment_status.value,
                payment_method=order.payment_method.value,
                payment_reference=order.payment_reference,
                customer_notes=order.customer_notes,
                subtotal=order.subtotal,
                shipping_amount=order.shipping_amount,
                tax_amount=order.tax_amount,
                discount_amount=order.discount_amount,
                total_amount=order.total_amount,
                tracking_number=order.tracking_number,
                estimated_delivery_date=order.estimated_delivery_date,
                created_at=order.created_at,
                updated_at=order.updated_at,
                **_address_columns("shipping", order.shipping_address),
                **_address_columns("billing", order.billing_address),
            )
            db.add(record)
            db.flush()

            items = [
                OrderItemRecord(
                    order_id=record.order_id,
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
                for item in order.items
            ]
            db.add_all(items)
            db.flush()
            return _order_from(record, items)

    def get(self, order_id: int) -> Order | None:
        with self._session_factory() as db:
            record = db.get(OrderRecord, order_id)
            if record is None:
                return None
            return _order_from(record, self._items(db, order_id))

    def get_by_number(self, order_number: str) -> Order | None:
        with self._session_factory() as db:
            record = (
                db.query(OrderRecord)
                .filter(OrderRecord.order_number == order_number)
                .one_or_none()
            )
            if record is None:
                return None
            return _order_from(record, self._items(db, record.order_id))

    def list_for_user(
        self, user_id: int, *, offset: int, limit: int
    ) -> tuple[list[Order], int]:
        with self._session_factory() as db:
            query = db.query(OrderRecord).filter(OrderRecord.user_id == user_id)
            return self._page(db, query, offset=offset, limit=limit)

    def list_all(
        self, *, status: Optional[OrderStatus], offset: int, limit: int
    ) -> tuple[list[Order], int]:
        with self._session_factory() as db:
            query = db.query(OrderRecord)
            if status is not None:
                query = query.filter(OrderRecord.status == status.value)
            return self._page(db, query, offset=offset, limit=limit)

    def apply(self, order_id: int, update: OrderUpdate) -> Order:
        """Apply a status/payment change to a locked order row."""
        with self._session_factory.begin() as db:
            record = (
                db.query(OrderRecord)
                .filter(OrderRecord.order_id == order_id)
                .with_for_update()
                .one_or_none()
            )
            if record is None:
                raise NotFoundError(f"Order not found with id: {order_id}")
            if record.status != update.expected_status.value:
                raise ConcurrentModificationError()

            items = self._items(db, order_id)
            if update.release_inventory:
                for item in sorted(items, key=lambda i: i.product_id):
                    release_stock(db, item.product_id, item.quantity)
                LOGGER.info("Released stock for order %s", record.order_number)

            if update.status is not None:
                record.status = update.status.value
            if update.payment_status is not None:
                record.payment_status = update.payment_status.value
            if update.payment_reference is not None:
                record.payment_reference = update.payment_reference
            if update.customer_notes is not None:
                record.customer_notes = update.customer_notes
            if update.tracking_number is not None:
                record.tracking_number = update.tracking_number
            if update.shipped_at is not None:
                record.shipped_at = update.shipped_at
            if update.delivered_at is not None:
                record.delivered_at = update.delivered_at
            record.updated_at = datetime.now(timezone.utc)
            db.flush()
            return _order_from(record, items)

    def _items(self, db, order_id: int) -> list[OrderItemRecord]:
        return (
            db.query(OrderItemRecord)
            .filter(OrderItemRecord.order_id == order_id)
            .order_by(OrderItemRecord.item_id)
            .all()
        )

    def _page(self, db, query, *, offset: int, limit: int) -> tuple[list[Order], int]:
        total = query.with_entities(func.count(OrderRecord.order_id)).scalar()
        records = (
            query.order_by(OrderRecord.created_at.desc(), OrderRecord.order_id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        items_by_order: dict[int, list[OrderItemRecord]] = defaultdict(list)
        if records:
            rows = (
                db.query(OrderItemRecord)
                .filter(OrderItemRecord.order_id.in_([r.order_id for r in records]))
                .order_by(OrderItemRecord.item_id)
                .all()
            )
            for row in rows:
                items_by_order[row.order_id].append(row)
        orders = [_order_from(r, items_by_order[r.order_id]) for r in records]
        return orders, total
