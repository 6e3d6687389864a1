from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.exc import IntegrityError

from services.storefront.domain.cart import Cart, CartItem
from services.storefront.domain.errors import NotFoundError
from services.storefront.infrastructure.db import Base
from services.storefront.infrastructure.products import (
    ProductRecord,
    product_from_record,
)


class CartRecord(Base):
    __tablename__ = "carts"

    cart_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.user_id"), unique=True, nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class CartItemRecord(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
    )

    item_id = Column(Integer, primary_key=True, autoincrement=True)
    cart_id = Column(Integer, ForeignKey("carts.cart_id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.product_id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)


class PostgresCartRepository:
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def get(self, user_id: int) -> Cart | None:
        with self._session_factory() as db:
            record = self._find(db, user_id)
            if record is None:
                return None
            return self._load(db, record)

    def get_or_create(self, user_id: int) -> Cart:
        try:
            with self._session_factory() as db:
                record = self._find(db, user_id) or self._create(db, user_id)
                db.commit()
                return self._load(db, record)
        except IntegrityError:
            # Another request created the cart first.
            cart = self.get(user_id)
            if cart is None:
                raise
            return cart

    def set_item_quantity(
        self, *, user_id: int, product_id: int, quantity: int
    ) -> Cart:
        now = datetime.now(timezone.utc)
        with self._session_factory() as db:
            cart = self._find(db, user_id) or self._create(db, user_id)
            item = self._find_item(db, cart.cart_id, product_id)
            if item is None:
                db.add(
                    CartItemRecord(
                        cart_id=cart.cart_id,
                        product_id=product_id,
                        quantity=quantity,
                        added_at=now,
                        updated_at=now,
                    )
                )
            else:
                item.quantity = quantity
                item.updated_at = now
            cart.updated_at = now
            db.commit()
            return self._load(db, cart)

    def remove_item(self, *, user_id: int, product_id: int) -> Cart:
        with self._session_factory() as db:
            cart = self._find(db, user_id)
            item = self._find_item(db, cart.cart_id, product_id) if cart else None
            if item is None:
                raise NotFoundError(f"Product {product_id} is not in the cart")
            db.delete(item)
            cart.updated_at = datetime.now(timezone.utc)
            db.commit()
            return self._load(db, cart)

    def clear(self, user_id: int) -> None:
        with self._session_factory() as db:
            cart = self._find(db, user_id)
            if cart is None:
                return
            db.query(CartItemRecord).filter(
                CartItemRecord.cart_id == cart.cart_id
            ).delete(synchronize_session=False)
            cart.updated_at = datetime.now(timezone.utc)
            db.commit()

    def _find(self, db, user_id: int) -> CartRecord | None:
        return db.query(CartRecord).filter(CartRecord.user_id == user_id).one_or_none()

    def _create(self, db, user_id: int) -> CartRecord:
        now = datetime.now(timezone.utc)
        record = CartRecord(user_id=user_id, created_at=now, updated_at=now)
        db.add(record)
        db.flush()
        return record

    def _find_item(self, db, cart_id: int, product_id: int) -> CartItemRecord | None:
        return (
            db.query(CartItemRecord)
            .filter(
                CartItemRecord.cart_id == cart_id,
                CartItemRecord.product_id == product_id,
            )
            .one_or_none()
        )

    def _load(self, db, record: CartRecord) -> Cart:
        rows = (
            db.query(CartItemRecord, ProductRecord)
            .join(ProductRecord, ProductRecord.product_id == CartItemRecord.product_id)
            .filter(CartItemRecord.cart_id == record.cart_id)
            .order_by(CartItemRecord.item_id)
            .all()
        )
        return Cart(
            cart_id=record.cart_id,
            user_id=record.user_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
            items=[
                CartItem(
                    product=product_from_record(product),
                    quantity=item.quantity,
                    added_at=item.added_at,
                    updated_at=item.updated_at,
                )
                for item, product in rows
            ],
        )
