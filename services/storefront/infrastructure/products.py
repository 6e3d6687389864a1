"""Product catalog records and the guarded inventory operations.

Stock counts are only ever changed through ``reserve_stock`` and
``release_stock``. Both are single UPDATE statements evaluated by the
database, so concurrent checkouts cannot read-modify-write a stale count.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Boolean, Column, Integer, JSON, Numeric, String, Text
from sqlalchemy.orm import Session

from services.storefront.domain.errors import NotFoundError
from services.storefront.domain.product import Product
from services.storefront.infrastructure.db import Base

MONEY = Numeric(12, 4)


class ProductRecord(Base):
    __tablename__ = "products"

    product_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(MONEY, nullable=False)
    discount_price = Column(MONEY, nullable=True)
    inventory_count = Column(Integer, nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    categories = Column(JSON, nullable=False, default=list)
    image_url = Column(String, nullable=True)


def product_from_record(record: ProductRecord) -> Product:
    return Product(
        product_id=record.product_id,
        name=record.name,
        description=record.description,
        price=Decimal(record.price),
        discount_price=(
            Decimal(record.discount_price) if record.discount_price is not None else None
        ),
        inventory_count=record.inventory_count,
        active=bool(record.active),
        categories=list(record.categories or []),
        image_url=record.image_url,
    )


def reserve_stock(db: Session, product_id: int, quantity: int) -> bool:
    """Decrement stock if the product is active and has enough units."""
    updated = (
        db.query(ProductRecord)
        .filter(
            ProductRecord.product_id == product_id,
            ProductRecord.active.is_(True),
            ProductRecord.inventory_count >= quantity,
        )
        .update(
            {ProductRecord.inventory_count: ProductRecord.inventory_count - quantity},
            synchronize_session=False,
        )
    )
    return updated == 1


def release_stock(db: Session, product_id: int, quantity: int) -> None:
    (
        db.query(ProductRecord)
        .filter(ProductRecord.product_id == product_id)
        .update(
            {ProductRecord.inventory_count: ProductRecord.inventory_count + quantity},
            synchronize_session=False,
        )
    )


class PostgresProductRepository:
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def create(self, product: Product) -> Product:
        record = ProductRecord(
            name=product.name,
            description=product.description,
            price=product.price,
            discount_price=product.discount_price,
            inventory_count=product.inventory_count,
            active=product.active,
            categories=list(product.categories),
            image_url=product.image_url,
        )
        with self._session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            return product_from_record(record)

    def get(self, product_id: int) -> Product | None:
        with self._session_factory() as db:
            record = db.get(ProductRecord, product_id)
            if record is None:
                return None
            return product_from_record(record)

    def update(self, product: Product) -> Product:
        """Update catalog details. Stock counts are left to reserve/release."""
        with self._session_factory() as db:
            record = db.get(ProductRecord, product.product_id)
            if record is None:
                raise NotFoundError(f"Product not found with id: {product.product_id}")
            record.name = product.name
            record.description = product.description
            record.price = product.price
            record.discount_price = product.discount_price
            record.active = product.active
            record.categories = list(product.categories)
            record.image_url = product.image_url
            db.commit()
            db.refresh(record)
            return product_from_record(record)
