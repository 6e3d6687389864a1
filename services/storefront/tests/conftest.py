from __future__ import annotations

import pytest

from services.storefront.infrastructure.carts import PostgresCartRepository
from services.storefront.infrastructure.db import create_session_factory
from services.storefront.infrastructure.orders import PostgresOrderRepository
from services.storefront.infrastructure.products import PostgresProductRepository
from services.storefront.infrastructure.profiles import PostgresProfileRepository
from services.storefront.infrastructure.users import PostgresUserRepository
from services.storefront.tests.fakes import Store, sqlite_url


@pytest.fixture
def session_factory(tmp_path):
    return create_session_factory(sqlite_url(tmp_path))


@pytest.fixture
def store(session_factory) -> Store:
    return Store(
        users=PostgresUserRepository(session_factory=session_factory),
        products=PostgresProductRepository(session_factory=session_factory),
        carts=PostgresCartRepository(session_factory=session_factory),
        orders=PostgresOrderRepository(session_factory=session_factory),
        profiles=PostgresProfileRepository(session_factory=session_factory),
    )
