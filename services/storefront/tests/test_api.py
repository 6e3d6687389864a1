from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from services.storefront.config import StorefrontConfig
from services.storefront.domain.user import UserRole
from services.storefront.infrastructure.carts import PostgresCartRepository
from services.storefront.infrastructure.db import create_session_factory
from services.storefront.infrastructure.orders import PostgresOrderRepository
from services.storefront.infrastructure.products import PostgresProductRepository
from services.storefront.infrastructure.profiles import PostgresProfileRepository
from services.storefront.infrastructure.tokens import Hs256TokenVerifier
from services.storefront.infrastructure.users import PostgresUserRepository
from services.storefront.main import build_app
from services.storefront.tests.fakes import (
    FakePaymentGateway,
    FakePictureStorage,
    RecordingNotifier,
    Store,
    sqlite_url,
)

SECRET = "test-secret"
ADDRESS = {"full_name": "Amina K", "line1": "KN 5 Rd", "city": "Kigali", "country": "RW"}


@pytest.fixture
def api(tmp_path):
    url = sqlite_url(tmp_path, "api.db")
    storage = FakePictureStorage()
    app = build_app(
        StorefrontConfig(jwt_secret=SECRET, database_url=url),
        payment_gateway=FakePaymentGateway(),
        notifier=RecordingNotifier(),
        picture_storage=storage,
    )
    factory = create_session_factory(url)
    store = Store(
        users=PostgresUserRepository(session_factory=factory),
        products=PostgresProductRepository(session_factory=factory),
        carts=PostgresCartRepository(session_factory=factory),
        orders=PostgresOrderRepository(session_factory=factory),
        profiles=PostgresProfileRepository(session_factory=factory),
    )
    return TestClient(app), store


def _auth(user):
    token = Hs256TokenVerifier(SECRET).issue(user.user_id)
    return {"Authorization": f"Bearer {token}"}


def test_ping(api):
    client, _ = api
    assert client.get("/ping").json() == {"message": "pong"}


def test_requests_without_valid_token_are_rejected(api):
    client, store = api
    assert client.get("/api/cart").status_code == 401
    bad = {"Authorization": "Bearer abc.def.ghi"}
    assert client.get("/api/cart", headers=bad).status_code == 401
    ghost = store.add_user()
    headers = {"Authorization": f"Bearer {Hs256TokenVerifier('wrong').issue(ghost.user_id)}"}
    assert client.get("/api/cart", headers=headers).status_code == 401


def test_cart_and_checkout_flow(api):
    client, store = api
    user = store.add_user()
    mat = store.add_product("Yoga Mat", "44.99", inventory=10)
    headers = _auth(user)

    response = client.post(
        "/api/cart/add", json={"product_id": mat.product_id, "quantity": 3}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["item_count"] == 3
    assert client.get("/api/cart/count", headers=headers).json() == {"count": 3}
    assert client.get("/api/cart/validate", headers=headers).json() == {
        "valid": True,
        "issues": [],
    }

    response = client.post(
        "/api/orders/checkout",
        json={
            "payment_method": "CREDIT_CARD",
            "shipping_address": ADDRESS,
            "payment_details": {"card_number": "4111111111111111", "cvv": "123"},
        },
        headers=headers,
    )
    assert response.status_code == 201
    order = response.json()
    assert order["status"] == "CONFIRMED"
    assert order["payment_status"] == "PAID"
    assert Decimal(order["total_amount"]) == Decimal("148.467")
    assert order["shipping_address"]["formatted"] == "Amina K, KN 5 Rd, Kigali, RW"
    assert "card_number" not in response.text
    assert store.stock(mat.product_id) == 7
    assert client.get("/api/cart/count", headers=headers).json() == {"count": 0}

    by_number = client.get(f"/api/orders/number/{order['order_number']}", headers=headers)
    assert by_number.json()["id"] == order["id"]
    mine = client.get("/api/orders/my-orders", headers=headers).json()
    assert mine["total_elements"] == 1
    recent = client.get("/api/orders/recent?limit=3", headers=headers).json()
    assert [o["id"] for o in recent] == [order["id"]]


def test_checkout_with_empty_cart_is_bad_request(api):
    client, store = api
    headers = _auth(store.add_user())
    client.get("/api/cart", headers=headers)

    response = client.post(
        "/api/orders/checkout",
        json={"payment_method": "PAYPAL", "shipping_address": ADDRESS},
        headers=headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot checkout with empty cart"


def test_cart_item_endpoints(api):
    client, store = api
    headers = _auth(store.add_user())
    mat = store.add_product(inventory=4)
    client.post("/api/cart/add", json={"product_id": mat.product_id}, headers=headers)

    response = client.put(f"/api/cart/items/{mat.product_id}?quantity=9", headers=headers)
    assert response.status_code == 400

    response = client.put(f"/api/cart/items/{mat.product_id}?quantity=4", headers=headers)
    assert response.json()["items"][0]["quantity"] == 4

    response = client.delete(f"/api/cart/items/{mat.product_id}", headers=headers)
    assert response.json()["items"] == []
    assert client.delete(f"/api/cart/items/{mat.product_id}", headers=headers).status_code == 404
    assert client.delete("/api/cart/clear", headers=headers).status_code == 204


def test_cancel_and_admin_endpoints(api):
    client, store = api
    customer = store.add_user("amina@example.com")
    admin = store.add_user("ops@example.com", role=UserRole.ADMIN)
    mat = store.add_product(inventory=5)
    headers = _auth(customer)
    client.post("/api/cart/add", json={"product_id": mat.product_id, "quantity": 2}, headers=headers)
    order = client.post(
        "/api/orders/checkout",
        json={"payment_method": "CASH_ON_DELIVERY", "shipping_address": ADDRESS},
        headers=headers,
    ).json()

    assert client.get("/api/orders", headers=headers).status_code == 403
    response = client.put(
        f"/api/orders/{order['id']}/status", json={"status": "CONFIRMED"}, headers=headers
    )
    assert response.status_code == 403

    admin_headers = _auth(admin)
    listing = client.get("/api/orders?status=PENDING", headers=admin_headers).json()
    assert [o["id"] for o in listing["content"]] == [order["id"]]
    response = client.put(
        f"/api/orders/{order['id']}/status", json={"status": "DELIVERED"}, headers=admin_headers
    )
    assert response.status_code == 400
    response = client.put(
        f"/api/orders/{order['id']}/payment-status",
        json={"payment_status": "PAID"},
        headers=admin_headers,
    )
    assert response.json()["status"] == "CONFIRMED"

    response = client.put(
        f"/api/orders/{order['id']}/cancel", json={"reason": "Found it cheaper"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["customer_notes"] == "Cancellation reason: Found it cheaper"
    assert store.stock(mat.product_id) == 5

    other = _auth(store.add_user("someone@example.com"))
    assert client.get(f"/api/orders/{order['id']}", headers=other).status_code == 404


def test_profile_endpoints(api):
    client, store = api
    headers = _auth(store.add_user())

    response = client.post(
        "/api/profile/setup",
        json={"first_name": "Amina", "last_name": "K", "phone_number": "+250788000000"},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["profile_completed"] is True
    assert response.json()["physical_attributes"] is None
    assert client.post("/api/profile/setup", json={}, headers=headers).status_code == 400

    response = client.put(
        "/api/profile/update",
        json={"phone_number": None, "height_cm": 170},
        headers=headers,
    )
    body = response.json()
    assert body["profile"]["first_name"] == "Amina"
    assert body["profile"]["phone_number"] is None
    assert body["physical_attributes"]["height_cm"] == 170

    response = client.patch(
        "/api/profile/basic", json={"first_name": "Grace", "last_name": "U"}, headers=headers
    )
    assert response.json()["profile"]["first_name"] == "Grace"
    summary = client.get("/api/profile/summary", headers=headers).json()
    assert summary["first_name"] == "Grace"
    assert client.get("/api/profile", headers=headers).json()["preferences"]["language"] == "en"

    response = client.post(
        "/api/profile/picture",
        files={"file": ("me.png", b"\x89PNG....", "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["profile_picture_url"].startswith("http://pictures.test/")
    response = client.post(
        "/api/profile/picture",
        files={"file": ("notes.txt", b"hello", "text/plain")},
        headers=headers,
    )
    assert response.status_code == 400
    response = client.delete("/api/profile/picture", headers=headers)
    assert response.json()["profile"]["profile_picture_url"] is None
