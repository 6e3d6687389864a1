import json
import time
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from redis.exceptions import RedisError

from services.storefront.application.dto import PaymentDetails, PaymentRequest
from services.storefront.domain.order import (
    Address,
    Order,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from services.storefront.domain.user import User, UserRole
from services.storefront.infrastructure import notifications, pictures
from services.storefront.infrastructure.ids import OrderNumberProvider, TrackingNumberProvider
from services.storefront.infrastructure.payments import SimulatedPaymentGateway
from services.storefront.infrastructure.tokens import Hs256TokenVerifier, InvalidTokenError
from services.storefront.tests.fakes import SequenceIds


def test_token_round_trip_and_tampering():
    verifier = Hs256TokenVerifier("secret")
    token = verifier.issue(42)

    assert verifier.verify(token) == 42
    with pytest.raises(InvalidTokenError):
        Hs256TokenVerifier("other").verify(token)
    with pytest.raises(InvalidTokenError):
        verifier.verify(token + "x")
    with pytest.raises(InvalidTokenError):
        verifier.verify("not-a-token")


def test_expired_token_is_rejected():
    verifier = Hs256TokenVerifier("secret")
    with pytest.raises(InvalidTokenError, match="expired"):
        verifier.verify(verifier.issue(1, ttl_seconds=-10))


def _request(method, **details):
    return PaymentRequest(
        order_number="ORD-1",
        amount=Decimal("10"),
        currency="usd",
        method=method,
        details=PaymentDetails(**details),
    )


def test_simulated_gateway_checks_card_shape():
    gateway = SimulatedPaymentGateway(delay_seconds=0, reference_provider=SequenceIds("pay"))

    ok = gateway.charge(
        _request(PaymentMethod.CREDIT_CARD, card_number="4111 1111 1111 1111", cvv="123")
    )
    assert ok.success
    assert ok.reference == "pay-0001"

    short = gateway.charge(_request(PaymentMethod.DEBIT_CARD, card_number="4111 1111", cvv="1"))
    assert not short.success
    missing_cvv = gateway.charge(_request(PaymentMethod.CREDIT_CARD, card_number="4" * 16))
    assert not missing_cvv.success

    assert gateway.charge(_request(PaymentMethod.PAYPAL, wallet_id="w-1")).success


def test_simulated_gateway_waits(monkeypatch):
    slept = []
    monkeypatch.setattr(time, "sleep", slept.append)
    SimulatedPaymentGateway(delay_seconds=1.5).charge(_request(PaymentMethod.PAYPAL))
    assert slept == [1.5]


def test_id_providers_format():
    number = OrderNumberProvider().generate()
    prefix, millis, suffix = number.split("-")
    assert prefix == "ORD"
    assert millis.isdigit()
    assert len(suffix) == 4
    tracking = TrackingNumberProvider().generate()
    assert len(tracking) == 12
    assert tracking == tracking.upper()


def _order():
    now = datetime.now(timezone.utc)
    address = Address(line1="KN 5 Rd", city="Kigali", country="RW")
    return Order(
        order_id=7,
        order_number="ORD-7",
        user_id=3,
        status=OrderStatus.CONFIRMED,
        payment_status=PaymentStatus.PAID,
        payment_method=PaymentMethod.CREDIT_CARD,
        shipping_address=address,
        billing_address=address,
        subtotal=Decimal("10"),
        shipping_amount=Decimal("5"),
        tax_amount=Decimal("1"),
        discount_amount=Decimal("0"),
        total_amount=Decimal("16"),
        created_at=now,
        updated_at=now,
    )


def _user():
    return User(
        user_id=3,
        email="amina@example.com",
        name="Amina",
        role=UserRole.CUSTOMER,
        profile_completed=True,
        created_at=datetime.now(timezone.utc),
    )


def test_redis_notifier_publishes_confirmation(monkeypatch):
    fake_redis = MagicMock()
    monkeypatch.setattr(notifications, "Redis", MagicMock(return_value=fake_redis))
    notifier = notifications.RedisOrderNotifier(
        host="localhost", port=6379, db=0, channel="order_confirmed"
    )

    notifier.order_confirmed(_order(), _user())

    channel, body = fake_redis.publish.call_args.args
    payload = json.loads(body)
    assert channel == "order_confirmed"
    assert payload["order_number"] == "ORD-7"
    assert payload["email"] == "amina@example.com"
    assert payload["total_amount"] == "16"


def test_redis_notifier_logs_publish_failures(monkeypatch, caplog):
    fake_redis = MagicMock()
    fake_redis.publish.side_effect = RedisError("down")
    monkeypatch.setattr(notifications, "Redis", MagicMock(return_value=fake_redis))
    notifier = notifications.RedisOrderNotifier(host="h", port=1, db=0, channel="c")

    notifier.order_confirmed(_order(), _user())

    assert "Failed to publish confirmation for order ORD-7" in caplog.text


def test_s3_storage_uploads_and_deletes_by_url(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(pictures.boto3, "client", MagicMock(return_value=client))
    storage = pictures.S3ProfilePictureStorage(
        endpoint_url="http://minio:9000",
        public_base_url="https://cdn.example.com/",
        region_name="us-east-1",
        bucket_name="avatars",
        access_key="AK",
        secret_key="SK",
    )

    url = storage.upload(object_key="profile-pictures/3/a.png", data=b"img", content_type="image/png")
    storage.delete(url)

    assert url == "https://cdn.example.com/avatars/profile-pictures/3/a.png"
    client.put_object.assert_called_once_with(
        Bucket="avatars", Key="profile-pictures/3/a.png", Body=b"img", ContentType="image/png"
    )
    client.delete_object.assert_called_once_with(
        Bucket="avatars", Key="profile-pictures/3/a.png"
    )
    with pytest.raises(ValueError):
        storage.delete("https://elsewhere.example.com/x.png")
