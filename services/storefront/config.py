from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from urllib.parse import quote_plus

from dotenv import load_dotenv


def _load_repo_env() -> None:
    """Load the nearest .env starting from this file upward."""
    current = Path(__file__).resolve()
    for candidate in [current.parent, *current.parents]:
        env_file = candidate / ".env"
        if env_file.exists():
            load_dotenv(env_file)
            return


_load_repo_env()


def _require_env(name: str) -> str:
    value = os.getenv(name)
    if value is None or value == "":
        raise ValueError(f"Environment variable {name} is required")
    return value


def _require_env_int(name: str) -> int:
    raw = _require_env(name)
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer") from exc


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"Environment variable {name} must be a number") from exc


@dataclass(frozen=True)
class StorefrontConfig:
    jwt_secret: str
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "storefront"
    db_user: str = "storefront"
    db_password: str = ""
    database_url: str | None = None
    tax_rate: Decimal = Decimal("0.10")
    free_shipping_threshold: Decimal = Decimal("100")
    delivery_days: int = 7
    currency: str = "usd"
    payment_delay_seconds: float = 1.0
    notifier: str = "log"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_channel: str = "order_confirmed"
    storage_endpoint_url: str | None = None
    storage_public_url: str | None = None
    storage_region: str = "us-east-1"
    storage_bucket: str = "storefront"
    storage_access_key: str = ""
    storage_secret_key: str = ""
    picture_max_bytes: int = 5 * 1024 * 1024
    log_level: str = "INFO"

    @property
    def database_dsn(self) -> str:
        if self.database_url:
            return self.database_url
        user = quote_plus(self.db_user)
        password = quote_plus(self.db_password)
        return (
            f"postgresql://{user}:{password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def sqlalchemy_dsn(self) -> str:
        dsn = self.database_dsn
        if dsn.startswith("postgresql://"):
            return dsn.replace("postgresql://", "postgresql+psycopg://", 1)
        return dsn


def load_config() -> StorefrontConfig:
    database_url = os.getenv("STOREFRONT_DATABASE_URL") or None
    if database_url:
        db_settings = {}
    else:
        db_settings = dict(
            db_host=_require_env("STOREFRONT_DB_HOST"),
            db_port=_require_env_int("STOREFRONT_DB_PORT"),
            db_name=_require_env("STOREFRONT_DB_NAME"),
            db_user=_require_env("STOREFRONT_DB_USER"),
            db_password=_require_env("STOREFRONT_DB_PASSWORD"),
        )

    notifier = os.getenv("STOREFRONT_NOTIFIER", "log").lower()
    if notifier not in ("log", "redis"):
        raise ValueError("Environment variable STOREFRONT_NOTIFIER must be 'log' or 'redis'")

    return StorefrontConfig(
        jwt_secret=_require_env("STOREFRONT_JWT_SECRET"),
        database_url=database_url,
        tax_rate=_env_decimal("STOREFRONT_TAX_RATE", "0.10"),
        free_shipping_threshold=_env_decimal("STOREFRONT_FREE_SHIPPING_THRESHOLD", "100"),
        delivery_days=int(os.getenv("STOREFRONT_DELIVERY_DAYS", "7")),
        currency=os.getenv("STOREFRONT_CURRENCY", "usd"),
        payment_delay_seconds=float(os.getenv("STOREFRONT_PAYMENT_DELAY_SECONDS", "1.0")),
        notifier=notifier,
        redis_host=os.getenv("STOREFRONT_REDIS_HOST", "localhost"),
        redis_port=int(os.getenv("STOREFRONT_REDIS_PORT", "6379")),
        redis_db=int(os.getenv("STOREFRONT_REDIS_DB", "0")),
        redis_channel=os.getenv("STOREFRONT_REDIS_CHANNEL", "order_confirmed"),
        storage_endpoint_url=os.getenv("STOREFRONT_STORAGE_ENDPOINT_URL") or None,
        storage_public_url=os.getenv("STOREFRONT_STORAGE_PUBLIC_URL") or None,
        storage_region=os.getenv("STOREFRONT_STORAGE_REGION", "us-east-1"),
        storage_bucket=os.getenv("STOREFRONT_STORAGE_BUCKET", "storefront"),
        storage_access_key=os.getenv("STOREFRONT_STORAGE_ACCESS_KEY", ""),
        storage_secret_key=os.getenv("STOREFRONT_STORAGE_SECRET_KEY", ""),
        picture_max_bytes=int(
            os.getenv("STOREFRONT_PICTURE_MAX_BYTES", str(5 * 1024 * 1024))
        ),
        log_level=os.getenv("STOREFRONT_LOG_LEVEL", "INFO").upper(),
        **db_settings,
    )
