from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from services.storefront.api.cart_routes import create_cart_router
from services.storefront.api.dependencies import create_auth_dependencies
from services.storefront.api.order_routes import create_order_router
from services.storefront.api.profile_routes import create_profile_router
from services.storefront.application.cancel_order import CancelOrderUseCase
from services.storefront.application.checkout import CheckoutUseCase
from services.storefront.application.get_profile import GetProfileUseCase
from services.storefront.application.interfaces import (
    OrderNotifier,
    PaymentGateway,
    ProfilePictureStorage,
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
from services.storefront.application.profile_picture import (
    DeleteProfilePictureUseCase,
    UploadProfilePictureUseCase,
)
from services.storefront.application.query_orders import OrderQueries
from services.storefront.application.setup_profile import SetupProfileUseCase
from services.storefront.application.update_order_status import (
    UpdateOrderStatusUseCase,
    UpdatePaymentStatusUseCase,
)
from services.storefront.application.update_profile import (
    UpdateBasicInfoUseCase,
    UpdateProfileUseCase,
)
from services.storefront.config import StorefrontConfig, load_config
from services.storefront.domain.pricing import PricingPolicy
from services.storefront.infrastructure.carts import PostgresCartRepository
from services.storefront.infrastructure.db import create_session_factory
from services.storefront.infrastructure.ids import (
    OrderNumberProvider,
    TrackingNumberProvider,
)
from services.storefront.infrastructure.notifications import (
    LoggingOrderNotifier,
    RedisOrderNotifier,
)
from services.storefront.infrastructure.orders import PostgresOrderRepository
from services.storefront.infrastructure.payments import SimulatedPaymentGateway
from services.storefront.infrastructure.pictures import S3ProfilePictureStorage
from services.storefront.infrastructure.products import PostgresProductRepository
from services.storefront.infrastructure.profiles import PostgresProfileRepository
from services.storefront.infrastructure.tokens import Hs256TokenVerifier
from services.storefront.infrastructure.users import PostgresUserRepository

LOGGER = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def _build_notifier(cfg: StorefrontConfig) -> OrderNotifier:
    if cfg.notifier == "redis":
        return RedisOrderNotifier(
            host=cfg.redis_host,
            port=cfg.redis_port,
            db=cfg.redis_db,
            channel=cfg.redis_channel,
        )
    return LoggingOrderNotifier()


def _build_picture_storage(cfg: StorefrontConfig) -> ProfilePictureStorage:
    return S3ProfilePictureStorage(
        endpoint_url=cfg.storage_endpoint_url,
        public_base_url=cfg.storage_public_url,
        region_name=cfg.storage_region,
        bucket_name=cfg.storage_bucket,
        access_key=cfg.storage_access_key,
        secret_key=cfg.storage_secret_key,
    )


def build_app(
    config: StorefrontConfig | None = None,
    *,
    payment_gateway: PaymentGateway | None = None,
    notifier: OrderNotifier | None = None,
    picture_storage: ProfilePictureStorage | None = None,
) -> FastAPI:
    cfg = config or load_config()
    _configure_logging(cfg.log_level)
    app = FastAPI(title="Storefront")

    @app.get("/ping")
    async def ping():
        return {"message": "pong"}

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        LOGGER.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    orm_session_factory = create_session_factory(cfg.sqlalchemy_dsn)
    user_repository = PostgresUserRepository(session_factory=orm_session_factory)
    product_repository = PostgresProductRepository(session_factory=orm_session_factory)
    cart_repository = PostgresCartRepository(session_factory=orm_session_factory)
    order_repository = PostgresOrderRepository(session_factory=orm_session_factory)
    profile_repository = PostgresProfileRepository(session_factory=orm_session_factory)

    payment_gateway = payment_gateway or SimulatedPaymentGateway(
        delay_seconds=cfg.payment_delay_seconds
    )
    notifier = notifier or _build_notifier(cfg)
    picture_storage = picture_storage or _build_picture_storage(cfg)

    auth = create_auth_dependencies(
        Hs256TokenVerifier(cfg.jwt_secret), user_repository
    )
    cart_args = dict(user_repository=user_repository, cart_repository=cart_repository)
    cart_writer_args = dict(cart_args, product_repository=product_repository)
    profile_args = dict(
        user_repository=user_repository, profile_repository=profile_repository
    )

    checkout_use_case = CheckoutUseCase(
        user_repository=user_repository,
        cart_repository=cart_repository,
        order_repository=order_repository,
        order_number_provider=OrderNumberProvider(),
        payment_gateway=payment_gateway,
        notifier=notifier,
        pricing=PricingPolicy(
            tax_rate=cfg.tax_rate,
            free_shipping_threshold=cfg.free_shipping_threshold,
        ),
        delivery_days=cfg.delivery_days,
        currency=cfg.currency,
    )

    app.include_router(
        create_order_router(
            auth,
            checkout_use_case=checkout_use_case,
            order_queries=OrderQueries(
                user_repository=user_repository, order_repository=order_repository
            ),
            cancel_order_use_case=CancelOrderUseCase(
                user_repository=user_repository, order_repository=order_repository
            ),
            update_status_use_case=UpdateOrderStatusUseCase(
                order_repository=order_repository,
                tracking_number_provider=TrackingNumberProvider(),
            ),
            update_payment_status_use_case=UpdatePaymentStatusUseCase(
                order_repository=order_repository
            ),
        )
    )
    app.include_router(
        create_cart_router(
            auth,
            get_cart_use_case=GetCartUseCase(**cart_args),
            add_item_use_case=AddCartItemUseCase(**cart_writer_args),
            update_item_use_case=UpdateCartItemUseCase(**cart_writer_args),
            remove_item_use_case=RemoveCartItemUseCase(**cart_args),
            clear_cart_use_case=ClearCartUseCase(**cart_args),
            count_items_use_case=CountCartItemsUseCase(**cart_args),
            validate_cart_use_case=ValidateCartUseCase(**cart_args),
        )
    )
    app.include_router(
        create_profile_router(
            auth,
            setup_use_case=SetupProfileUseCase(**profile_args),
            update_use_case=UpdateProfileUseCase(**profile_args),
            update_basic_use_case=UpdateBasicInfoUseCase(**profile_args),
            get_profile_use_case=GetProfileUseCase(**profile_args),
            upload_picture_use_case=UploadProfilePictureUseCase(
                profile_repository=profile_repository,
                storage=picture_storage,
                max_bytes=cfg.picture_max_bytes,
            ),
            delete_picture_use_case=DeleteProfilePictureUseCase(
                profile_repository=profile_repository,
                storage=picture_storage,
            ),
        )
    )

    LOGGER.info("Storefront API ready (notifier=%s)", cfg.notifier)
    return app


def create_app() -> FastAPI:
    """Entry point for ``uvicorn --factory services.storefront.main:create_app``."""
    return build_app()
