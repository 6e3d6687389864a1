from __future__ import annotations

from typing import List, Optional

from services.storefront.application.dto import OrderPage
from services.storefront.application.interfaces import OrderRepository, UserRepository
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.order import Order, OrderStatus
from services.storefront.domain.user import User

MAX_PAGE_SIZE = 100


def _check_paging(page: int, size: int) -> None:
    if page < 0:
        raise BadRequestError("Page must not be negative")
    if size < 1 or size > MAX_PAGE_SIZE:
        raise BadRequestError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")


class OrderQueries:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        order_repository: OrderRepository,
    ) -> None:
        self._users = user_repository
        self._orders = order_repository

    def get(self, order_id: int, viewer_id: int) -> Order:
        return self._visible(self._orders.get(order_id), viewer_id, str(order_id))

    def get_by_number(self, order_number: str, viewer_id: int) -> Order:
        return self._visible(
            self._orders.get_by_number(order_number), viewer_id, order_number
        )

    def user_orders(self, user_id: int, *, page: int = 0, size: int = 10) -> OrderPage:
        _check_paging(page, size)
        self._viewer(user_id)
        orders, total = self._orders.list_for_user(
            user_id, offset=page * size, limit=size
        )
        return OrderPage(orders=orders, total=total, page=page, size=size)

    def recent_orders(self, user_id: int, limit: int = 5) -> List[Order]:
        _check_paging(0, limit)
        self._viewer(user_id)
        orders, _ = self._orders.list_for_user(user_id, offset=0, limit=limit)
        return orders

    def all_orders(
        self,
        *,
        status: Optional[OrderStatus] = None,
        page: int = 0,
        size: int = 20,
    ) -> OrderPage:
        _check_paging(page, size)
        orders, total = self._orders.list_all(
            status=status, offset=page * size, limit=size
        )
        return OrderPage(orders=orders, total=total, page=page, size=size)

    def _viewer(self, user_id: int) -> User:
        user = self._users.get_by_id(user_id)
        if user is None:
            raise NotFoundError(f"User not found with id: {user_id}")
        return user

    def _visible(self, order: Optional[Order], viewer_id: int, key: str) -> Order:
        viewer = self._viewer(viewer_id)
        if order is None or (order.user_id != viewer.user_id and not viewer.is_admin):
            raise NotFoundError(f"Order not found: {key}")
        return order
