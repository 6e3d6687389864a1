from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from services.storefront.application.interfaces import UserRepository
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.user import User
from services.storefront.infrastructure.tokens import Hs256TokenVerifier, InvalidTokenError

LOGGER = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


@contextmanager
def domain_errors() -> Iterator[None]:
    """Translate use case errors into HTTP responses."""
    try:
        yield
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except BadRequestError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(frozen=True)
class AuthDependencies:
    current_user: Callable[..., User]
    admin_user: Callable[..., User]


def create_auth_dependencies(
    verifier: Hs256TokenVerifier, user_repository: UserRepository
) -> AuthDependencies:
    def current_user(
        credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    ) -> User:
        if credentials is None or credentials.scheme.lower() != "bearer":
            raise _unauthorized("Not authenticated")
        try:
            user_id = verifier.verify(credentials.credentials)
        except InvalidTokenError as exc:
            LOGGER.info("Rejected bearer token: %s", exc)
            raise _unauthorized("Invalid token") from exc
        user = user_repository.get_by_id(user_id)
        if user is None:
            raise _unauthorized("Unknown user")
        return user

    def admin_user(user: User = Depends(current_user)) -> User:
        if not user.is_admin:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Administrator role required",
            )
        return user

    return AuthDependencies(current_user=current_user, admin_user=admin_user)
