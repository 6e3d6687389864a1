"""User repository implementation using PostgreSQL."""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from services.storefront.domain.user import User, UserRole
from services.storefront.infrastructure.db import Base


class UserRecord(Base):
    __tablename__ = "users"

    user_id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.CUSTOMER.value)
    profile_completed = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False)


def _to_domain(record: UserRecord) -> User:
    return User(
        user_id=record.user_id,
        email=record.email,
        name=record.name,
        role=UserRole(record.role),
        profile_completed=bool(record.profile_completed),
        created_at=record.created_at,
    )


class PostgresUserRepository:
    """PostgreSQL implementation of UserRepository."""

    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def create(self, user: User) -> User:
        """Create a new user; the database assigns the id."""
        record = UserRecord(
            email=user.email,
            name=user.name,
            role=user.role.value,
            profile_completed=user.profile_completed,
            created_at=user.created_at,
        )
        with self._session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            return _to_domain(record)

    def get_by_id(self, user_id: int) -> User | None:
        """Get user by ID."""
        with self._session_factory() as db:
            record = db.get(UserRecord, user_id)
            if record is None:
                return None
            return _to_domain(record)
