"""User domain model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    CUSTOMER = "CUSTOMER"
    TRAINER = "TRAINER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class User:
    """User entity."""

    user_id: int
    email: str
    name: str
    role: UserRole
    profile_completed: bool
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN
