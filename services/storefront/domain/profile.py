"""Profile domain models.

A user's profile is split over five independent records keyed by user id.
Each is created lazily and updated by merging a patch.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, TypeVar


class PrivacyLevel(str, Enum):
    PUBLIC = "PUBLIC"
    FRIENDS = "FRIENDS"
    PRIVATE = "PRIVATE"


@dataclass(frozen=True)
class Profile:
    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    phone_number: Optional[str] = None
    profile_picture_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class PhysicalAttributes:
    user_id: int
    height_cm: Optional[float] = None
    current_weight_kg: Optional[float] = None
    target_weight_kg: Optional[float] = None


@dataclass(frozen=True)
class FitnessProfile:
    user_id: int
    fitness_level: Optional[str] = None
    primary_goal: Optional[str] = None
    secondary_goals: List[str] = field(default_factory=list)
    preferred_activity_types: List[str] = field(default_factory=list)
    workout_frequency: Optional[int] = None
    workout_duration: Optional[int] = None
    preferred_workout_days: List[str] = field(default_factory=list)
    preferred_workout_times: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class HealthInformation:
    user_id: int
    dietary_restrictions: List[str] = field(default_factory=list)
    health_conditions: List[str] = field(default_factory=list)
    medications: List[str] = field(default_factory=list)
    emergency_contact_name: Optional[str] = None
    emergency_contact_phone: Optional[str] = None


@dataclass(frozen=True)
class UserPreferences:
    user_id: int
    timezone: Optional[str] = None
    language: str = "en"
    email_notifications: bool = True
    push_notifications: bool = True
    privacy_level: PrivacyLevel = PrivacyLevel.PRIVATE


@dataclass(frozen=True)
class ProfileDetails:
    user_id: int
    profile_completed: bool
    profile: Optional[Profile] = None
    physical: Optional[PhysicalAttributes] = None
    fitness: Optional[FitnessProfile] = None
    health: Optional[HealthInformation] = None
    preferences: Optional[UserPreferences] = None


_Record = TypeVar("_Record")

# Keys that never come from a patch.
_PROTECTED = {"user_id", "created_at", "updated_at", "profile_picture_url"}

# Fields that must keep a value; a null in the patch is ignored for these.
_NON_NULLABLE = {"language", "email_notifications", "push_notifications", "privacy_level"}

_LIST_FIELDS = {
    "secondary_goals",
    "preferred_activity_types",
    "preferred_workout_days",
    "preferred_workout_times",
    "dietary_restrictions",
    "health_conditions",
    "medications",
}


@dataclass(frozen=True)
class ProfilePatch:
    """Presence-aware set of changes.

    A key that is absent leaves the stored value alone; a key mapped to
    ``None`` clears the stored value.
    """

    changes: Mapping[str, Any] = field(default_factory=dict)

    def touches(self, record_type: type) -> bool:
        names = {f.name for f in fields(record_type)} - _PROTECTED
        return any(name in self.changes for name in names)

    def apply(self, record: _Record) -> _Record:
        updates = {}
        for f in fields(record):
            if f.name in _PROTECTED or f.name not in self.changes:
                continue
            value = self.changes[f.name]
            if value is None and f.name in _NON_NULLABLE:
                continue
            if value is None and f.name in _LIST_FIELDS:
                value = []
            updates[f.name] = value
        return replace(record, **updates) if updates else record
