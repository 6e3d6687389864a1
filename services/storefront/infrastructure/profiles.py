"""Profile repository backed by one table per profile section."""

from __future__ import annotations

from dataclasses import asdict, fields
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)

from services.storefront.domain.profile import (
    FitnessProfile,
    HealthInformation,
    PhysicalAttributes,
    PrivacyLevel,
    Profile,
    ProfileDetails,
    UserPreferences,
)
from services.storefront.infrastructure.db import Base
from services.storefront.infrastructure.users import UserRecord


def _user_key():
    return Column(Integer, ForeignKey("users.user_id"), primary_key=True)


class ProfileRecord(Base):
    __tablename__ = "user_profiles"

    user_id = _user_key()
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(String, nullable=True)
    phone_number = Column(String, nullable=True)
    profile_picture_url = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class PhysicalAttributesRecord(Base):
    __tablename__ = "physical_attributes"

    user_id = _user_key()
    height_cm = Column(Float, nullable=True)
    current_weight_kg = Column(Float, nullable=True)
    target_weight_kg = Column(Float, nullable=True)


class FitnessProfileRecord(Base):
    __tablename__ = "fitness_profiles"

    user_id = _user_key()
    fitness_level = Column(String, nullable=True)
    primary_goal = Column(String, nullable=True)
    secondary_goals = Column(JSON, nullable=False, default=list)
    preferred_activity_types = Column(JSON, nullable=False, default=list)
    workout_frequency = Column(Integer, nullable=True)
    workout_duration = Column(Integer, nullable=True)
    preferred_workout_days = Column(JSON, nullable=False, default=list)
    preferred_workout_times = Column(JSON, nullable=False, default=list)


class HealthInformationRecord(Base):
    __tablename__ = "health_information"

    user_id = _user_key()
    dietary_restrictions = Column(JSON, nullable=False, default=list)
    health_conditions = Column(JSON, nullable=False, default=list)
    medications = Column(JSON, nullable=False, default=list)
    emergency_contact_name = Column(String, nullable=True)
    emergency_contact_phone = Column(String, nullable=True)


class UserPreferencesRecord(Base):
    __tablename__ = "user_preferences"

    user_id = _user_key()
    timezone = Column(String, nullable=True)
    language = Column(String, nullable=False, default="en")
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    privacy_level = Column(String, nullable=False, default=PrivacyLevel.PRIVATE.value)


# (details attribute, domain type, table)
_SECTIONS = (
    ("profile", Profile, ProfileRecord),
    ("physical", PhysicalAttributes, PhysicalAttributesRecord),
    ("fitness", FitnessProfile, FitnessProfileRecord),
    ("health", HealthInformation, HealthInformationRecord),
    ("preferences", UserPreferences, UserPreferencesRecord),
)


def _to_columns(section) -> dict:
    values = asdict(section)
    for name, value in values.items():
        if isinstance(value, PrivacyLevel):
            values[name] = value.value
        elif isinstance(value, list):
            values[name] = list(value)
    return values


def _from_record(domain_type, record):
    values = {f.name: getattr(record, f.name) for f in fields(domain_type)}
    if "privacy_level" in values and values["privacy_level"] is not None:
        values["privacy_level"] = PrivacyLevel(values["privacy_level"])
    for name, value in values.items():
        if isinstance(value, list):
            values[name] = list(value)
    return domain_type(**values)


class PostgresProfileRepository:
    def __init__(self, session_factory) -> None:
        self._session_factory = session_factory

    def get(self, user_id: int) -> ProfileDetails:
        with self._session_factory() as db:
            return self._load(db, user_id)

    def save(self, details: ProfileDetails, *, mark_completed: bool = False) -> ProfileDetails:
        """Upsert every section present on ``details``.

        Sections that are ``None`` are left as stored.
        """
        with self._session_factory() as db:
            for attribute, _, table in _SECTIONS:
                section = getattr(details, attribute)
                if section is None:
                    continue
                record: Optional[Base] = db.get(table, details.user_id)
                if record is None:
                    record = table(user_id=details.user_id)
                    db.add(record)
                for name, value in _to_columns(section).items():
                    setattr(record, name, value)
            if mark_completed:
                user = db.get(UserRecord, details.user_id)
                if user is not None:
                    user.profile_completed = True
            db.commit()
            return self._load(db, details.user_id)

    def _load(self, db, user_id: int) -> ProfileDetails:
        user = db.get(UserRecord, user_id)
        sections = {}
        for attribute, domain_type, table in _SECTIONS:
            record = db.get(table, user_id)
            sections[attribute] = (
                _from_record(domain_type, record) if record is not None else None
            )
        return ProfileDetails(
            user_id=user_id,
            profile_completed=bool(user.profile_completed) if user is not None else False,
            **sections,
        )
