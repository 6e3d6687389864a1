from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone

from services.storefront.application.dto import BasicProfileInfoCommand
from services.storefront.application.interfaces import (
    ProfileRepository,
    UserRepository,
)
from services.storefront.domain.errors import NotFoundError
from services.storefront.domain.profile import (
    FitnessProfile,
    HealthInformation,
    PhysicalAttributes,
    Profile,
    ProfileDetails,
    ProfilePatch,
    UserPreferences,
)

LOGGER = logging.getLogger(__name__)


class UpdateProfileUseCase:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        profile_repository: ProfileRepository,
    ) -> None:
        self._users = user_repository
        self._profiles = profile_repository

    def execute(self, user_id: int, patch: ProfilePatch) -> ProfileDetails:
        LOGGER.info("Updating profile for user ID: %s", user_id)
        if self._users.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found with ID: {user_id}")

        current = self._profiles.get(user_id)
        now = datetime.now(timezone.utc)
        profile = current.profile or Profile(user_id=user_id, created_at=now)
        if patch.touches(Profile):
            profile = replace(patch.apply(profile), updated_at=now)

        updated = replace(
            current,
            profile=profile,
            physical=_merge(current.physical, PhysicalAttributes, user_id, patch),
            fitness=_merge(current.fitness, FitnessProfile, user_id, patch),
            health=_merge(current.health, HealthInformation, user_id, patch),
            preferences=_merge(current.preferences, UserPreferences, user_id, patch),
        )
        return self._profiles.save(updated)


def _merge(record, record_type, user_id: int, patch: ProfilePatch):
    if not patch.touches(record_type):
        return record
    return patch.apply(record if record is not None else record_type(user_id=user_id))


class UpdateBasicInfoUseCase:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        profile_repository: ProfileRepository,
    ) -> None:
        self._users = user_repository
        self._profiles = profile_repository

    def execute(self, command: BasicProfileInfoCommand) -> ProfileDetails:
        LOGGER.info("Updating basic info for user ID: %s", command.user_id)
        if self._users.get_by_id(command.user_id) is None:
            raise NotFoundError(f"User not found with ID: {command.user_id}")
        current = self._profiles.get(command.user_id)
        if current.profile is None:
            raise NotFoundError("User profile not found")

        profile = replace(
            current.profile,
            first_name=command.first_name,
            last_name=command.last_name,
            date_of_birth=command.date_of_birth,
            gender=command.gender,
            phone_number=command.phone_number,
            updated_at=datetime.now(timezone.utc),
        )
        return self._profiles.save(replace(current, profile=profile))
