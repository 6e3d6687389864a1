"""Setup profile use case."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from services.storefront.application.dto import ProfileSetupCommand
from services.storefront.application.interfaces import (
    ProfileRepository,
    UserRepository,
)
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.profile import (
    FitnessProfile,
    HealthInformation,
    PhysicalAttributes,
    PrivacyLevel,
    Profile,
    ProfileDetails,
    UserPreferences,
)

LOGGER = logging.getLogger(__name__)


class SetupProfileUseCase:
    """First-time profile setup; marks the user's profile as completed."""

    def __init__(
        self,
        user_repository: UserRepository,
        profile_repository: ProfileRepository,
    ):
        self._user_repository = user_repository
        self._profile_repository = profile_repository

    def execute(self, command: ProfileSetupCommand) -> ProfileDetails:
        """
        Create the profile records for a user.

        Optional sections (physical attributes, fitness, health) are only
        created when the request carries data for them. Preferences are
        always created, with defaults for anything not given.

        Raises:
            NotFoundError: If the user doesn't exist
            BadRequestError: If the profile was already completed
        """
        LOGGER.info("Setting up profile for user ID: %s", command.user_id)
        user = self._user_repository.get_by_id(command.user_id)
        if user is None:
            raise NotFoundError(f"User not found with ID: {command.user_id}")
        if user.profile_completed:
            raise BadRequestError("Profile has already been completed")

        now = datetime.now(timezone.utc)
        details = ProfileDetails(
            user_id=user.user_id,
            profile_completed=True,
            profile=Profile(
                user_id=user.user_id,
                first_name=command.first_name,
                last_name=command.last_name,
                date_of_birth=command.date_of_birth,
                gender=command.gender,
                phone_number=command.phone_number,
                created_at=now,
                updated_at=now,
            ),
            physical=_physical(command),
            fitness=_fitness(command),
            health=_health(command),
            preferences=UserPreferences(
                user_id=user.user_id,
                timezone=command.timezone,
                language=command.language or "en",
                email_notifications=_default(command.email_notifications, True),
                push_notifications=_default(command.push_notifications, True),
                privacy_level=command.privacy_level or PrivacyLevel.PRIVATE,
            ),
        )
        saved = self._profile_repository.save(details, mark_completed=True)
        LOGGER.info("Profile setup completed for user ID: %s", user.user_id)
        return saved


def _default(value: Optional[bool], fallback: bool) -> bool:
    return fallback if value is None else value


def _physical(command: ProfileSetupCommand) -> Optional[PhysicalAttributes]:
    if (
        command.height_cm is None
        and command.current_weight_kg is None
        and command.target_weight_kg is None
    ):
        return None
    return PhysicalAttributes(
        user_id=command.user_id,
        height_cm=command.height_cm,
        current_weight_kg=command.current_weight_kg,
        target_weight_kg=command.target_weight_kg,
    )


def _fitness(command: ProfileSetupCommand) -> Optional[FitnessProfile]:
    if command.fitness_level is None and command.primary_goal is None:
        return None
    return FitnessProfile(
        user_id=command.user_id,
        fitness_level=command.fitness_level,
        primary_goal=command.primary_goal,
        secondary_goals=list(command.secondary_goals),
        preferred_activity_types=list(command.preferred_activity_types),
        workout_frequency=command.workout_frequency,
        workout_duration=command.workout_duration,
        preferred_workout_days=list(command.preferred_workout_days),
        preferred_workout_times=list(command.preferred_workout_times),
    )


def _health(command: ProfileSetupCommand) -> Optional[HealthInformation]:
    if (
        command.dietary_restrictions is None
        and command.health_conditions is None
        and command.emergency_contact_name is None
    ):
        return None
    return HealthInformation(
        user_id=command.user_id,
        dietary_restrictions=list(command.dietary_restrictions or []),
        health_conditions=list(command.health_conditions or []),
        medications=list(command.medications),
        emergency_contact_name=command.emergency_contact_name,
        emergency_contact_phone=command.emergency_contact_phone,
    )
