from __future__ import annotations

from services.storefront.application.dto import ProfileSummary
from services.storefront.application.interfaces import (
    ProfileRepository,
    UserRepository,
)
from services.storefront.domain.errors import NotFoundError
from services.storefront.domain.profile import ProfileDetails


class GetProfileUseCase:
    def __init__(
        self,
        *,
        user_repository: UserRepository,
        profile_repository: ProfileRepository,
    ) -> None:
        self._users = user_repository
        self._profiles = profile_repository

    def execute(self, user_id: int) -> ProfileDetails:
        if self._users.get_by_id(user_id) is None:
            raise NotFoundError(f"User not found with ID: {user_id}")
        return self._profiles.get(user_id)

    def summary(self, user_id: int) -> ProfileSummary:
        details = self.execute(user_id)
        profile = details.profile
        fitness = details.fitness
        return ProfileSummary(
            user_id=user_id,
            profile_completed=details.profile_completed,
            first_name=profile.first_name if profile else None,
            last_name=profile.last_name if profile else None,
            date_of_birth=profile.date_of_birth if profile else None,
            gender=profile.gender if profile else None,
            profile_picture_url=profile.profile_picture_url if profile else None,
            fitness_level=fitness.fitness_level if fitness else None,
            primary_goal=fitness.primary_goal if fitness else None,
        )
