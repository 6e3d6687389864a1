from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path

from services.storefront.application.dto import UploadedPicture, UploadPictureCommand
from services.storefront.application.interfaces import (
    ProfilePictureStorage,
    ProfileRepository,
)
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.profile import ProfileDetails

LOGGER = logging.getLogger(__name__)

PICTURE_FOLDER = "profile-pictures"
DEFAULT_MAX_BYTES = 5 * 1024 * 1024


class UploadProfilePictureUseCase:
    def __init__(
        self,
        *,
        profile_repository: ProfileRepository,
        storage: ProfilePictureStorage,
        max_bytes: int = DEFAULT_MAX_BYTES,
    ) -> None:
        self._profiles = profile_repository
        self._storage = storage
        self._max_bytes = max_bytes

    def execute(self, command: UploadPictureCommand) -> UploadedPicture:
        LOGGER.info("Uploading profile picture for user ID: %s", command.user_id)
        self._validate(command)

        details = self._profiles.get(command.user_id)
        if details.profile is None:
            raise NotFoundError("User profile not found")

        if details.profile.profile_picture_url:
            _delete_quietly(self._storage, details.profile.profile_picture_url)

        file_name = _build_picture_key(command.user_id, command.filename)
        url = self._storage.upload(
            object_key=file_name, data=command.data, content_type=command.content_type
        )
        now = datetime.now(timezone.utc)
        profile = replace(details.profile, profile_picture_url=url, updated_at=now)
        self._profiles.save(replace(details, profile=profile))

        LOGGER.info("Profile picture uploaded for user ID: %s", command.user_id)
        return UploadedPicture(
            profile_picture_url=url,
            file_name=file_name,
            file_size=len(command.data),
            content_type=command.content_type,
            uploaded_at=now,
        )

    def _validate(self, command: UploadPictureCommand) -> None:
        if not command.data:
            raise BadRequestError("Please select a file to upload")
        if not command.content_type or not command.content_type.startswith("image/"):
            raise BadRequestError("Only image files are allowed")
        if len(command.data) > self._max_bytes:
            limit_mb = self._max_bytes // (1024 * 1024)
            raise BadRequestError(f"File size must not exceed {limit_mb}MB")


class DeleteProfilePictureUseCase:
    def __init__(
        self,
        *,
        profile_repository: ProfileRepository,
        storage: ProfilePictureStorage,
    ) -> None:
        self._profiles = profile_repository
        self._storage = storage

    def execute(self, user_id: int) -> ProfileDetails:
        details = self._profiles.get(user_id)
        if details.profile is None:
            raise NotFoundError("User profile not found")
        if not details.profile.profile_picture_url:
            raise BadRequestError("No profile picture to delete")

        _delete_quietly(self._storage, details.profile.profile_picture_url)
        profile = replace(
            details.profile,
            profile_picture_url=None,
            updated_at=datetime.now(timezone.utc),
        )
        return self._profiles.save(replace(details, profile=profile))


def _delete_quietly(storage: ProfilePictureStorage, url: str) -> None:
    try:
        storage.delete(url)
    except Exception:
        LOGGER.warning("Failed to delete old profile picture %s", url, exc_info=True)


def _build_picture_key(user_id: int, filename: str) -> str:
    suffix = Path(filename or "").suffix.lower() or ".img"
    return "/".join([PICTURE_FOLDER, str(user_id), f"{uuid.uuid4().hex}{suffix}"])
