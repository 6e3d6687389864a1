from datetime import date

import pytest

from services.storefront.application.dto import (
    BasicProfileInfoCommand,
    ProfileSetupCommand,
    UploadPictureCommand,
)
from services.storefront.application.get_profile import GetProfileUseCase
from services.storefront.application.profile_picture import (
    DeleteProfilePictureUseCase,
    UploadProfilePictureUseCase,
)
from services.storefront.application.setup_profile import SetupProfileUseCase
from services.storefront.application.update_profile import (
    UpdateBasicInfoUseCase,
    UpdateProfileUseCase,
)
from services.storefront.domain.errors import BadRequestError, NotFoundError
from services.storefront.domain.profile import PrivacyLevel, ProfilePatch
from services.storefront.tests.fakes import FakePictureStorage


def _args(store):
    return dict(user_repository=store.users, profile_repository=store.profiles)


def _setup(store, user, **fields):
    return SetupProfileUseCase(**_args(store)).execute(
        ProfileSetupCommand(user_id=user.user_id, first_name="Amina", last_name="K", **fields)
    )


def test_setup_creates_only_sections_with_data(store):
    user = store.add_user()
    details = _setup(store, user, height_cm=168.0, fitness_level="BEGINNER")

    assert details.profile_completed
    assert details.profile.first_name == "Amina"
    assert details.physical.height_cm == 168.0
    assert details.fitness.fitness_level == "BEGINNER"
    assert details.health is None
    assert details.preferences.language == "en"
    assert details.preferences.privacy_level is PrivacyLevel.PRIVATE
    assert store.users.get_by_id(user.user_id).profile_completed


def test_setup_twice_is_rejected(store):
    user = store.add_user()
    _setup(store, user)
    with pytest.raises(BadRequestError, match="already been completed"):
        _setup(store, user)


def test_setup_for_unknown_user(store):
    with pytest.raises(NotFoundError):
        SetupProfileUseCase(**_args(store)).execute(ProfileSetupCommand(user_id=404))


def test_update_leaves_absent_fields_and_clears_explicit_nulls(store):
    user = store.add_user()
    _setup(
        store,
        user,
        phone_number="+250788000000",
        fitness_level="BEGINNER",
        primary_goal="STRENGTH",
        secondary_goals=["mobility"],
    )

    details = UpdateProfileUseCase(**_args(store)).execute(
        user.user_id,
        ProfilePatch(
            changes={
                "phone_number": None,
                "primary_goal": "ENDURANCE",
                "secondary_goals": None,
                "language": None,
                "dietary_restrictions": ["vegan"],
            }
        ),
    )

    assert details.profile.first_name == "Amina"
    assert details.profile.phone_number is None
    assert details.fitness.fitness_level == "BEGINNER"
    assert details.fitness.primary_goal == "ENDURANCE"
    assert details.fitness.secondary_goals == []
    assert details.preferences.language == "en"
    assert details.health.dietary_restrictions == ["vegan"]
    assert details.physical is None


def test_update_basic_info_requires_profile(store):
    user = store.add_user()
    command = BasicProfileInfoCommand(
        user_id=user.user_id,
        first_name="Grace",
        last_name="U",
        date_of_birth=date(1995, 4, 2),
    )
    with pytest.raises(NotFoundError, match="User profile not found"):
        UpdateBasicInfoUseCase(**_args(store)).execute(command)

    _setup(store, user)
    details = UpdateBasicInfoUseCase(**_args(store)).execute(command)
    assert details.profile.first_name == "Grace"
    assert details.profile.date_of_birth == date(1995, 4, 2)


def test_summary(store):
    user = store.add_user()
    _setup(store, user, primary_goal="WEIGHT_LOSS")

    summary = GetProfileUseCase(**_args(store)).summary(user.user_id)

    assert summary.profile_completed
    assert summary.first_name == "Amina"
    assert summary.primary_goal == "WEIGHT_LOSS"
    assert summary.fitness_level is None


def _picture(user, data=b"\x89PNG....", content_type="image/png", filename="me.PNG"):
    return UploadPictureCommand(
        user_id=user.user_id, filename=filename, content_type=content_type, data=data
    )


def test_upload_replaces_previous_picture(store):
    user = store.add_user()
    _setup(store, user)
    storage = FakePictureStorage()
    upload = UploadProfilePictureUseCase(profile_repository=store.profiles, storage=storage)

    first = upload.execute(_picture(user))
    second = upload.execute(_picture(user))

    assert first.file_name.startswith(f"profile-pictures/{user.user_id}/")
    assert first.file_name.endswith(".png")
    assert second.file_size == len(b"\x89PNG....")
    assert storage.deleted == [first.profile_picture_url]
    stored = store.profiles.get(user.user_id)
    assert stored.profile.profile_picture_url == second.profile_picture_url


@pytest.mark.parametrize(
    "data, content_type, message",
    [
        (b"", "image/png", "Please select a file"),
        (b"%PDF", "application/pdf", "Only image files"),
        (b"x" * 11, "image/jpeg", "must not exceed"),
    ],
)
def test_upload_validation(store, data, content_type, message):
    user = store.add_user()
    _setup(store, user)
    upload = UploadProfilePictureUseCase(
        profile_repository=store.profiles, storage=FakePictureStorage(), max_bytes=10
    )
    with pytest.raises(BadRequestError, match=message):
        upload.execute(_picture(user, data=data, content_type=content_type))


def test_delete_picture(store):
    user = store.add_user()
    _setup(store, user)
    storage = FakePictureStorage()
    uploaded = UploadProfilePictureUseCase(
        profile_repository=store.profiles, storage=storage
    ).execute(_picture(user))
    delete = DeleteProfilePictureUseCase(profile_repository=store.profiles, storage=storage)

    details = delete.execute(user.user_id)

    assert details.profile.profile_picture_url is None
    assert storage.deleted == [uploaded.profile_picture_url]
    with pytest.raises(BadRequestError):
        delete.execute(user.user_id)
