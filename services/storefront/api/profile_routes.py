from __future__ import annotations

from dataclasses import asdict
from datetime import date, datetime
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field

from services.storefront.api.dependencies import AuthDependencies, domain_errors
from services.storefront.application.dto import (
    BasicProfileInfoCommand,
    ProfileSetupCommand,
    ProfileSummary,
    UploadedPicture,
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
from services.storefront.domain.profile import PrivacyLevel, ProfileDetails, ProfilePatch
from services.storefront.domain.user import User


class ProfileFields(BaseModel):
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = None
    phone_number: str | None = None
    height_cm: float | None = Field(default=None, gt=0)
    current_weight_kg: float | None = Field(default=None, gt=0)
    target_weight_kg: float | None = Field(default=None, gt=0)
    fitness_level: str | None = None
    primary_goal: str | None = None
    secondary_goals: List[str] | None = None
    preferred_activity_types: List[str] | None = None
    workout_frequency: int | None = Field(default=None, ge=0, le=14)
    workout_duration: int | None = Field(default=None, ge=0)
    preferred_workout_days: List[str] | None = None
    preferred_workout_times: List[str] | None = None
    dietary_restrictions: List[str] | None = None
    health_conditions: List[str] | None = None
    medications: List[str] | None = None
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None
    timezone: str | None = None
    language: str | None = None
    email_notifications: bool | None = None
    push_notifications: bool | None = None
    privacy_level: PrivacyLevel | None = None


class ProfileSetupRequest(ProfileFields):
    def to_command(self, user_id: int) -> ProfileSetupCommand:
        values = self.model_dump()
        for name in (
            "secondary_goals",
            "preferred_activity_types",
            "preferred_workout_days",
            "preferred_workout_times",
            "medications",
        ):
            values[name] = values[name] or []
        return ProfileSetupCommand(user_id=user_id, **values)


class ProfileUpdateRequest(ProfileFields):
    def to_patch(self) -> ProfilePatch:
        return ProfilePatch(changes=self.model_dump(exclude_unset=True))


class BasicInfoRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    date_of_birth: date | None = None
    gender: str | None = None
    phone_number: str | None = None


class ProfileSection(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    date_of_birth: date | None = None
    gender: str | None = None
    phone_number: str | None = None
    profile_picture_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PhysicalSection(BaseModel):
    height_cm: float | None = None
    current_weight_kg: float | None = None
    target_weight_kg: float | None = None


class FitnessSection(BaseModel):
    fitness_level: str | None = None
    primary_goal: str | None = None
    secondary_goals: List[str] = Field(default_factory=list)
    preferred_activity_types: List[str] = Field(default_factory=list)
    workout_frequency: int | None = None
    workout_duration: int | None = None
    preferred_workout_days: List[str] = Field(default_factory=list)
    preferred_workout_times: List[str] = Field(default_factory=list)


class HealthSection(BaseModel):
    dietary_restrictions: List[str] = Field(default_factory=list)
    health_conditions: List[str] = Field(default_factory=list)
    medications: List[str] = Field(default_factory=list)
    emergency_contact_name: str | None = None
    emergency_contact_phone: str | None = None


class PreferencesSection(BaseModel):
    timezone: str | None = None
    language: str
    email_notifications: bool
    push_notifications: bool
    privacy_level: PrivacyLevel


def _section(model: type[BaseModel], record):
    if record is None:
        return None
    values = asdict(record)
    values.pop("user_id", None)
    return model(**values)


class ProfileResponse(BaseModel):
    user_id: int
    profile_completed: bool
    profile: ProfileSection | None
    physical_attributes: PhysicalSection | None
    fitness_profile: FitnessSection | None
    health_information: HealthSection | None
    preferences: PreferencesSection | None

    @classmethod
    def from_domain(cls, details: ProfileDetails) -> "ProfileResponse":
        return cls(
            user_id=details.user_id,
            profile_completed=details.profile_completed,
            profile=_section(ProfileSection, details.profile),
            physical_attributes=_section(PhysicalSection, details.physical),
            fitness_profile=_section(FitnessSection, details.fitness),
            health_information=_section(HealthSection, details.health),
            preferences=_section(PreferencesSection, details.preferences),
        )


class ProfileSummaryResponse(BaseModel):
    user_id: int
    profile_completed: bool
    first_name: str | None
    last_name: str | None
    date_of_birth: date | None
    gender: str | None
    profile_picture_url: str | None
    fitness_level: str | None
    primary_goal: str | None

    @classmethod
    def from_domain(cls, summary: ProfileSummary) -> "ProfileSummaryResponse":
        return cls(**asdict(summary))


class PictureUploadResponse(BaseModel):
    profile_picture_url: str
    file_name: str
    file_size: int
    content_type: str
    uploaded_at: datetime

    @classmethod
    def from_domain(cls, picture: UploadedPicture) -> "PictureUploadResponse":
        return cls(**asdict(picture))


def create_profile_router(
    auth: AuthDependencies,
    *,
    setup_use_case: SetupProfileUseCase,
    update_use_case: UpdateProfileUseCase,
    update_basic_use_case: UpdateBasicInfoUseCase,
    get_profile_use_case: GetProfileUseCase,
    upload_picture_use_case: UploadProfilePictureUseCase,
    delete_picture_use_case: DeleteProfilePictureUseCase,
) -> APIRouter:
    router = APIRouter(prefix="/api/profile", tags=["profile"])

    @router.post("/setup", response_model=ProfileResponse)
    def setup_profile(
        payload: ProfileSetupRequest, user: User = Depends(auth.current_user)
    ):
        with domain_errors():
            details = setup_use_case.execute(payload.to_command(user.user_id))
        return ProfileResponse.from_domain(details)

    @router.put("/update", response_model=ProfileResponse)
    def update_profile(
        payload: ProfileUpdateRequest, user: User = Depends(auth.current_user)
    ):
        with domain_errors():
            details = update_use_case.execute(user.user_id, payload.to_patch())
        return ProfileResponse.from_domain(details)

    @router.patch("/basic", response_model=ProfileResponse)
    def update_basic_info(
        payload: BasicInfoRequest, user: User = Depends(auth.current_user)
    ):
        command = BasicProfileInfoCommand(user_id=user.user_id, **payload.model_dump())
        with domain_errors():
            details = update_basic_use_case.execute(command)
        return ProfileResponse.from_domain(details)

    @router.get("", response_model=ProfileResponse)
    def get_profile(user: User = Depends(auth.current_user)):
        with domain_errors():
            details = get_profile_use_case.execute(user.user_id)
        return ProfileResponse.from_domain(details)

    @router.get("/summary", response_model=ProfileSummaryResponse)
    def get_profile_summary(user: User = Depends(auth.current_user)):
        with domain_errors():
            summary = get_profile_use_case.summary(user.user_id)
        return ProfileSummaryResponse.from_domain(summary)

    @router.post("/picture", response_model=PictureUploadResponse)
    def upload_picture(
        file: UploadFile = File(...), user: User = Depends(auth.current_user)
    ):
        command = UploadPictureCommand(
            user_id=user.user_id,
            filename=file.filename or "",
            content_type=file.content_type,
            data=file.file.read(),
        )
        with domain_errors():
            picture = upload_picture_use_case.execute(command)
        return PictureUploadResponse.from_domain(picture)

    @router.delete("/picture", response_model=ProfileResponse)
    def delete_picture(user: User = Depends(auth.current_user)):
        with domain_errors():
            details = delete_picture_use_case.execute(user.user_id)
        return ProfileResponse.from_domain(details)

    return router
