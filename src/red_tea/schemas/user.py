"""Pydantic schemas for user directory endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """The caller's own directory record."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    subject_id: str = Field(description="Identity provider subject id")
    email: str = Field(description="Email address")
    name: str = Field(description="Display name")
    pseudonym: str = Field(description="Public alias")
    is_approved: bool = Field(description="Whether verification was approved")
    is_banned: bool = Field(description="Whether the account is banned")
    has_completed_onboarding: bool = Field(description="Whether onboarding was completed")
    role: str = Field(description="Directory role (user or admin)")
    verification_status: str = Field(description="none, pending, approved or rejected")
    created_at: datetime = Field(description="When the user was created")


class PublicUserResponse(BaseModel):
    """What other users may see of a profile."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="User ID")
    pseudonym: str = Field(description="Public alias")
    role: str = Field(description="Directory role (user or admin)")
    created_at: datetime = Field(description="When the user was created")


class OnboardingRequest(BaseModel):
    """Verification images submitted when completing onboarding."""

    selfie_storage_id: str | None = Field(default=None, description="Storage id of the selfie")
    id_storage_id: str | None = Field(default=None, description="Storage id of the ID photo")


class UserStatsResponse(BaseModel):
    """Contribution statistics for a profile."""

    user_id: int = Field(description="User ID")
    post_count: int = Field(description="Number of posts written")
    green_flags: int = Field(description="Green flags received across all posts")
    red_flags: int = Field(description="Red flags received across all posts")
    comment_count: int = Field(description="Number of comments written")


class ReviewUserResponse(BaseModel):
    """A user as shown in the admin verification queue."""

    id: int = Field(description="User ID")
    subject_id: str = Field(description="Identity provider subject id")
    name: str = Field(description="Display name")
    pseudonym: str = Field(description="Public alias")
    email: str = Field(description="Email address")
    selfie_url: str | None = Field(default=None, description="Resolved selfie URL")
    id_url: str | None = Field(default=None, description="Resolved ID photo URL")
    is_approved: bool = Field(description="Whether verification was approved")
    is_banned: bool = Field(description="Whether the account is banned")
    verification_status: str = Field(description="none, pending, approved or rejected")
    created_at: datetime = Field(description="When the user was created")
