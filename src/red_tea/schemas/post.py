"""Pydantic schemas for post, vote and report endpoints."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from red_tea.models.post import VoteChoice


class FeedSort(StrEnum):
    RECENT = "recent"
    REPLIES = "replies"
    GREEN = "green"
    RED = "red"


class MajorityFilter(StrEnum):
    ALL = "all"
    GREEN = "green"
    RED = "red"


class PostCreate(BaseModel):
    """Schema for creating a post about a dating contact."""

    subject_name: str = Field(default="", max_length=255, description="Name of the person")
    subject_age: int = Field(ge=18, le=120, description="Age of the person")
    subject_city: str = Field(min_length=1, max_length=255, description="City of the person")
    body: str = Field(min_length=1, max_length=5000, description="The story")
    file_id: str | None = Field(default=None, description="Storage id of an uploaded image")

    @field_validator("subject_city", "body")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only text."""
        v = v.strip()
        if not v:
            msg = "Field must not be blank"
            raise ValueError(msg)
        return v

    @field_validator("subject_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()


class PostResponse(BaseModel):
    """A post enriched with fields resolved at read time."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Post ID")
    user_id: int = Field(description="Author user ID")
    author_pseudonym: str = Field(description="Author's public alias")
    subject_name: str = Field(description="Name of the person")
    subject_age: int = Field(description="Age of the person")
    subject_city: str = Field(description="City of the person")
    body: str = Field(description="The story")
    image_url: str | None = Field(default=None, description="Resolved image URL")
    green_count: int = Field(description="Green flags")
    red_count: int = Field(description="Red flags")
    replies_count: int = Field(default=0, description="Number of comments")
    is_reported: bool = Field(description="Whether the post is awaiting moderation")
    report_count: int = Field(description="Number of reports")
    my_vote: VoteChoice | None = Field(default=None, description="The caller's vote, if any")
    created_at: datetime = Field(description="When the post was created")


class PostListResponse(BaseModel):
    """Paginated response for the feed."""

    model_config = ConfigDict(extra="ignore")

    total: int = Field(description="Total number of matching posts")
    page: int = Field(description="Current page number")
    page_size: int = Field(description="Number of items per page")
    results: list[PostResponse] = Field(default_factory=list, description="Post results")


class VoteRequest(BaseModel):
    """Cast, change or retract (null) a vote."""

    choice: VoteChoice | None = Field(description="green, red, or null to retract")


class VoteResponse(BaseModel):
    """Post counters after a vote."""

    post_id: int = Field(description="Post ID")
    green_count: int = Field(description="Green flags")
    red_count: int = Field(description="Red flags")
    my_vote: VoteChoice | None = Field(default=None, description="The caller's vote, if any")


class ReportRequest(BaseModel):
    """Flag a post for admin review."""

    reason: str | None = Field(default=None, max_length=500, description="Why the post is reported")


class ReportResponse(BaseModel):
    """Moderation state of a post after a report or dismissal."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Post ID")
    is_reported: bool = Field(description="Whether the post is awaiting moderation")
    report_count: int = Field(description="Number of reports")
