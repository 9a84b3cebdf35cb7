"""Pydantic schemas for request/response validation."""

from red_tea.schemas.admin import CascadeReportResponse, CascadeStepResponse
from red_tea.schemas.comment import CommentCreate, CommentResponse
from red_tea.schemas.external import StorageUploadUrl, StorageUrl, UploadUrlResponse
from red_tea.schemas.post import (
    FeedSort,
    MajorityFilter,
    PostCreate,
    PostListResponse,
    PostResponse,
    ReportRequest,
    ReportResponse,
    VoteRequest,
    VoteResponse,
)
from red_tea.schemas.user import (
    OnboardingRequest,
    PublicUserResponse,
    ReviewUserResponse,
    UserResponse,
    UserStatsResponse,
)
from red_tea.schemas.webhook import IdentityEvent, IdentityEventData

__all__ = [
    # External service schemas
    "StorageUploadUrl",
    "StorageUrl",
    "UploadUrlResponse",
    # User schemas
    "UserResponse",
    "PublicUserResponse",
    "OnboardingRequest",
    "UserStatsResponse",
    "ReviewUserResponse",
    # Post schemas
    "FeedSort",
    "MajorityFilter",
    "PostCreate",
    "PostResponse",
    "PostListResponse",
    "VoteRequest",
    "VoteResponse",
    "ReportRequest",
    "ReportResponse",
    # Comment schemas
    "CommentCreate",
    "CommentResponse",
    # Moderation schemas
    "CascadeStepResponse",
    "CascadeReportResponse",
    # Webhook schemas
    "IdentityEvent",
    "IdentityEventData",
]
