"""User directory API endpoints."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.database import get_db
from red_tea.schemas.admin import CascadeReportResponse
from red_tea.schemas.post import PostResponse
from red_tea.schemas.user import (
    OnboardingRequest,
    PublicUserResponse,
    UserResponse,
    UserStatsResponse,
)
from red_tea.services import content, directory
from red_tea.services.identity import IdentityProviderClient, get_identity_client
from red_tea.services.moderation import require_user
from red_tea.services.storage import StorageClient, get_storage_client
from red_tea.utils.security import CurrentPrincipal

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def read_current_user(
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Get the caller's directory record.

    Raises:
        HTTPException 404: If the identity provider has not synced the user yet
    """
    user = await directory.get_user(db, require_user(principal))
    return UserResponse.model_validate(user)


@router.post("/me/onboarding", response_model=UserResponse)
async def complete_onboarding(
    principal: CurrentPrincipal,
    data: OnboardingRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Submit verification images and enter the admin review queue."""
    user = await directory.complete_onboarding(
        db,
        principal,
        principal.subject_id,
        selfie_storage_id=data.selfie_storage_id,
        id_storage_id=data.id_storage_id,
    )
    return UserResponse.model_validate(user)


@router.delete("/me", response_model=CascadeReportResponse)
async def delete_current_user(
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
    identity: IdentityProviderClient | None = Depends(get_identity_client),
) -> CascadeReportResponse:
    """Delete the caller's account, posts, comments and votes."""
    report = await directory.wipe(db, storage, identity, principal, require_user(principal))
    return CascadeReportResponse.from_report(report)


@router.get("/{user_id}", response_model=PublicUserResponse)
async def read_user(
    user_id: int,
    principal: CurrentPrincipal,  # noqa: ARG001 - Required for auth enforcement
    db: AsyncSession = Depends(get_db),
) -> PublicUserResponse:
    """Get a user's public profile."""
    user = await directory.get_user(db, user_id)
    return PublicUserResponse.model_validate(user)


@router.get("/{user_id}/stats", response_model=UserStatsResponse)
async def read_user_stats(
    user_id: int,
    principal: CurrentPrincipal,  # noqa: ARG001 - Required for auth enforcement
    db: AsyncSession = Depends(get_db),
) -> UserStatsResponse:
    """Get a user's contribution statistics."""
    return await directory.user_stats(db, user_id)


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def read_user_posts(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> list[PostResponse]:
    """List posts written by a user, newest first."""
    return await content.posts_by_user(db, storage, user_id, principal)
