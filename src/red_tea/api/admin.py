"""Admin moderation API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.database import get_db
from red_tea.schemas.admin import CascadeReportResponse
from red_tea.schemas.post import PostResponse, ReportResponse
from red_tea.schemas.user import ReviewUserResponse, UserResponse
from red_tea.services import content, directory
from red_tea.services.identity import IdentityProviderClient, get_identity_client
from red_tea.services.storage import StorageClient, get_storage_client
from red_tea.utils.security import CurrentPrincipal

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[ReviewUserResponse])
async def list_users(
    principal: CurrentPrincipal,
    status: str | None = Query(
        None,
        description="Verification status filter, or pending_review for users awaiting a decision",
    ),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> list[ReviewUserResponse]:
    """List users with their verification images, newest first."""
    return await directory.list_users_for_review(db, storage, principal, status)


@router.post("/users/{user_id}/approve", response_model=UserResponse)
async def approve_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> UserResponse:
    """Approve a user's verification."""
    user = await directory.set_approval(db, storage, principal, user_id, approved=True)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/deny", response_model=UserResponse)
async def deny_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> UserResponse:
    """Deny a user's verification and discard the submitted images."""
    user = await directory.set_approval(db, storage, principal, user_id, approved=False)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/ban", response_model=UserResponse)
async def ban_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Ban a user. Their existing content stays visible."""
    user = await directory.set_banned(db, principal, user_id, banned=True)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/unban", response_model=UserResponse)
async def unban_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """Lift a ban."""
    user = await directory.set_banned(db, principal, user_id, banned=False)
    return UserResponse.model_validate(user)


@router.post("/users/{user_id}/reject", response_model=CascadeReportResponse)
async def reject_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
    identity: IdentityProviderClient | None = Depends(get_identity_client),
) -> CascadeReportResponse:
    """Reject a user's verification and delete the account with all its content."""
    report = await directory.reject_and_delete(db, storage, identity, principal, user_id)
    return CascadeReportResponse.from_report(report)


@router.delete("/users/{user_id}", response_model=CascadeReportResponse)
async def delete_user(
    user_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
    identity: IdentityProviderClient | None = Depends(get_identity_client),
) -> CascadeReportResponse:
    """Delete any user with all their posts, comments and votes."""
    report = await directory.wipe(db, storage, identity, principal, user_id)
    return CascadeReportResponse.from_report(report)


@router.get("/posts/reported", response_model=list[PostResponse])
async def list_reported_posts(
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> list[PostResponse]:
    """Posts awaiting moderation, most reported first."""
    return await content.reported_posts(db, storage, principal)


@router.delete("/posts/{post_id}", response_model=CascadeReportResponse)
async def delete_post(
    post_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> CascadeReportResponse:
    """Remove any post together with its image, comments and votes."""
    report = await content.delete_post_as_admin(db, storage, principal, post_id)
    return CascadeReportResponse.from_report(report)


@router.post("/posts/{post_id}/dismiss-report", response_model=ReportResponse)
async def dismiss_report(
    post_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Clear a post's reports, keeping the post."""
    post = await content.dismiss_report(db, principal, post_id)
    return ReportResponse.model_validate(post)
