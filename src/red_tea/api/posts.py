"""Post, vote, report and comment API endpoints."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.database import get_db
from red_tea.models.user import User
from red_tea.schemas.admin import CascadeReportResponse
from red_tea.schemas.comment import CommentCreate, CommentResponse
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
from red_tea.services import content, votes
from red_tea.services.storage import StorageClient, get_storage_client
from red_tea.utils.security import CurrentPrincipal

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=PostListResponse)
async def list_posts(
    principal: CurrentPrincipal,
    q: str | None = Query(None, max_length=200, description="Search name, city or story"),
    city: str | None = Query(None, description="Only posts about this city"),
    majority: MajorityFilter = Query(MajorityFilter.ALL, description="Flag majority filter"),
    sort: FeedSort = Query(FeedSort.RECENT, description="Sort order"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> PostListResponse:
    """The community feed.

    Supports free-text search, a city filter, green/red majority filters and
    ordering by recency, replies or flag counts.
    Requires authentication.
    """
    return await content.feed(
        db,
        storage,
        principal,
        query=q,
        city=city,
        majority=majority,
        sort=sort,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=PostResponse, status_code=201)
async def create_post(
    principal: CurrentPrincipal,
    post_data: PostCreate,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> PostResponse:
    """Publish a post. Requires an approved, unbanned account."""
    post = await content.create_post(db, principal, post_data)
    return await content.post_by_id(db, storage, post.id, principal)


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> PostResponse:
    """Get a single post."""
    return await content.post_by_id(db, storage, post_id, principal)


@router.delete("/{post_id}", response_model=CascadeReportResponse)
async def delete_post(
    post_id: int,
    principal: CurrentPrincipal,
    db: AsyncSession = Depends(get_db),
    storage: StorageClient | None = Depends(get_storage_client),
) -> CascadeReportResponse:
    """Delete one of the caller's own posts together with its image and replies."""
    report = await content.delete_own_post(db, storage, principal, post_id)
    return CascadeReportResponse.from_report(report)


@router.put("/{post_id}/vote", response_model=VoteResponse)
async def vote_on_post(
    post_id: int,
    principal: CurrentPrincipal,
    vote: VoteRequest,
    db: AsyncSession = Depends(get_db),
) -> VoteResponse:
    """Cast, change or retract (``null``) the caller's flag on a post."""
    post = await votes.cast_vote(db, principal, post_id, vote.choice)
    return VoteResponse(
        post_id=post.id,
        green_count=post.green_count,
        red_count=post.red_count,
        my_vote=vote.choice,
    )


@router.post("/{post_id}/report", response_model=ReportResponse)
async def report_post(
    post_id: int,
    principal: CurrentPrincipal,
    report: ReportRequest | None = None,
    db: AsyncSession = Depends(get_db),
) -> ReportResponse:
    """Flag a post for admin review."""
    post = await content.report_post(
        db, principal, post_id, reason=report.reason if report else None
    )
    return ReportResponse(
        id=post.id,
        is_reported=post.is_reported,
        report_count=post.report_count,
    )


@router.get("/{post_id}/comments", response_model=list[CommentResponse])
async def list_comments(
    post_id: int,
    principal: CurrentPrincipal,  # noqa: ARG001 - Required for auth enforcement
    db: AsyncSession = Depends(get_db),
) -> list[CommentResponse]:
    """List replies to a post, newest first."""
    return await content.comments_for_post(db, post_id)


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=201)
async def add_comment(
    post_id: int,
    principal: CurrentPrincipal,
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    """Reply to a post."""
    comment = await content.add_comment(db, principal, post_id, comment_data.content)
    author = await db.get(User, comment.user_id)
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        user_pseudonym=author.pseudonym if author else content.ANONYMOUS,
        content=comment.content,
        created_at=comment.created_at,
    )
