"""Content store: posts, comments, reports and read projections."""

import logging
from collections.abc import Sequence
from datetime import UTC, datetime

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.admin_action import USER_FLAGGED_ACTOR, AdminActionType
from red_tea.models.comment import Comment
from red_tea.models.post import Post, PostVote, VoteChoice
from red_tea.models.user import User
from red_tea.schemas.comment import CommentResponse
from red_tea.schemas.post import (
    FeedSort,
    MajorityFilter,
    PostCreate,
    PostListResponse,
    PostResponse,
)
from red_tea.services.audit import record_action
from red_tea.services.errors import RecordNotFoundError, UnauthorizedError
from red_tea.services.moderation import (
    Cascade,
    CascadeReport,
    Principal,
    require_active_user,
    require_admin,
)
from red_tea.services.storage import StorageClient, resolve_url

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"

# Live comment count, correlated to the enclosing post query
replies_count = (
    select(func.count(Comment.id))
    .where(Comment.post_id == Post.id)
    .correlate(Post)
    .scalar_subquery()
    .label("replies_count")
)


async def get_post(db: AsyncSession, post_id: int) -> Post:
    """Load a post or raise ``RecordNotFoundError``."""
    result = await db.execute(select(Post).where(Post.id == post_id))
    post = result.scalar_one_or_none()
    if post is None:
        raise RecordNotFoundError("Post not found")
    return post


async def create_post(db: AsyncSession, principal: Principal, data: PostCreate) -> Post:
    """Publish a post as the principal.

    Raises:
        RecordNotFoundError: If the principal has no directory record.
        UnauthorizedError: If the author is banned or not yet approved.
    """
    author_id = require_active_user(principal)
    if not principal.is_approved:
        raise UnauthorizedError("Account must be approved before posting")

    post = Post(
        user_id=author_id,
        subject_name=data.subject_name,
        subject_age=data.subject_age,
        subject_city=data.subject_city,
        body=data.body,
        file_id=data.file_id,
        green_count=0,
        red_count=0,
        report_count=0,
        is_reported=False,
        created_at=datetime.now(UTC),
    )
    db.add(post)
    await db.flush()
    await db.refresh(post)

    logger.info("User %s created post %s", author_id, post.id)
    return post


def build_post_cascade(db: AsyncSession, storage: StorageClient | None, post: Post) -> Cascade:
    """Plan the deletion of a post: image, then comments and ballots, then the record."""
    post_id = post.id
    cascade = Cascade(f"delete_post:{post_id}")

    if storage is not None and post.file_id:
        file_id = post.file_id
        cascade.best_effort("delete_image", lambda: storage.delete_object(file_id))

    async def delete_comments() -> None:
        await db.execute(delete(Comment).where(Comment.post_id == post_id))

    async def delete_votes() -> None:
        await db.execute(delete(PostVote).where(PostVote.post_id == post_id))

    async def delete_record() -> None:
        await db.delete(post)
        await db.flush()

    cascade.add("delete_comments", delete_comments)
    cascade.add("delete_votes", delete_votes)
    cascade.add("delete_post", delete_record)
    return cascade


async def delete_own_post(
    db: AsyncSession,
    storage: StorageClient | None,
    principal: Principal,
    post_id: int,
) -> CascadeReport:
    """Delete a post the principal authored.

    Raises:
        RecordNotFoundError: If the post does not exist.
        UnauthorizedError: If the principal is not the author.
        CascadeError: If removing the record failed.
    """
    post = await get_post(db, post_id)
    if principal.user_id is None or post.user_id != principal.user_id:
        raise UnauthorizedError("You are not authorized to delete this post")

    return await build_post_cascade(db, storage, post).execute()


async def delete_post_as_admin(
    db: AsyncSession,
    storage: StorageClient | None,
    principal: Principal,
    post_id: int,
) -> CascadeReport:
    """Remove any post as an admin, recording a ``delete_post`` audit entry."""
    require_admin(principal)
    post = await get_post(db, post_id)

    report = await build_post_cascade(db, storage, post).execute()
    await record_action(
        db, principal.subject_id, AdminActionType.DELETE_POST, target_post_id=post_id
    )
    return report


async def report_post(
    db: AsyncSession,
    principal: Principal,
    post_id: int,
    reason: str | None = None,
) -> Post:
    """Flag a post for admin review.

    Every call counts; reports from the same user are not de-duplicated.
    """
    require_active_user(principal)
    post = await get_post(db, post_id)

    await db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(report_count=Post.report_count + 1, is_reported=True)
    )
    await record_action(
        db,
        USER_FLAGGED_ACTOR,
        AdminActionType.REPORT_POST,
        target_post_id=post_id,
        reason=reason,
    )
    await db.refresh(post)
    return post


async def dismiss_report(db: AsyncSession, principal: Principal, post_id: int) -> Post:
    """Clear a post's reports (admin only)."""
    require_admin(principal)
    post = await get_post(db, post_id)

    post.is_reported = False
    post.report_count = 0
    await db.flush()
    await record_action(
        db, principal.subject_id, AdminActionType.DISMISS_REPORT, target_post_id=post_id
    )
    return post


async def add_comment(
    db: AsyncSession,
    principal: Principal,
    post_id: int,
    content: str,
) -> Comment:
    """Reply to a post as the principal."""
    author_id = require_active_user(principal)
    await get_post(db, post_id)

    comment = Comment(
        post_id=post_id,
        user_id=author_id,
        content=content,
        created_at=datetime.now(UTC),
    )
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return comment


async def comments_for_post(db: AsyncSession, post_id: int) -> list[CommentResponse]:
    """List a post's comments, newest first, with author pseudonyms."""
    await get_post(db, post_id)

    result = await db.execute(
        select(Comment, User.pseudonym)
        .outerjoin(User, User.id == Comment.user_id)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    )
    return [
        CommentResponse(
            id=comment.id,
            post_id=comment.post_id,
            user_id=comment.user_id,
            user_pseudonym=pseudonym or ANONYMOUS,
            content=comment.content,
            created_at=comment.created_at,
        )
        for comment, pseudonym in result.all()
    ]


async def _viewer_votes(
    db: AsyncSession, viewer: Principal | None, post_ids: Sequence[int]
) -> dict[int, VoteChoice]:
    if viewer is None or viewer.user_id is None or not post_ids:
        return {}
    result = await db.execute(
        select(PostVote.post_id, PostVote.choice).where(
            PostVote.voter_id == viewer.user_id,
            PostVote.post_id.in_(post_ids),
        )
    )
    return {post_id: VoteChoice(choice) for post_id, choice in result.all()}


async def _to_responses(
    db: AsyncSession,
    storage: StorageClient | None,
    rows: Sequence[tuple[Post, int, str | None]],
    viewer: Principal | None,
) -> list[PostResponse]:
    """Enrich posts with image URL, author pseudonym, replies and the viewer's vote."""
    votes = await _viewer_votes(db, viewer, [post.id for post, _, _ in rows])

    responses = []
    for post, replies, pseudonym in rows:
        responses.append(
            PostResponse(
                id=post.id,
                user_id=post.user_id,
                author_pseudonym=pseudonym or ANONYMOUS,
                subject_name=post.subject_name,
                subject_age=post.subject_age,
                subject_city=post.subject_city,
                body=post.body,
                image_url=await resolve_url(storage, post.file_id),
                green_count=post.green_count,
                red_count=post.red_count,
                replies_count=replies or 0,
                is_reported=post.is_reported,
                report_count=post.report_count,
                my_vote=votes.get(post.id),
                created_at=post.created_at,
            )
        )
    return responses


def _projection():
    return select(Post, replies_count, User.pseudonym).outerjoin(User, User.id == Post.user_id)


def _majority_clause(majority: MajorityFilter):
    total = Post.green_count + Post.red_count
    if majority == MajorityFilter.GREEN:
        # green / total > 0.6
        return Post.green_count * 5 > total * 3
    # green / total < 0.4, where a post without votes has a ratio of 0
    return or_(total == 0, Post.green_count * 5 < total * 2)


async def feed(
    db: AsyncSession,
    storage: StorageClient | None,
    viewer: Principal | None = None,
    *,
    query: str | None = None,
    city: str | None = None,
    majority: MajorityFilter = MajorityFilter.ALL,
    sort: FeedSort = FeedSort.RECENT,
    page: int = 1,
    page_size: int = 20,
) -> PostListResponse:
    """The community feed with optional search, filters and ordering."""
    filters = []
    if query and query.strip():
        pattern = f"%{query.strip()}%"
        filters.append(
            or_(
                Post.subject_name.ilike(pattern),
                Post.subject_city.ilike(pattern),
                Post.body.ilike(pattern),
            )
        )
    if city:
        filters.append(Post.subject_city == city)
    if majority != MajorityFilter.ALL:
        filters.append(_majority_clause(majority))

    count_query = select(func.count(Post.id)).where(*filters)
    total = (await db.execute(count_query)).scalar_one()

    order_by = {
        FeedSort.RECENT: (Post.created_at.desc(), Post.id.desc()),
        FeedSort.REPLIES: (replies_count.desc(), Post.created_at.desc()),
        FeedSort.GREEN: (Post.green_count.desc(), Post.created_at.desc()),
        FeedSort.RED: (Post.red_count.desc(), Post.created_at.desc()),
    }[sort]

    offset = (page - 1) * page_size
    results = await db.execute(
        _projection().where(*filters).order_by(*order_by).offset(offset).limit(page_size)
    )
    rows = [tuple(row) for row in results.all()]

    return PostListResponse(
        total=total,
        page=page,
        page_size=page_size,
        results=await _to_responses(db, storage, rows, viewer),
    )


async def posts_by_user(
    db: AsyncSession,
    storage: StorageClient | None,
    user_id: int,
    viewer: Principal | None = None,
) -> list[PostResponse]:
    """All posts a user authored, newest first."""
    user = await db.get(User, user_id)
    if user is None:
        raise RecordNotFoundError("User not found")

    results = await db.execute(
        _projection()
        .where(Post.user_id == user_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    rows = [tuple(row) for row in results.all()]
    return await _to_responses(db, storage, rows, viewer)


async def post_by_id(
    db: AsyncSession,
    storage: StorageClient | None,
    post_id: int,
    viewer: Principal | None = None,
) -> PostResponse:
    """A single enriched post."""
    results = await db.execute(_projection().where(Post.id == post_id))
    row = results.one_or_none()
    if row is None:
        raise RecordNotFoundError("Post not found")

    (response,) = await _to_responses(db, storage, [tuple(row)], viewer)
    return response


async def reported_posts(
    db: AsyncSession,
    storage: StorageClient | None,
    principal: Principal,
) -> list[PostResponse]:
    """Posts awaiting moderation, most reported first (admin only)."""
    require_admin(principal)

    results = await db.execute(
        _projection()
        .where(Post.is_reported.is_(True))
        .order_by(Post.report_count.desc(), Post.created_at.desc())
    )
    rows = [tuple(row) for row in results.all()]
    return await _to_responses(db, storage, rows, principal)
