"""Identity directory: one user record per identity-provider subject."""

import logging
from datetime import UTC, datetime

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.admin_action import AdminActionType
from red_tea.models.comment import Comment
from red_tea.models.post import Post, PostVote
from red_tea.models.user import Role, User, VerificationStatus
from red_tea.schemas.user import ReviewUserResponse, UserStatsResponse
from red_tea.services.audit import record_action
from red_tea.services.errors import RecordNotFoundError, UnauthorizedError
from red_tea.services.identity import IdentityProviderClient
from red_tea.services.moderation import Cascade, CascadeReport, Principal, require_admin
from red_tea.services.storage import StorageClient, resolve_url
from red_tea.services.votes import retract_all_ballots
from red_tea.utils.pseudonym import generate_pseudonym

logger = logging.getLogger(__name__)

# Admin review queue filter covering users who still need a decision
PENDING_REVIEW = "pending_review"


async def get_user(db: AsyncSession, user_id: int) -> User:
    """Load a user or raise ``RecordNotFoundError``."""
    user = await db.get(User, user_id)
    if user is None:
        raise RecordNotFoundError("User not found")
    return user


async def get_user_by_subject(db: AsyncSession, subject_id: str) -> User | None:
    result = await db.execute(select(User).where(User.subject_id == subject_id))
    return result.scalar_one_or_none()


async def upsert_from_identity_event(
    db: AsyncSession,
    subject_id: str,
    *,
    email: str = "",
    name: str = "",
) -> User:
    """Mirror a created or changed provider principal.

    Existing records only get their profile fields (name, email) patched;
    approval, role, ban and verification state are never touched here.
    """
    user = await get_user_by_subject(db, subject_id)
    if user is not None:
        user.name = name
        user.email = email
        await db.flush()
        return user

    user = User(
        subject_id=subject_id,
        email=email,
        name=name,
        pseudonym=generate_pseudonym(subject_id),
        is_approved=False,
        is_banned=False,
        has_completed_onboarding=False,
        role=Role.USER,
        verification_status=VerificationStatus.NONE,
        created_at=datetime.now(UTC),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("Created directory record %s for subject %s", user.id, subject_id)
    return user


async def complete_onboarding(
    db: AsyncSession,
    principal: Principal,
    subject_id: str,
    *,
    selfie_storage_id: str | None = None,
    id_storage_id: str | None = None,
) -> User:
    """Submit verification images and move the user to ``pending`` review.

    Raises:
        UnauthorizedError: If the principal is onboarding someone else.
    """
    if principal.subject_id != subject_id:
        raise UnauthorizedError("Unauthorized onboarding attempt")

    user = await get_user_by_subject(db, subject_id)
    if user is None:
        # The provider's webhook has not arrived yet
        user = User(
            subject_id=subject_id,
            email=principal.email or "unknown",
            name=principal.name or "Unknown User",
            pseudonym=generate_pseudonym(subject_id),
            is_approved=False,
            is_banned=False,
            role=Role.USER,
            created_at=datetime.now(UTC),
        )
        db.add(user)

    user.has_completed_onboarding = True
    user.verification_status = VerificationStatus.PENDING
    user.selfie_storage_id = selfie_storage_id
    user.id_storage_id = id_storage_id
    await db.flush()
    await db.refresh(user)
    return user


async def set_approval(
    db: AsyncSession,
    storage: StorageClient | None,
    principal: Principal,
    target_id: int,
    approved: bool,
) -> User:
    """Approve or deny a user's verification (admin only).

    Denial keeps the record with status ``rejected`` but discards the
    verification images.
    """
    require_admin(principal)
    user = await get_user(db, target_id)

    user.is_approved = approved
    if approved:
        user.verification_status = VerificationStatus.APPROVED
    else:
        user.verification_status = VerificationStatus.REJECTED
        if storage is not None:
            images = Cascade(f"discard_verification:{target_id}")
            for storage_id in user.verification_storage_ids:
                images.best_effort(f"delete_image:{storage_id}", _deleter(storage, storage_id))
            await images.run()
        user.selfie_storage_id = None
        user.id_storage_id = None

    await db.flush()
    await record_action(
        db,
        principal.subject_id,
        AdminActionType.APPROVE_USER if approved else AdminActionType.DENY_USER,
        target_user_id=target_id,
    )
    return user


async def set_banned(
    db: AsyncSession,
    principal: Principal,
    target_id: int,
    banned: bool,
) -> User:
    """Ban or unban a user (admin only). Existing content is left in place."""
    require_admin(principal)
    user = await get_user(db, target_id)

    user.is_banned = banned
    await db.flush()
    await record_action(
        db,
        principal.subject_id,
        AdminActionType.BAN_USER if banned else AdminActionType.UNBAN_USER,
        target_user_id=target_id,
    )
    return user


def _deleter(storage: StorageClient, storage_id: str):
    return lambda: storage.delete_object(storage_id)


async def build_user_wipe(
    db: AsyncSession,
    storage: StorageClient | None,
    user: User,
    identity: IdentityProviderClient | None = None,
) -> Cascade:
    """Plan the removal of a user and everything they own.

    Order: stored images, comments, ballots, posts, the record itself and
    finally (when ``identity`` is given) the identity provider account.
    """
    user_id = user.id
    subject_id = user.subject_id
    cascade = Cascade(f"wipe_user:{user_id}")

    # Without storage the images stay behind; the records still go
    storage_ids = user.verification_storage_ids if storage is not None else []
    for storage_id in storage_ids:
        cascade.best_effort(
            f"delete_verification_image:{storage_id}", _deleter(storage, storage_id)
        )

    result = await db.execute(select(Post.id, Post.file_id).where(Post.user_id == user_id))
    posts = result.all()
    post_ids = [post_id for post_id, _ in posts]
    for post_id, file_id in posts:
        if storage is not None and file_id:
            cascade.best_effort(f"delete_post_image:{post_id}", _deleter(storage, file_id))

    async def delete_own_comments() -> None:
        await db.execute(delete(Comment).where(Comment.user_id == user_id))

    async def delete_comments_on_posts() -> None:
        if post_ids:
            await db.execute(delete(Comment).where(Comment.post_id.in_(post_ids)))

    async def retract_ballots() -> None:
        await retract_all_ballots(db, user_id)

    async def delete_ballots_on_posts() -> None:
        if post_ids:
            await db.execute(delete(PostVote).where(PostVote.post_id.in_(post_ids)))

    async def delete_posts() -> None:
        await db.execute(delete(Post).where(Post.user_id == user_id))

    async def delete_record() -> None:
        await db.delete(user)
        await db.flush()

    cascade.add("delete_comments", delete_own_comments)
    cascade.add("delete_comments_on_posts", delete_comments_on_posts)
    cascade.add("retract_ballots", retract_ballots)
    cascade.add("delete_ballots_on_posts", delete_ballots_on_posts)
    cascade.add("delete_posts", delete_posts)
    cascade.add("delete_user", delete_record)

    if identity is not None:
        cascade.add("delete_identity", lambda: identity.delete_user(subject_id))

    return cascade


async def wipe(
    db: AsyncSession,
    storage: StorageClient | None,
    identity: IdentityProviderClient | None,
    principal: Principal,
    target_id: int,
) -> CascadeReport:
    """Delete a user with all their content.

    Allowed for admins and for users deleting their own record.

    Raises:
        UnauthorizedError: If a non-admin targets another user.
        RecordNotFoundError: If the target does not exist.
        CascadeError: If a required step failed.
    """
    if not principal.is_admin and principal.user_id != target_id:
        raise UnauthorizedError("You can only delete your own account")

    user = await get_user(db, target_id)

    if principal.user_id != target_id:
        await record_action(
            db, principal.subject_id, AdminActionType.DELETE_USER, target_user_id=target_id
        )

    cascade = await build_user_wipe(db, storage, user, identity)
    return await cascade.execute()


async def reject_and_delete(
    db: AsyncSession,
    storage: StorageClient | None,
    identity: IdentityProviderClient | None,
    principal: Principal,
    target_id: int,
) -> CascadeReport:
    """Reject a user's verification and wipe them in one step (admin only).

    Only ``reject_user`` is audited; the wipe it triggers is not recorded
    again as ``delete_user``.
    """
    require_admin(principal)
    user = await get_user(db, target_id)

    await record_action(
        db, principal.subject_id, AdminActionType.REJECT_USER, target_user_id=target_id
    )
    cascade = await build_user_wipe(db, storage, user, identity)
    return await cascade.execute()


async def remove_from_identity_event(
    db: AsyncSession,
    storage: StorageClient | None,
    subject_id: str,
) -> CascadeReport | None:
    """Mirror a provider-side deletion.

    The provider account is already gone, so it is not called back. Returns
    None when there was nothing to remove (events may be redelivered).
    """
    user = await get_user_by_subject(db, subject_id)
    if user is None:
        logger.info("No directory record for deleted subject %s", subject_id)
        return None

    cascade = await build_user_wipe(db, storage, user)
    return await cascade.execute()


async def list_users_for_review(
    db: AsyncSession,
    storage: StorageClient | None,
    principal: Principal,
    status: str | None = None,
) -> list[ReviewUserResponse]:
    """All users, newest first, with resolved verification image URLs (admin only).

    ``status`` filters by verification status; ``pending_review`` selects
    users still awaiting a decision (``none`` or ``pending``).
    """
    require_admin(principal)

    query = select(User).order_by(User.created_at.desc(), User.id.desc())
    if status == PENDING_REVIEW:
        query = query.where(
            User.verification_status.in_([VerificationStatus.NONE, VerificationStatus.PENDING])
        )
    elif status:
        query = query.where(User.verification_status == status)

    result = await db.execute(query)
    return [
        ReviewUserResponse(
            id=user.id,
            subject_id=user.subject_id,
            name=user.name,
            pseudonym=user.pseudonym,
            email=user.email,
            selfie_url=await resolve_url(storage, user.selfie_storage_id),
            id_url=await resolve_url(storage, user.id_storage_id),
            is_approved=user.is_approved,
            is_banned=user.is_banned,
            verification_status=user.verification_status or VerificationStatus.NONE,
            created_at=user.created_at,
        )
        for user in result.scalars().all()
    ]


async def user_stats(db: AsyncSession, user_id: int) -> UserStatsResponse:
    """Post count, flags received and comments written by a user."""
    await get_user(db, user_id)

    post_result = await db.execute(
        select(
            func.count(Post.id),
            func.coalesce(func.sum(Post.green_count), 0),
            func.coalesce(func.sum(Post.red_count), 0),
        ).where(Post.user_id == user_id)
    )
    post_count, green, red = post_result.one()

    comment_result = await db.execute(
        select(func.count(Comment.id)).where(Comment.user_id == user_id)
    )

    return UserStatsResponse(
        user_id=user_id,
        post_count=post_count,
        green_flags=green,
        red_flags=red,
        comment_count=comment_result.scalar_one(),
    )
