"""Append-only audit log writer."""

import logging
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from red_tea.models.admin_action import AdminAction, AdminActionType

logger = logging.getLogger(__name__)


async def record_action(
    db: AsyncSession,
    actor_id: str,
    action_type: AdminActionType,
    *,
    target_user_id: int | None = None,
    target_post_id: int | None = None,
    target_comment_id: int | None = None,
    reason: str | None = None,
) -> AdminAction:
    """Write one audit entry in the caller's transaction."""
    action = AdminAction(
        actor_id=actor_id,
        action_type=action_type,
        target_user_id=target_user_id,
        target_post_id=target_post_id,
        target_comment_id=target_comment_id,
        reason=reason,
        timestamp=datetime.now(UTC),
    )
    db.add(action)
    await db.flush()

    logger.info(
        "Audit %s by %s (user=%s post=%s comment=%s)",
        action_type,
        actor_id,
        target_user_id,
        target_post_id,
        target_comment_id,
    )
    return action
