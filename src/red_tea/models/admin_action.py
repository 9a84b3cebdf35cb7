"""Audit log ORM model."""

from datetime import datetime
from enum import StrEnum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from red_tea.database import Base

# Actor recorded when an ordinary user flags a post
USER_FLAGGED_ACTOR = "user_flagged"


class AdminActionType(StrEnum):
    """Tags written to the audit log."""

    APPROVE_USER = "approve_user"
    DENY_USER = "deny_user"
    BAN_USER = "ban_user"
    UNBAN_USER = "unban_user"
    DELETE_USER = "delete_user"
    REJECT_USER = "reject_user"
    DELETE_POST = "delete_post"
    REPORT_POST = "report_post"
    DISMISS_REPORT = "dismiss_report"


class AdminAction(Base):
    """Append-only audit entry.

    Targets are plain ids rather than foreign keys so entries outlive the
    records they point at.
    """

    __tablename__ = "admin_actions"

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_id: Mapped[str] = mapped_column(String(255), index=True)
    action_type: Mapped[str] = mapped_column(String(50), index=True)
    target_user_id: Mapped[int | None] = mapped_column(nullable=True)
    target_post_id: Mapped[int | None] = mapped_column(nullable=True)
    target_comment_id: Mapped[int | None] = mapped_column(nullable=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(default=datetime.utcnow)
