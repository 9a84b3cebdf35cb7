"""User ORM model."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from red_tea.database import Base

if TYPE_CHECKING:
    from red_tea.models.comment import Comment
    from red_tea.models.post import Post


class Role(StrEnum):
    """Directory role of a user."""

    USER = "user"
    ADMIN = "admin"


class VerificationStatus(StrEnum):
    """Admin review state of a user's identity-proof submission."""

    NONE = "none"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class User(Base):
    """Directory record mirroring one identity-provider principal."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_user_role_valid"),
        CheckConstraint(
            "verification_status IN ('none', 'pending', 'approved', 'rejected')",
            name="ck_user_verification_status_valid",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    subject_id: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), default="")
    name: Mapped[str] = mapped_column(String(255), default="")
    pseudonym: Mapped[str] = mapped_column(String(100))
    selfie_storage_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    id_storage_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_approved: Mapped[bool] = mapped_column(default=False, index=True)
    is_banned: Mapped[bool] = mapped_column(default=False)
    has_completed_onboarding: Mapped[bool] = mapped_column(default=False)
    role: Mapped[str] = mapped_column(String(20), default=Role.USER)
    verification_status: Mapped[str] = mapped_column(
        String(20), default=VerificationStatus.NONE, index=True
    )
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    # Relationships (deletion is driven by the wipe cascade, not the ORM)
    posts: Mapped[list[Post]] = relationship(back_populates="author", passive_deletes="all")
    comments: Mapped[list[Comment]] = relationship(back_populates="author", passive_deletes="all")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def verification_storage_ids(self) -> list[str]:
        """Storage ids of the verification images currently attached."""
        return [sid for sid in (self.selfie_storage_id, self.id_storage_id) if sid]
