"""Post and ballot ORM models."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from red_tea.database import Base

if TYPE_CHECKING:
    from red_tea.models.comment import Comment
    from red_tea.models.user import User


class VoteChoice(StrEnum):
    """A ballot is either a green flag or a red flag."""

    GREEN = "green"
    RED = "red"


class Post(Base):
    """Feedback about a dating contact (the subject), written by a user."""

    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("green_count >= 0", name="ck_post_green_count_non_negative"),
        CheckConstraint("red_count >= 0", name="ck_post_red_count_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    subject_name: Mapped[str] = mapped_column(String(255), default="")
    subject_age: Mapped[int] = mapped_column()
    subject_city: Mapped[str] = mapped_column(String(255), index=True)
    body: Mapped[str] = mapped_column(Text)
    file_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Derived from the post's ballots; only the vote tally writes these.
    green_count: Mapped[int] = mapped_column(default=0)
    red_count: Mapped[int] = mapped_column(default=0)
    report_count: Mapped[int] = mapped_column(default=0)
    is_reported: Mapped[bool] = mapped_column(default=False, index=True)
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow, index=True)

    # Relationships
    author: Mapped[User] = relationship(back_populates="posts")
    votes: Mapped[list[PostVote]] = relationship(
        back_populates="post", order_by="PostVote.id", passive_deletes="all"
    )
    comments: Mapped[list[Comment]] = relationship(back_populates="post", passive_deletes="all")


class PostVote(Base):
    """One voter's active choice on a post."""

    __tablename__ = "post_votes"
    __table_args__ = (
        UniqueConstraint("post_id", "voter_id", name="uq_post_vote_voter"),
        CheckConstraint("choice IN ('green', 'red')", name="ck_post_vote_choice_valid"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id", ondelete="CASCADE"), index=True)
    voter_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    choice: Mapped[str] = mapped_column(String(10))
    created_at: Mapped[datetime] = mapped_column(default=datetime.utcnow)

    # Relationships
    post: Mapped[Post] = relationship(back_populates="votes")
