"""SQLAlchemy ORM models."""

from red_tea.models.admin_action import AdminAction, AdminActionType
from red_tea.models.comment import Comment
from red_tea.models.post import Post, PostVote, VoteChoice
from red_tea.models.user import Role, User, VerificationStatus

__all__ = [
    "AdminAction",
    "AdminActionType",
    "Comment",
    "Post",
    "PostVote",
    "Role",
    "User",
    "VerificationStatus",
    "VoteChoice",
]
