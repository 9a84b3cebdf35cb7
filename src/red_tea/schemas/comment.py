"""Pydantic schemas for comment endpoints."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class CommentCreate(BaseModel):
    """Schema for replying to a post."""

    content: str = Field(min_length=1, max_length=2000, description="Comment text")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject whitespace-only comments."""
        v = v.strip()
        if not v:
            msg = "Comment must not be blank"
            raise ValueError(msg)
        return v


class CommentResponse(BaseModel):
    """A comment with its author's pseudonym."""

    id: int = Field(description="Comment ID")
    post_id: int = Field(description="Post ID")
    user_id: int = Field(description="Author user ID")
    user_pseudonym: str = Field(description="Author's public alias")
    content: str = Field(description="Comment text")
    created_at: datetime = Field(description="When the comment was written")
