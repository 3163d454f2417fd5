"""Comment-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from snapgram.repositories.records import CommentRecord, UserRecord
from snapgram.schemas.user import UserOut


class CommentOut(BaseModel):
    """A comment with its resolved author (``None`` if the author is missing)."""

    id: int
    post_id: int
    user_id: int
    parent_id: int | None = None
    content: str
    created_at: datetime
    updated_at: datetime
    user: UserOut | None = None

    @classmethod
    def from_record(cls, record: CommentRecord, author: UserRecord | None) -> CommentOut:
        """Join a comment record with its author record."""
        return cls(
            id=record.id,
            post_id=record.post_id,
            user_id=record.author_id,
            parent_id=record.parent_id,
            content=record.content,
            created_at=record.created_at,
            updated_at=record.updated_at,
            user=UserOut.from_record(author),
        )


class RootCommentOut(CommentOut):
    """Root comment carrying its direct replies in reading order."""

    replies: list[CommentOut] = Field(default_factory=list)
    replies_count: int = 0


class CommentCreate(BaseModel):
    """Schema for creating a comment or a reply."""

    post_id: int = Field(..., description="Post being commented on")
    content: str = Field(..., description="Comment body")
    parent_id: int | None = Field(None, description="Root comment being replied to")


class CommentDelete(BaseModel):
    """Schema for deleting a comment."""

    comment_id: int


class CreateCommentResponse(BaseModel):
    """Response returned after a comment is stored."""

    success: bool = True
    comment: CommentOut


class CommentThreadResponse(BaseModel):
    """Threaded comments of a single post."""

    success: bool = True
    data: list[RootCommentOut] = Field(default_factory=list)
    total_count: int = 0
    root_count: int = 0
