"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from snapgram.repositories.records import UserRecord, UserStats


class UserOut(BaseModel):
    """Public view of a user embedded in posts and comments."""

    id: int
    external_identity_id: str
    display_name: str
    created_at: datetime

    @classmethod
    def from_record(cls, record: UserRecord | None) -> UserOut | None:
        """Build the schema from a store record, passing ``None`` through."""
        if record is None:
            return None
        return cls(
            id=record.id,
            external_identity_id=record.external_identity_id,
            display_name=record.display_name,
            created_at=record.created_at,
        )


class UserStatsOut(BaseModel):
    """User with derived post and follow counts."""

    user_id: int
    external_identity_id: str
    display_name: str
    posts_count: int = 0
    followers_count: int = 0
    following_count: int = 0

    @classmethod
    def from_stats(cls, stats: UserStats) -> UserStatsOut:
        """Build the schema from a store ``UserStats`` record."""
        return cls(
            user_id=stats.user.id,
            external_identity_id=stats.user.external_identity_id,
            display_name=stats.user.display_name,
            posts_count=stats.posts_count,
            followers_count=stats.followers_count,
            following_count=stats.following_count,
        )


class ProfileResponse(BaseModel):
    """Response schema for ``GET /users/{user_ref}``."""

    user: UserStatsOut
    is_following: bool = Field(False, alias="isFollowing")
    is_own_profile: bool = Field(False, alias="isOwnProfile")

    model_config = ConfigDict(populate_by_name=True)
