"""Search-related Pydantic schemas."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from snapgram.schemas.post import PostOut
from snapgram.schemas.user import UserOut, UserStatsOut

SearchType = Literal["users", "posts", "all"]


class SearchPostOut(PostOut):
    """Post search hit with its author."""

    user: UserOut | None = None


class SearchResponse(BaseModel):
    """Response schema for ``GET /search``."""

    success: bool = True
    users: list[UserStatsOut] = Field(default_factory=list)
    posts: list[SearchPostOut] = Field(default_factory=list)
    users_count: int = 0
    posts_count: int = 0
