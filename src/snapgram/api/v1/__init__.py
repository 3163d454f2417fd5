"""Version 1 API endpoints."""

from .endpoints import (
    bookmarks_router,
    comments_router,
    follows_router,
    likes_router,
    posts_router,
    search_router,
    users_router,
)

__all__ = [
    "posts_router",
    "comments_router",
    "likes_router",
    "follows_router",
    "bookmarks_router",
    "search_router",
    "users_router",
]
