"""API endpoint modules for version 1."""

from .bookmarks import router as bookmarks_router
from .comments import router as comments_router
from .follows import router as follows_router
from .likes import router as likes_router
from .posts import router as posts_router
from .search import router as search_router
from .users import router as users_router

__all__ = [
    "posts_router",
    "comments_router",
    "likes_router",
    "follows_router",
    "bookmarks_router",
    "search_router",
    "users_router",
]
