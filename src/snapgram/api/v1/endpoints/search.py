"""Search endpoint for the Snapgram API."""

from fastapi import APIRouter, Query

from snapgram.api.v1.dependencies import StoreDep
from snapgram.schemas.search import SearchResponse, SearchType
from snapgram.services import search_service

router = APIRouter(prefix="/search", tags=["search"])


@router.get("", response_model=SearchResponse)
async def search(
    store: StoreDep,
    q: str | None = Query(None, description="Substring to look for"),
    kind: SearchType = Query("all", alias="type", description="users, posts or all"),
    limit: int = Query(10, ge=1, description="Maximum results per kind"),
    offset: int = Query(0, ge=0),
) -> SearchResponse:
    """Search users by display name and posts by caption. No login required."""
    return search_service.search(store, q, kind=kind, limit=limit, offset=offset)
