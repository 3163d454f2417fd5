"""Like endpoints for the Snapgram API."""

from fastapi import APIRouter

from snapgram.api.v1.dependencies import IdentityDep, StoreDep
from snapgram.repositories import RelationKind
from snapgram.schemas.relations import LikeRequest, LikeResponse
from snapgram.services.interactions import InteractionToggler

router = APIRouter(prefix="/likes", tags=["likes"])


@router.post("", response_model=LikeResponse)
async def like_post(payload: LikeRequest, store: StoreDep, identity: IdentityDep) -> LikeResponse:
    """Like a post. Liking an already liked post succeeds with ``changed`` false."""
    result = InteractionToggler(store).add(RelationKind.LIKE, identity, payload.post_id)
    return LikeResponse(liked=result.new_state, changed=result.changed)


@router.delete("", response_model=LikeResponse)
async def unlike_post(payload: LikeRequest, store: StoreDep, identity: IdentityDep) -> LikeResponse:
    """Remove the caller's like from a post."""
    result = InteractionToggler(store).remove(RelationKind.LIKE, identity, payload.post_id)
    return LikeResponse(liked=result.new_state, changed=result.changed)
