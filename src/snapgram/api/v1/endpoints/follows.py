"""Follow endpoints for the Snapgram API."""

from fastapi import APIRouter

from snapgram.api.v1.dependencies import IdentityDep, StoreDep
from snapgram.repositories import RelationKind
from snapgram.schemas.relations import FollowRequest, FollowResponse
from snapgram.services.interactions import InteractionToggler

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("", response_model=FollowResponse)
async def follow_user(
    payload: FollowRequest, store: StoreDep, identity: IdentityDep
) -> FollowResponse:
    """Follow another user. Following yourself is rejected."""
    result = InteractionToggler(store).add(RelationKind.FOLLOW, identity, payload.following_id)
    return FollowResponse(is_following=result.new_state, changed=result.changed)


@router.delete("", response_model=FollowResponse)
async def unfollow_user(
    payload: FollowRequest, store: StoreDep, identity: IdentityDep
) -> FollowResponse:
    """Stop following a user."""
    result = InteractionToggler(store).remove(RelationKind.FOLLOW, identity, payload.following_id)
    return FollowResponse(is_following=result.new_state, changed=result.changed)
