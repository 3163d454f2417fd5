"""User profile endpoints for the Snapgram API."""

from fastapi import APIRouter

from snapgram.api.v1.dependencies import StoreDep, ViewerDep
from snapgram.schemas.user import ProfileResponse
from snapgram.services.profile_service import get_profile

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_ref}", response_model=ProfileResponse)
async def get_user_profile(user_ref: str, store: StoreDep, viewer: ViewerDep) -> ProfileResponse:
    """Return a profile by internal id or external identity id."""
    return get_profile(store, user_ref, viewer)
