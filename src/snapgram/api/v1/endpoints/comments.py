"""Comment endpoints for the Snapgram API."""

from fastapi import APIRouter, Query

from snapgram.api.v1.dependencies import IdentityDep, StoreDep
from snapgram.schemas.comment import (
    CommentCreate,
    CommentDelete,
    CommentThreadResponse,
    CreateCommentResponse,
)
from snapgram.schemas.common import SuccessResponse
from snapgram.services import comment_service

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("", response_model=CommentThreadResponse)
async def list_comments(
    store: StoreDep,
    post_id: int = Query(..., description="Post whose comments to return"),
) -> CommentThreadResponse:
    """Return a post's comments as root comments with nested replies."""
    return comment_service.list_thread(store, post_id)


@router.post("", response_model=CreateCommentResponse)
async def create_comment(
    payload: CommentCreate,
    store: StoreDep,
    identity: IdentityDep,
) -> CreateCommentResponse:
    """Add a root comment, or a reply when ``parent_id`` is given."""
    comment = comment_service.create_comment(
        store,
        actor=identity,
        post_id=payload.post_id,
        content=payload.content,
        parent_id=payload.parent_id,
    )
    return CreateCommentResponse(comment=comment)


@router.delete("", response_model=SuccessResponse)
async def delete_comment(
    payload: CommentDelete,
    store: StoreDep,
    identity: IdentityDep,
) -> SuccessResponse:
    """Delete one of the caller's comments and its replies."""
    comment_service.delete_comment(store, actor=identity, comment_id=payload.comment_id)
    return SuccessResponse()
