"""Shared API dependencies for authentication and store access."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from snapgram.core.errors import UnauthenticatedError
from snapgram.core.security import Identity, InvalidTokenError, decode_identity_token
from snapgram.db.session import get_db
from snapgram.repositories import RelationStore, SqlRelationStore
from snapgram.repositories.records import UserRecord
from snapgram.services.storage import ObjectStorage, get_storage
from snapgram.services.user_service import resolve_viewer

# Missing credentials are handled per route, so the scheme must not reject them.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_store(db: SessionDep) -> RelationStore:
    """Return the relation store bound to the request's session."""
    return SqlRelationStore(db)


StoreDep = Annotated[RelationStore, Depends(get_store)]
StorageDep = Annotated[ObjectStorage, Depends(get_storage)]


def get_optional_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity | None:
    """Decode the bearer token if one was sent.

    An invalid token on a read path is treated like an anonymous request.
    """
    if credentials is None:
        return None
    try:
        return decode_identity_token(credentials.credentials)
    except InvalidTokenError:
        return None


def get_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> Identity:
    """Return the authenticated actor.

    Raises:
        UnauthenticatedError: If no valid bearer token was sent.
    """
    if credentials is None:
        raise UnauthenticatedError()
    try:
        return decode_identity_token(credentials.credentials)
    except InvalidTokenError as err:
        raise UnauthenticatedError() from err


OptionalIdentityDep = Annotated[Identity | None, Depends(get_optional_identity)]
IdentityDep = Annotated[Identity, Depends(get_identity)]


def get_viewer(store: StoreDep, identity: OptionalIdentityDep) -> UserRecord | None:
    """Return the local user behind the optional identity, without creating one."""
    return resolve_viewer(store, identity)


ViewerDep = Annotated[UserRecord | None, Depends(get_viewer)]
