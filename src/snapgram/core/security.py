"""Identity token helpers.

The identity provider is external: it issues a signed JWT whose ``sub`` claim
is the stable external identity id. This module only decodes those tokens
into an :class:`Identity`; it never reads ambient request state.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from jose import JWTError, jwt

from snapgram.core.settings import settings
from snapgram.db.time import utcnow


@dataclass(frozen=True)
class Identity:
    """Authenticated actor as supplied by the identity provider."""

    external_id: str
    display_name: str | None = None


class InvalidTokenError(ValueError):
    """Raised when a bearer token cannot be decoded into an identity."""


def decode_identity_token(token: str) -> Identity:
    """Decode a bearer token into an :class:`Identity`.

    Raises:
        InvalidTokenError: If the signature is invalid or ``sub`` is missing.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise InvalidTokenError("Could not validate credentials") from err

    subject = payload.get("sub")
    if not subject:
        raise InvalidTokenError("Could not validate credentials")
    name = payload.get("name")
    return Identity(external_id=str(subject), display_name=str(name) if name else None)


def create_identity_token(
    external_id: str,
    display_name: str | None = None,
    expires_in: timedelta = timedelta(hours=1),
) -> str:
    """Mint a token the way the identity provider would (tests and local tooling)."""
    claims: dict[str, object] = {
        "sub": external_id,
        "exp": utcnow() + expires_in,
    }
    if display_name:
        claims["name"] = display_name
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
