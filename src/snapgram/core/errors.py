"""Error taxonomy shared by the service and API layers.

Every error carries the HTTP status it maps to and a message that is safe to
show to the client. Storage-level failures are wrapped in
:class:`UpstreamFailureError` before they leave the service layer so raw
driver text never reaches a response body.
"""

from __future__ import annotations


class SnapgramError(RuntimeError):
    """Base exception for failures surfaced to API callers."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(SnapgramError):
    """Raised when a mutation is attempted without an actor identity."""

    status_code = 401
    default_message = "login required."


class ValidationFailedError(SnapgramError):
    """Raised for missing, oversized or mistyped input."""

    status_code = 400
    default_message = "Invalid request."


class NotFoundError(SnapgramError):
    """Raised when a referenced post, comment or user does not exist."""

    status_code = 404
    default_message = "Resource not found."


class ForbiddenError(SnapgramError):
    """Raised when the actor does not own the resource being removed."""

    status_code = 403
    default_message = "You do not have permission to perform this action."


class UpstreamFailureError(SnapgramError):
    """Raised when persistence or storage fails unexpectedly."""

    status_code = 500
    default_message = "Internal server error"
