"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class SuccessResponse(BaseModel):
    """Envelope returned by mutations that carry no payload."""

    success: bool = Field(True, description="False only on error responses.")


class ErrorResponse(BaseModel):
    """Envelope returned for every failed request."""

    success: bool = False
    error: str = Field(..., description="Client-safe error message.")
