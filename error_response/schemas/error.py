"""Error envelope schemas rendered by the default response renderer."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorObject(BaseModel):
    """Canonical error payload object."""

    code: str
    message: str


class ErrorResponse(BaseModel):
    """Top-level error response envelope.

    `result` is always null; it keeps the envelope shape shared with
    successful responses.
    """

    result: None = None
    error: ErrorObject
