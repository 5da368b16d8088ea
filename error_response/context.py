"""Framework-agnostic error response context and its default JSON rendering."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import replace
from typing import Protocol
from typing import runtime_checkable

from fastapi import status
from fastapi.responses import JSONResponse

from error_response.schemas.error import ErrorObject
from error_response.schemas.error import ErrorResponse

DEFAULT_STATUS_CODE = status.HTTP_500_INTERNAL_SERVER_ERROR
DEFAULT_CODE = "UNKNOWN_ERROR"
DEFAULT_MESSAGE = "An error occurred"

_MAX_STATUS_CODE = 0xFFFF


def _check_status_code(status_code: int | None) -> int | None:
    if status_code is None:
        return None
    if isinstance(status_code, bool) or not isinstance(status_code, int):
        raise ValueError(f"status_code must be an integer, got {status_code!r}")
    if not 0 <= status_code <= _MAX_STATUS_CODE:
        raise ValueError(f"status_code must fit in 16 bits, got {status_code}")
    return status_code


def _check_text(field: str, value: str | None) -> str | None:
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{field} must be a string, got {value!r}")
    return value


def _wire_text(text: str) -> str:
    # Lone surrogates cannot be encoded as UTF-8; they become U+FFFD.
    return text.encode("utf-8", "surrogatepass").decode("utf-8", "replace")


@dataclass(frozen=True)
class ResponseContext:
    """Status code, error code and message an error resolves to.

    Every field is optional. Missing values are only filled in when the
    context is rendered, so a custom renderer can tell what was set.
    """

    status_code: int | None = None
    code: str | None = None
    message: str | None = None

    def __post_init__(self) -> None:
        _check_status_code(self.status_code)
        _check_text("code", self.code)
        _check_text("message", self.message)

    @classmethod
    def builder(cls) -> ResponseContextBuilder:
        """Start building a context with chained setters."""
        return ResponseContextBuilder()

    def with_status_code(self, status_code: int) -> ResponseContext:
        return replace(self, status_code=status_code)

    def with_code(self, code: str) -> ResponseContext:
        return replace(self, code=code)

    def with_message(self, message: str) -> ResponseContext:
        return replace(self, message=message)

    @property
    def effective_status_code(self) -> int:
        return DEFAULT_STATUS_CODE if self.status_code is None else self.status_code

    @property
    def effective_code(self) -> str:
        return DEFAULT_CODE if self.code is None else self.code

    @property
    def effective_message(self) -> str:
        return DEFAULT_MESSAGE if self.message is None else self.message

    def to_envelope(self) -> ErrorResponse:
        """Return the JSON envelope with defaults applied."""
        return ErrorResponse(
            error=ErrorObject(code=_wire_text(self.effective_code), message=_wire_text(self.effective_message)),
        )

    def into_response(self) -> JSONResponse:
        """Render the default `{"result": null, "error": {...}}` response."""
        return render_error_response(self)


class ResponseContextBuilder:
    """Fluent builder producing an immutable `ResponseContext`."""

    def __init__(self) -> None:
        self._status_code: int | None = None
        self._code: str | None = None
        self._message: str | None = None

    def status_code(self, status_code: int) -> ResponseContextBuilder:
        self._status_code = _check_status_code(status_code)
        return self

    def code(self, code: str) -> ResponseContextBuilder:
        self._code = _check_text("code", code)
        return self

    def message(self, message: str) -> ResponseContextBuilder:
        self._message = _check_text("message", message)
        return self

    def build(self) -> ResponseContext:
        return ResponseContext(status_code=self._status_code, code=self._code, message=self._message)


@runtime_checkable
class IntoResponseContext(Protocol):
    """Capability of values that can describe themselves as a `ResponseContext`."""

    def into_response_context(self) -> ResponseContext: ...


def render_error_response(context: ResponseContext) -> JSONResponse:
    """Default renderer: JSON error envelope with the context's status code."""
    payload = context.to_envelope()
    return JSONResponse(status_code=context.effective_status_code, content=payload.model_dump())
