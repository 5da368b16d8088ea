"""FastAPI exception handler registration for derived error types."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI
from fastapi import Request
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from error_response.context import ResponseContext
from error_response.derivation.union import ErrorUnion

logger = logging.getLogger(__name__)


def _http_error_code(status_code: int) -> str:
    if status_code == status.HTTP_404_NOT_FOUND:
        return "NOT_FOUND"
    if status_code == status.HTTP_401_UNAUTHORIZED:
        return "UNAUTHORIZED"
    if status_code == status.HTTP_403_FORBIDDEN:
        return "FORBIDDEN"
    if status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return "METHOD_NOT_ALLOWED"
    if status_code == status.HTTP_409_CONFLICT:
        return "CONFLICT"
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        return "INTERNAL_SERVER_ERROR"
    return "BAD_REQUEST"


_LOCATION_SOURCES = frozenset({"body", "query", "path", "header", "cookie"})


def _field_path(location: tuple[Any, ...] | list[Any] | Any) -> str:
    """Render a validation `loc` as `items[0].name`, without its request source."""
    if not isinstance(location, (tuple, list)):
        return str(location)
    parts = list(location)
    if len(parts) > 1 and parts[0] in _LOCATION_SOURCES:
        parts = parts[1:]
    if not parts:
        return "request"

    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _validation_message(exc: RequestValidationError) -> str:
    issues: list[str] = []
    for issue in exc.errors():
        field = _field_path(issue.get("loc", ()))
        issues.append(f"{field}: {issue.get('msg', 'Invalid value')}")
    if not issues:
        return "Request validation failed"
    return "Request validation failed: " + "; ".join(issues)


async def error_union_handler(_: Request, exc: ErrorUnion) -> Any:
    """Render a derived error type through its own response mapping."""

    return exc.into_response()


async def request_validation_exception_handler(_: Request, exc: RequestValidationError) -> Response:
    """Normalize FastAPI validation errors to the error envelope."""

    context = ResponseContext(
        status_code=status.HTTP_400_BAD_REQUEST,
        code="VALIDATION_ERROR",
        message=_validation_message(exc),
    )
    return context.into_response()


async def http_exception_handler(_: Request, exc: StarletteHTTPException) -> Response:
    """Normalize HTTP exceptions to the error envelope."""

    message = str(exc.detail) if isinstance(exc.detail, str) and exc.detail else None
    context = ResponseContext(
        status_code=exc.status_code,
        code=_http_error_code(exc.status_code),
        message=message,
    )
    return context.into_response()


async def unhandled_exception_handler(_: Request, exc: Exception) -> Response:
    """Avoid leaking internal exceptions while keeping the response shape stable."""

    logger.exception("Unhandled exception while serving request", exc_info=exc)
    return ResponseContext().into_response()


def register_error_handlers(app: FastAPI, *, catch_unhandled: bool = True) -> None:
    """Attach error handlers for derived error types to a FastAPI app."""

    app.add_exception_handler(ErrorUnion, error_union_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    if catch_unhandled:
        app.add_exception_handler(Exception, unhandled_exception_handler)
