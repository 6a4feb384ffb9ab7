"""
Centralized error handlers.

Maps repository errors, API errors and framework errors onto the response
envelope. No stack traces or storage details are exposed to clients; they
are logged instead.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import responses
from .errors import (
    APIError,
    BadRequestError,
    DuplicateError,
    ForeignKeyViolationError,
    NotFoundError,
    RepositoryError,
    StorageError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

# pydantic error types that mean "required value missing".
_REQUIRED_ERROR_TYPES = {"missing", "string_too_short"}

_HTTP_ERROR_CODES = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    status.HTTP_409_CONFLICT: "CONFLICT",
}

_HTTP_ERROR_MESSAGES = {
    status.HTTP_404_NOT_FOUND: "Endpoint not found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "Method not allowed",
}


def _field_label(loc: tuple) -> str:
    parts = [str(p) for p in loc[1:] if not isinstance(p, int)]
    return ".".join(parts) or str(loc[-1])


def validation_details(errors: list[dict]) -> dict[str, str]:
    """Turn pydantic body errors into {field: message}, one entry per field."""
    details: dict[str, str] = {}
    for err in errors:
        field = _field_label(tuple(err.get("loc", ())))
        if field in details:
            continue
        if err.get("type") in _REQUIRED_ERROR_TYPES:
            details[field] = f"{field.replace('_', ' ').capitalize()} is required"
        else:
            details[field] = str(err.get("msg", "Invalid value"))
    return details


def _is_malformed_body(errors: list[dict]) -> bool:
    for err in errors:
        loc = tuple(err.get("loc", ()))
        if err.get("type") in {"json_invalid", "model_attributes_type", "dict_type", "model_type"}:
            return True
        if loc == ("body",):
            return True
    return False


def _classify_validation(errors: list[dict]) -> APIError:
    """
    Path/query problems and unreadable bodies are 400s; field-level body
    problems are 422s with one detail per field.
    """
    body_errors = [e for e in errors if tuple(e.get("loc", ()))[:1] == ("body",)]
    other_errors = [e for e in errors if e not in body_errors]

    if other_errors:
        loc = tuple(other_errors[0].get("loc", ()))
        name = str(loc[-1]) if loc else "parameter"
        return BadRequestError(f"Invalid {name}")
    if _is_malformed_body(body_errors):
        return BadRequestError("Invalid request body")
    return ValidationFailedError(validation_details(body_errors))


def _render(exc: APIError) -> JSONResponse:
    return responses.error(exc.status_code, exc.code, exc.message, exc.details)


def register_error_handlers(app: FastAPI) -> None:
    """Register all error handlers on the FastAPI application."""

    @app.exception_handler(APIError)
    async def handle_api_error(_request: Request, exc: APIError) -> JSONResponse:
        return _render(exc)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
        return responses.error(status.HTTP_404_NOT_FOUND, "NOT_FOUND", exc.message)

    @app.exception_handler(DuplicateError)
    async def handle_duplicate(_request: Request, exc: DuplicateError) -> JSONResponse:
        return responses.error(status.HTTP_409_CONFLICT, "CONFLICT", exc.message)

    @app.exception_handler(ForeignKeyViolationError)
    async def handle_foreign_key(_request: Request, exc: ForeignKeyViolationError) -> JSONResponse:
        # Deletes turn this into a 409 themselves; everywhere else it is bad input.
        return responses.error(status.HTTP_400_BAD_REQUEST, "BAD_REQUEST", exc.message)

    @app.exception_handler(StorageError)
    async def handle_storage(request: Request, exc: StorageError) -> JSONResponse:
        logger.error(
            "storage_error method=%s path=%s message=%s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc,
        )
        return responses.error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(RepositoryError)
    async def handle_repository(request: Request, exc: RepositoryError) -> JSONResponse:
        logger.error("repository_error path=%s message=%s", request.url.path, exc.message, exc_info=exc)
        return responses.error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return _render(_classify_validation(list(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        message = _HTTP_ERROR_MESSAGES.get(exc.status_code, str(exc.detail))
        return responses.error(exc.status_code, code, message, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unexpected errors. Never exposes internals."""
        logger.exception("Unexpected error: %s", type(exc).__name__)
        return responses.error(status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", INTERNAL_ERROR_MESSAGE)
