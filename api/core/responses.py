"""
Response envelope.

Every response body has the same shape:

    {"success": bool, "data": ..., "error": {...}, "meta": {...}}

`data` is present on success, `error` on failure and `meta` only on paged
lists.
"""

from __future__ import annotations

from typing import Any

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from .pagination import Page


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, str] | None = None


class PageMeta(BaseModel):
    page: int
    page_size: int
    total: int
    total_pages: int


class Envelope(BaseModel):
    """Documented shape of every response (used for OpenAPI only)."""

    success: bool
    data: Any = None
    error: ErrorBody | None = None
    meta: PageMeta | None = None


def ok(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "data": jsonable_encoder(data)},
    )


def created(data: Any) -> JSONResponse:
    return ok(data, status_code=status.HTTP_201_CREATED)


def no_content() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def paginated(page: Page[Any]) -> JSONResponse:
    meta = PageMeta(
        page=page.page,
        page_size=page.page_size,
        total=page.total,
        total_pages=page.total_pages,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content={
            "success": True,
            "data": jsonable_encoder(page.data),
            "meta": meta.model_dump(),
        },
    )


def error(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, str] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorBody(code=code, message=message, details=details)
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": body.model_dump(exclude_none=True)},
        headers=headers,
    )
