"""
Error types shared by repositories and routers.

Repository errors are the only failures allowed to cross the repository
boundary: asyncpg exceptions are classified exactly once, inside
`storage_errors()`. API errors carry an HTTP status and envelope error code
and are raised by routers for input problems.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager

import asyncpg


class RepositoryError(Exception):
    """Base error for every repository failure."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class NotFoundError(RepositoryError):
    """Raised when the requested row does not exist."""


class DuplicateError(RepositoryError):
    """Raised when a write violates a unique constraint."""


class ForeignKeyViolationError(RepositoryError):
    """Raised when a write or delete violates referential integrity."""


class StorageError(RepositoryError):
    """Any other storage failure. The original exception is kept as `__cause__`."""


@contextmanager
def storage_errors(
    action: str,
    *,
    duplicate: str | None = None,
    foreign_key: str | None = None,
) -> Iterator[None]:
    """
    Translate asyncpg/driver errors raised inside the block into repository errors.

    `action` names the operation ("create post") and ends up in the message
    of a StorageError. `duplicate` and `foreign_key` are the client-facing
    messages for the two constraint kinds.
    """
    try:
        yield
    except RepositoryError:
        raise
    except asyncpg.exceptions.UniqueViolationError as exc:
        raise DuplicateError(duplicate or "Duplicate record") from exc
    except asyncpg.exceptions.ForeignKeyViolationError as exc:
        raise ForeignKeyViolationError(foreign_key or "Foreign key constraint violation") from exc
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
        raise StorageError(f"Failed to {action}") from exc


class APIError(Exception):
    """An error rendered directly into the response envelope."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: dict[str, str] | None = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self.message)


class BadRequestError(APIError):
    status_code = 400
    code = "BAD_REQUEST"


class ConflictError(APIError):
    status_code = 409
    code = "CONFLICT"


class ValidationFailedError(APIError):
    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, details: dict[str, str]) -> None:
        super().__init__("Validation failed", details=details)
