"""
Base classes for request schemas.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic_core import PydanticCustomError


def reject_null(value: Any) -> Any:
    """Field validator for NOT NULL columns in partial updates."""
    if value is None:
        raise ValueError("Value may not be null")
    return value


class PartialUpdate(BaseModel):
    """
    A partial update request.

    Only fields that were present in the request body are written: an absent
    field leaves the column unchanged, an explicit null writes NULL (where the
    column allows it).
    """

    model_config = ConfigDict(extra="ignore")

    def changes(self, *, exclude: set[str] | frozenset[str] = frozenset()) -> dict[str, Any]:
        """Present fields in declaration order, as {column: value}."""
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name in self.model_fields_set and name not in exclude
        }


def require_non_nil(value: UUID | None) -> UUID | None:
    """
    Field validator for required references: the all-zero UUID counts as missing.
    """
    if value is not None and value.int == 0:
        raise PydanticCustomError("missing", "Field required")
    return value
