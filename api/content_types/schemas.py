"""
Content type schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.pagination import PageParams
from core.schemas import PartialUpdate, reject_null


class ContentType(BaseModel):
    id: UUID
    name: str
    slug: str
    # Opaque document describing the fields of this type.
    schema_fields: Any = None
    is_active: bool
    display_order: int
    created_at: datetime
    updated_at: datetime


class ContentTypeSummary(BaseModel):
    """Denormalized content type used in post list rows."""

    id: UUID
    name: str
    slug: str


class CreateContentTypeRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100)
    schema_fields: Any = None
    is_active: bool = True
    display_order: int = 0


class UpdateContentTypeRequest(PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=100)
    schema_fields: Any = None
    is_active: bool | None = None
    display_order: int | None = None

    @field_validator("name", "slug", "is_active", "display_order")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        return reject_null(value)


@dataclass(frozen=True)
class ContentTypeFilter:
    is_active: bool | None = None
    page: PageParams = field(default_factory=PageParams)
