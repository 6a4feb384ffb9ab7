"""
Tag schemas (request/response models and list filter).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.pagination import PageParams
from core.schemas import PartialUpdate, reject_null


class Tag(BaseModel):
    id: UUID
    name: str
    slug: str
    created_at: datetime


class CreateTagRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100)


class UpdateTagRequest(PartialUpdate):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("name", "slug")
    @classmethod
    def _not_null(cls, value: str | None) -> str | None:
        return reject_null(value)


@dataclass(frozen=True)
class TagFilter:
    search: str | None = None
    page: PageParams = field(default_factory=PageParams)
