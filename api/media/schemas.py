"""
Media metadata schemas.

Only metadata rows live here; the bytes themselves sit in object storage
under `bucket_name`/`object_key`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.enums import FileType, FileTypeField
from core.pagination import PageParams
from core.schemas import PartialUpdate, reject_null


class Media(BaseModel):
    id: UUID
    file_name: str
    object_key: str
    bucket_name: str
    cdn_url: str | None = None
    file_type: FileTypeField
    mime_type: str
    file_size: int
    dimensions: Any = None
    variants: Any = None
    alt_text: str | None = None
    checksum: str | None = None
    created_at: datetime


class CreateMediaRequest(BaseModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    object_key: str = Field(..., min_length=1, max_length=1000)
    bucket_name: str = Field(..., min_length=1, max_length=255)
    cdn_url: str | None = Field(default=None, max_length=1000)
    file_type: FileTypeField
    mime_type: str = Field(..., min_length=1, max_length=100)
    file_size: int = Field(..., gt=0)
    dimensions: Any = None
    variants: Any = None
    alt_text: str | None = Field(default=None, max_length=500)
    checksum: str | None = Field(default=None, max_length=64)


class UpdateMediaRequest(PartialUpdate):
    file_name: str | None = Field(default=None, min_length=1, max_length=255)
    cdn_url: str | None = Field(default=None, max_length=1000)
    dimensions: Any = None
    variants: Any = None
    alt_text: str | None = Field(default=None, max_length=500)

    @field_validator("file_name")
    @classmethod
    def _not_null(cls, value: str | None) -> str | None:
        return reject_null(value)


@dataclass(frozen=True)
class MediaFilter:
    file_type: FileType | None = None
    search: str | None = None
    page: PageParams = field(default_factory=PageParams)
