"""
Key-value site settings schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from core.pagination import PageParams
from core.schemas import PartialUpdate


class Setting(BaseModel):
    id: UUID
    key: str
    value: str | None = None
    description: str | None = None
    updated_at: datetime


class CreateSettingRequest(BaseModel):
    key: str = Field(..., min_length=1, max_length=100)
    value: str | None = None
    description: str | None = None


class UpsertSettingRequest(CreateSettingRequest):
    pass


class UpdateSettingRequest(PartialUpdate):
    value: str | None = None
    description: str | None = None


class BulkSettingsRequest(BaseModel):
    keys: list[str]


@dataclass(frozen=True)
class SettingFilter:
    search: str | None = None
    page: PageParams = field(default_factory=PageParams)
