"""
Contact form submission schemas.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from ipaddress import IPv4Address, IPv6Address
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.enums import ContactStatus, ContactStatusField
from core.pagination import PageParams
from core.schemas import PartialUpdate, reject_null


class ContactSubmission(BaseModel):
    id: UUID
    name: str
    email: str
    phone: str | None = None
    subject: str | None = None
    message: str
    status: ContactStatusField
    ip_address: IPv4Address | IPv6Address | None = None
    user_agent: str | None = None
    metadata: Any = None
    read_at: datetime | None = None
    created_at: datetime


class CreateContactRequest(BaseModel):
    """Caller address and user agent are taken from the request, not the body."""

    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(default=None, max_length=50)
    subject: str | None = Field(default=None, max_length=500)
    message: str = Field(..., min_length=1)
    metadata: Any = None


class UpdateContactRequest(PartialUpdate):
    status: ContactStatusField | None = None

    @field_validator("status")
    @classmethod
    def _not_null(cls, value: ContactStatus | None) -> ContactStatus | None:
        return reject_null(value)


class UnreadCount(BaseModel):
    unread_count: int


@dataclass(frozen=True)
class ContactFilter:
    status: ContactStatus | None = None
    email: str | None = None
    page: PageParams = field(default_factory=PageParams)
