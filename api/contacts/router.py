"""
Contact submission API endpoints.
"""

from __future__ import annotations

import ipaddress
from ipaddress import IPv4Address, IPv6Address
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from core import responses
from core.db import Database
from core.dependencies import get_database
from core.enums import ContactStatus
from core.pagination import PageParams, page_params

from .repository import ContactRepository
from .schemas import ContactFilter, CreateContactRequest, UnreadCount, UpdateContactRequest

router = APIRouter(prefix="/contacts")


def get_repository(db: Database = Depends(get_database)) -> ContactRepository:
    return ContactRepository(db)


def client_ip(request: Request) -> IPv4Address | IPv6Address | None:
    """
    Best-effort caller address: first X-Forwarded-For hop, then X-Real-IP,
    then the socket peer. Anything unparsable is dropped.
    """
    candidates = []
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        candidates.append(forwarded.split(",")[0])
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        candidates.append(real_ip)
    if request.client is not None:
        candidates.append(request.client.host)

    for candidate in candidates:
        try:
            return ipaddress.ip_address(candidate.strip())
        except ValueError:
            continue
    return None


@router.get("")
async def list_contacts(
    params: PageParams = Depends(page_params),
    status: str | None = Query(default=None),
    email: str | None = Query(default=None),
    repo: ContactRepository = Depends(get_repository),
) -> JSONResponse:
    contact_filter = ContactFilter(
        status=ContactStatus.parse_or_none(status),
        email=email,
        page=params,
    )
    return responses.paginated(await repo.list(contact_filter))


@router.post("")
async def create_contact(
    body: CreateContactRequest,
    request: Request,
    repo: ContactRepository = Depends(get_repository),
) -> JSONResponse:
    submission = await repo.create(
        body,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent") or None,
    )
    return responses.created(submission)


@router.get("/unread-count")
async def unread_count(repo: ContactRepository = Depends(get_repository)) -> JSONResponse:
    return responses.ok(UnreadCount(unread_count=await repo.count_unread()))


@router.get("/{contact_id}")
async def get_contact(
    contact_id: UUID,
    repo: ContactRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.get_by_id(contact_id))


@router.put("/{contact_id}")
async def update_contact(
    contact_id: UUID,
    request: UpdateContactRequest,
    repo: ContactRepository = Depends(get_repository),
) -> JSONResponse:
    return responses.ok(await repo.update(contact_id, request))


@router.delete("/{contact_id}")
async def delete_contact(
    contact_id: UUID,
    repo: ContactRepository = Depends(get_repository),
) -> Response:
    await repo.delete(contact_id)
    return responses.no_content()
