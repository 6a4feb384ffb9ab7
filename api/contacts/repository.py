"""
Contact submission persistence (raw SQL).
"""

from __future__ import annotations

from ipaddress import IPv4Address, IPv6Address
from uuid import UUID, uuid4

from core.db import Database
from core.enums import ContactStatus
from core.errors import NotFoundError, StorageError, storage_errors
from core.pagination import Page
from core.query import Conditions, db_value, order_by, set_clause

from .schemas import ContactFilter, ContactSubmission, CreateContactRequest, UpdateContactRequest

COLUMNS = (
    "id, name, email, phone, subject, message, status, ip_address, "
    "user_agent, metadata, read_at, created_at"
)

SORTABLE = {
    "name": "name",
    "email": "email",
    "status": "status",
    "read_at": "read_at",
    "created_at": "created_at",
}
DEFAULT_ORDER = "created_at DESC"

NOT_FOUND = "Contact submission not found"


class ContactRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def create(
        self,
        request: CreateContactRequest,
        *,
        ip_address: IPv4Address | IPv6Address | None = None,
        user_agent: str | None = None,
    ) -> ContactSubmission:
        with storage_errors("create contact submission"):
            row = await self._db.fetch_one(
                f"""
                INSERT INTO contact_submissions (
                    id, name, email, phone, subject, message, status,
                    ip_address, user_agent, metadata
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING {COLUMNS}
                """,
                uuid4(),
                request.name,
                request.email,
                request.phone,
                request.subject,
                request.message,
                db_value(ContactStatus.NEW),
                ip_address,
                user_agent,
                request.metadata,
            )
        if row is None:
            raise StorageError("Failed to create contact submission")
        return ContactSubmission.model_validate(row)

    async def get_by_id(self, contact_id: UUID) -> ContactSubmission:
        with storage_errors("get contact submission"):
            row = await self._db.fetch_one(
                f"SELECT {COLUMNS} FROM contact_submissions WHERE id = $1",
                contact_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return ContactSubmission.model_validate(row)

    async def list(self, contact_filter: ContactFilter) -> Page[ContactSubmission]:
        conditions = (
            Conditions()
            .equals("status", contact_filter.status)
            .contains(("email",), contact_filter.email)
        )
        order = order_by(contact_filter.page, SORTABLE, DEFAULT_ORDER)
        args, limit, offset = conditions.paged_args(contact_filter.page)

        with storage_errors("list contact submissions"):
            total = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM contact_submissions {conditions.where}",
                *conditions.args,
            )
            rows = await self._db.fetch_all(
                f"""
                SELECT {COLUMNS}
                FROM contact_submissions
                {conditions.where}
                ORDER BY {order}
                LIMIT {limit} OFFSET {offset}
                """,
                *args,
            )
        return Page.of(
            [ContactSubmission.model_validate(r) for r in rows],
            int(total or 0),
            contact_filter.page,
        )

    async def update(self, contact_id: UUID, request: UpdateContactRequest) -> ContactSubmission:
        changes = request.changes()
        if not changes:
            return await self.get_by_id(contact_id)

        assignments, args = set_clause(changes)
        if changes.get("status") == ContactStatus.READ:
            assignments += ", read_at = now()"

        with storage_errors("update contact submission"):
            row = await self._db.fetch_one(
                f"""
                UPDATE contact_submissions
                SET {assignments}
                WHERE id = ${len(args) + 1}
                RETURNING {COLUMNS}
                """,
                *args,
                contact_id,
            )
        if row is None:
            raise NotFoundError(NOT_FOUND)
        return ContactSubmission.model_validate(row)

    async def delete(self, contact_id: UUID) -> None:
        with storage_errors("delete contact submission"):
            deleted = await self._db.execute("DELETE FROM contact_submissions WHERE id = $1", contact_id)
        if deleted == 0:
            raise NotFoundError(NOT_FOUND)

    async def count_unread(self) -> int:
        with storage_errors("count unread contact submissions"):
            total = await self._db.fetch_value(
                "SELECT COUNT(*) FROM contact_submissions WHERE status = $1",
                db_value(ContactStatus.NEW),
            )
        return int(total or 0)
