"""
Paging and sorting parameters shared by every list endpoint.

Raw query-string values are normalized here and never rejected: anything
missing, unparsable or out of range falls back to a default.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from fastapi import Query

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100
DEFAULT_SORT_DIR = "desc"
SORT_DIRECTIONS = ("asc", "desc")
# OFFSET is a BIGINT bind parameter.
MAX_OFFSET = 2**63 - 1

T = TypeVar("T")


def _to_int(raw: str | int | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def total_pages(total: int, page_size: int) -> int:
    """
    Number of pages needed for `total` rows; an empty result still has one page.
    """
    if page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    return max(1, math.ceil(max(total, 0) / page_size))


@dataclass(frozen=True)
class PageParams:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    sort_by: str | None = None
    sort_dir: str = DEFAULT_SORT_DIR

    @classmethod
    def from_query(
        cls,
        page: str | int | None = None,
        page_size: str | int | None = None,
        sort_by: str | None = None,
        sort_dir: str | None = None,
    ) -> PageParams:
        parsed_page = _to_int(page)
        if parsed_page is None or parsed_page < 1:
            parsed_page = DEFAULT_PAGE

        parsed_size = _to_int(page_size)
        if parsed_size is None or parsed_size < 1:
            parsed_size = DEFAULT_PAGE_SIZE
        elif parsed_size > MAX_PAGE_SIZE:
            parsed_size = MAX_PAGE_SIZE

        if (parsed_page - 1) * parsed_size > MAX_OFFSET:
            parsed_page = DEFAULT_PAGE

        direction = (sort_dir or "").strip().lower()
        if direction not in SORT_DIRECTIONS:
            direction = DEFAULT_SORT_DIR

        return cls(
            page=parsed_page,
            page_size=parsed_size,
            sort_by=(sort_by or "").strip() or None,
            sort_dir=direction,
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a list query plus the unpaged total."""

    data: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return total_pages(self.total, self.page_size)

    @classmethod
    def of(cls, data: list[T], total: int, params: PageParams) -> Page[T]:
        return cls(data=data, total=total, page=params.page, page_size=params.page_size)


def page_params(
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_dir: str | None = Query(default=None),
) -> PageParams:
    """FastAPI dependency: lenient paging/sorting parameters."""
    return PageParams.from_query(page=page, page_size=page_size, sort_by=sort_by, sort_dir=sort_dir)
