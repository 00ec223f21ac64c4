"""
Page bounds and the pagination block returned with every listing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from . import params
from .fields import DEFAULT_MAX_LIMIT


@dataclass(frozen=True)
class PageSpec:
    number: int
    size: int

    @property
    def skip(self) -> int:
        return (self.number - 1) * self.size


def normalize_page(
    raw: params.RawParams,
    *,
    default_limit: int,
    max_limit: int = DEFAULT_MAX_LIMIT,
    page_param: str = "page",
    limit_param: str = "limit",
) -> PageSpec:
    """
    Clamp page/limit instead of rejecting them: page >= 1, 1 <= limit <= max_limit.
    The page is also capped so that the skip offset fits a 64-bit integer.
    """
    size = max(1, min(max_limit, params.parse_int_or(params.first(raw, limit_param), default_limit)))
    number = max(1, params.parse_int_or(params.first(raw, page_param), 1))
    number = min(number, params.INT64_MAX // size)
    return PageSpec(number=number, size=size)


def total_pages(total_items: int, page_size: int) -> int:
    return -(-total_items // page_size) if total_items > 0 else 0


@dataclass(frozen=True)
class Pagination:
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int

    @classmethod
    def from_total(cls, total_items: int, page: PageSpec) -> "Pagination":
        return cls(
            current_page=page.number,
            total_pages=total_pages(total_items, page.size),
            total_items=total_items,
            items_per_page=page.size,
        )

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.current_page > 1

    @property
    def next_page(self) -> int | None:
        return self.current_page + 1 if self.has_next else None

    @property
    def prev_page(self) -> int | None:
        return self.current_page - 1 if self.has_prev else None

    def as_dict(self) -> dict[str, Any]:
        return {
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalItems": self.total_items,
            "itemsPerPage": self.items_per_page,
            "hasNext": self.has_next,
            "hasPrev": self.has_prev,
            "nextPage": self.next_page,
            "prevPage": self.prev_page,
        }
