from __future__ import annotations
import math
from dataclasses import dataclass
from fastapi import Query

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def page_params(
    page: int = Query(1, description="1-based page"),
    limit: int = Query(DEFAULT_LIMIT, description=f"page size (max {MAX_LIMIT})"),
) -> PageParams:
    # out of range values are clamped instead of rejected
    page = page if page >= 1 else 1
    limit = min(limit, MAX_LIMIT) if limit >= 1 else DEFAULT_LIMIT
    return PageParams(page=page, limit=limit)


def build_pagination_meta(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }
