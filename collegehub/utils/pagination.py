"""Pagination helpers shared by list endpoints."""

import math
from typing import Tuple

from pydantic import BaseModel

from collegehub.config import settings


class Pagination(BaseModel):
    """Pagination block returned alongside every list response."""
    current: int
    pages: int
    total: int
    limit: int


def page_window(page: int, limit: int) -> Tuple[int, int]:
    """Clamp page/limit and return (skip, limit) for a Mongo cursor."""
    page = max(page, 1)
    limit = min(max(limit, 1), settings.max_page_size)
    return (page - 1) * limit, limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    _, limit = page_window(page, limit)
    return Pagination(
        current=max(page, 1),
        pages=math.ceil(total / limit) if total else 0,
        total=total,
        limit=limit,
    )


def sort_direction(sort_order: str) -> int:
    """Map 'asc'/'desc' to a Mongo sort direction (desc is the fallback)."""
    return 1 if sort_order == "asc" else -1
