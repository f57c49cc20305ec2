"""Pagination helpers.

Pages are 1-based. Page sizes are bounded so a single request can never
pull an unbounded slice of a thread or campaign list.
"""
import math
from typing import Any, List, Optional, Sequence

from pydantic import BaseModel, Field

from .errors import ValidationError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Page(BaseModel):
    """A slice of results plus navigation metadata."""
    items: List[Any] = Field(default_factory=list)
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool


def _to_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{name} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def validate_pagination(page: Optional[Any] = None, page_size: Optional[Any] = None) -> tuple:
    """Parse and bound-check page parameters.

    Args:
        page: Requested page, defaults to 1. Accepts numeric strings.
        page_size: Items per page, defaults to 10. Accepts numeric strings.

    Returns:
        Tuple of (page, page_size) as ints

    Raises:
        ValidationError: If page < 1 or page_size outside 1..100
    """
    page = DEFAULT_PAGE if page is None else _to_int(page, "page")
    page_size = DEFAULT_PAGE_SIZE if page_size is None else _to_int(page_size, "page_size")

    if page < 1:
        raise ValidationError("page must be at least 1")
    if page_size < 1 or page_size > MAX_PAGE_SIZE:
        raise ValidationError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")

    return page, page_size


def build_page(items: Sequence[Any], total_items: int, page: int, page_size: int) -> Page:
    """Wrap an already-sliced sequence with pagination metadata."""
    total_pages = math.ceil(total_items / page_size) if total_items else 0
    return Page(
        items=list(items),
        current_page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1 and total_pages > 0
    )


def paginate(items: Sequence[Any], page: int, page_size: int) -> Page:
    """Slice an in-memory sequence by offset/limit."""
    offset = (page - 1) * page_size
    return build_page(items[offset:offset + page_size], len(items), page, page_size)
