from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    data: list[T]
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    has_previous_page: bool
    has_next_page: bool

    @property
    def first_item(self) -> int:
        """1-based index of the first row shown, 0 when the page is empty."""

        if not self.data:
            return 0
        return (self.current_page - 1) * self.page_size + 1

    @property
    def last_item(self) -> int:
        return min(self.current_page * self.page_size, self.total_items)


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice ``items`` for a 1-based ``page``."""

    if page_size < 1:
        raise ValueError("page_size must be positive")
    page = max(page, 1)
    total_items = len(items)
    total_pages = math.ceil(total_items / page_size)
    start = (page - 1) * page_size
    data = list(items[start : start + page_size])
    return Page(
        data=data,
        current_page=page,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
        has_previous_page=page > 1,
        has_next_page=page < total_pages,
    )


def page_window(current_page: int, total_pages: int, size: int = 5) -> list[int]:
    """Page numbers for the pager buttons, centred on ``current_page`` where possible."""

    if total_pages <= size:
        return list(range(1, total_pages + 1))
    half = size // 2
    if current_page <= half + 1:
        first = 1
    elif current_page >= total_pages - half:
        first = total_pages - size + 1
    else:
        first = current_page - half
    return list(range(first, first + size))
