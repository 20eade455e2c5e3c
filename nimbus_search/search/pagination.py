"""Page slicing and page-count arithmetic for result buffers."""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 50


def total_pages(count: int, page_size: int) -> int:
    """Number of pages needed for ``count`` items; 0 when there are none."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    if count <= 0:
        return 0
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    """Clamp ``page`` into ``[0, pages - 1]``."""
    if pages <= 0:
        return 0
    return max(0, min(page, pages - 1))


def paginate(results: Sequence[T], page: int, page_size: int) -> list[T]:
    """Return the slice of ``results`` shown on ``page``."""
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    start = max(0, page) * page_size
    return list(results[start : start + page_size])


def display_range(page: int, page_size: int, total_count: int) -> tuple[int, int]:
    """1-based inclusive bounds for "showing X-Y of N"; ``(0, 0)`` when empty."""
    if total_count <= 0:
        return 0, 0
    first = page * page_size + 1
    last = min((page + 1) * page_size, total_count)
    return first, last


@dataclass
class PaginationState:
    """Pagination metadata for one search session."""

    page: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0

    def recompute(self, count: int) -> None:
        """Refresh ``total_pages`` after the visible count changed."""
        self.total_pages = total_pages(count, self.page_size)

    def go_to(self, page: int) -> int:
        self.page = clamp_page(page, self.total_pages)
        return self.page

    def resize(self, page_size: int, count: int) -> None:
        """Change the page size and move to the last valid page if needed."""
        self.total_pages = total_pages(count, page_size)
        self.page_size = page_size
        if self.page >= self.total_pages:
            self.page = max(0, self.total_pages - 1)
