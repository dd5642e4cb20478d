# backend/pokebrowser/pagination.py
"""Offset pagination for the catalog and page-number pagination for the moves list.

Both states are immutable; every operation returns a new instance.
"""

import math
from typing import List, Optional, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


def parse_offset_param(value: Optional[str]) -> Optional[int]:
    """Returns the offset carried by a query parameter, or None when it is absent or not a non-negative integer."""
    if value is None:
        return None
    try:
        offset = int(str(value).strip())
    except ValueError:
        return None
    return offset if offset >= 0 else None


class PaginationState(BaseModel):
    """Catalog position. `offset` is kept a multiple of `page_size`."""
    model_config = ConfigDict(frozen=True)

    offset: int = Field(0, ge=0)
    page_size: int = Field(..., gt=0)
    total: int = Field(0, ge=0)

    @property
    def last_page_offset(self) -> int:
        return max(0, ((self.total - 1) // self.page_size) * self.page_size)

    @property
    def has_next(self) -> bool:
        return self.offset + self.page_size < self.total

    @property
    def has_prev(self) -> bool:
        return self.offset > 0

    @property
    def is_past_end(self) -> bool:
        return self.total > 0 and self.offset > self.last_page_offset

    def with_offset(self, offset: int) -> "PaginationState":
        snapped = max(0, offset) // self.page_size * self.page_size
        return self.model_copy(update={"offset": snapped})

    def with_total(self, total: int) -> "PaginationState":
        return self.model_copy(update={"total": max(0, total)})

    def next(self) -> "PaginationState":
        if not self.has_next:
            return self
        return self.model_copy(update={"offset": self.offset + self.page_size})

    def prev(self) -> "PaginationState":
        return self.model_copy(update={"offset": max(0, self.offset - self.page_size)})

    def jump(self, pages: int) -> "PaginationState":
        desired = self.offset + pages * self.page_size
        clamped = min(max(0, desired), self.last_page_offset)
        return self.model_copy(update={"offset": clamped})

    def go_to_first(self) -> "PaginationState":
        return self.model_copy(update={"offset": 0})

    def clamp(self) -> "PaginationState":
        if self.is_past_end:
            return self.model_copy(update={"offset": self.last_page_offset})
        return self


class MovePager(BaseModel):
    """Local page-number pagination over an already fetched list."""
    model_config = ConfigDict(frozen=True)

    per_page: int = Field(..., gt=0)
    count: int = Field(0, ge=0)
    current_page: int = Field(0, ge=0)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.count / self.per_page)

    def with_count(self, count: int) -> "MovePager":
        return self.model_copy(update={"count": max(0, count)})

    def reset(self) -> "MovePager":
        return self.model_copy(update={"current_page": 0})

    def next_page(self) -> "MovePager":
        if self.current_page < self.total_pages - 1:
            return self.model_copy(update={"current_page": self.current_page + 1})
        return self

    def prev_page(self) -> "MovePager":
        if self.current_page > 0:
            return self.model_copy(update={"current_page": self.current_page - 1})
        return self

    def go_to(self, page: int) -> "MovePager":
        """Moves to `page`, clamped to the existing pages."""
        last = max(0, self.total_pages - 1)
        return self.model_copy(update={"current_page": min(max(0, page), last)})

    def visible(self, items: Sequence[T]) -> List[T]:
        start = self.current_page * self.per_page
        return list(items[start:start + self.per_page])
