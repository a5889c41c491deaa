# src/crudforge/core/query/pagination.py
"""Range and page based pagination."""

from dataclasses import dataclass
from typing import Tuple

from sqlalchemy.sql import Select

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

HTTP_OK = 200
HTTP_PARTIAL_CONTENT = 206


class Pagination:
    """Common interface of Range and Page."""

    def apply(self, stmt: Select) -> Select:
        return stmt.offset(self.offset).limit(self.limit)

    @property
    def offset(self) -> int:
        raise NotImplementedError

    @property
    def limit(self) -> int:
        raise NotImplementedError

    def start_index(self) -> int:
        raise NotImplementedError

    def end_index(self) -> int:
        raise NotImplementedError


@dataclass(frozen=True)
class Range(Pagination):
    """Inclusive [start, end] window, applied as-is."""

    start: int
    end: int

    @property
    def offset(self) -> int:
        return self.start

    @property
    def limit(self) -> int:
        return self.end - self.start + 1

    def start_index(self) -> int:
        return self.start

    def end_index(self) -> int:
        return self.end


@dataclass(frozen=True)
class Page(Pagination):
    """1-based page number and page size, normalized on construction."""

    page: int = 1
    size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self):
        if self.page <= 0:
            object.__setattr__(self, "page", 1)
        if self.size <= 0:
            object.__setattr__(self, "size", DEFAULT_PAGE_SIZE)
        if self.size > MAX_PAGE_SIZE:
            object.__setattr__(self, "size", MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size

    @property
    def limit(self) -> int:
        return self.size

    def start_index(self) -> int:
        return self.offset

    def end_index(self) -> int:
        return self.page * self.size - 1


def pagination_header(pagination: Pagination, total: int) -> Tuple[int, str]:
    """
    Status code and Content-Range value for a listing.

    The status is 200 only when the window starts at 0 and reaches the last
    row; every other window is partial content.
    """
    start, end = pagination.start_index(), pagination.end_index()
    code = HTTP_PARTIAL_CONTENT
    if start == 0 and end >= total - 1:
        code = HTTP_OK
    return code, f"items {start}-{end}/{total}"
