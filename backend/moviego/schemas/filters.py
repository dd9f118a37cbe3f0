"""
MovieGo API: Listing Filters and Pagination Metadata
====================================================

What:  `MovieFilters` carries page, page size and sort for list queries;
       `PaginationMetadata` describes where a page sits in the result set.
How:   The sort value is checked against an explicit safelist before any
       query is built, so it can be interpolated as an ORDER BY column
       without risk of injection.

Example:
    filters = MovieFilters(page=2, page_size=10, sort="-year")
    filters.sort_column()     → "year"
    filters.sort_direction()  → "DESC"
    filters.offset()          → 10
"""

import math
from typing import Optional, Tuple

from pydantic import BaseModel, Field

MOVIE_SORT_SAFELIST: Tuple[str, ...] = (
    "id",
    "title",
    "year",
    "runtime",
    "-id",
    "-title",
    "-year",
    "-runtime",
)

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100


class MovieFilters(BaseModel):
    page: int = 1
    page_size: int = 20
    sort: str = "id"
    sort_safelist: Tuple[str, ...] = Field(default=MOVIE_SORT_SAFELIST, exclude=True)

    def sort_column(self) -> str:
        """
        The column named by `sort`, without its direction prefix.

        Raises ValueError for a value outside the safelist; callers validate
        filters first, so reaching this is a programming error.
        """
        if self.sort not in self.sort_safelist:
            raise ValueError(f"unsafe sort parameter: {self.sort!r}")
        return self.sort.lstrip("-")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class PaginationMetadata(BaseModel):
    """
    Paging summary returned alongside list results.

    All fields are None (serialized as `{}`) when there are no records.
    """

    current_page: Optional[int] = None
    page_size: Optional[int] = None
    first_page: Optional[int] = None
    last_page: Optional[int] = None
    total_records: Optional[int] = None

    @classmethod
    def calculate(cls, total_records: int, page: int, page_size: int) -> "PaginationMetadata":
        if total_records == 0:
            return cls()
        return cls(
            current_page=page,
            page_size=page_size,
            first_page=1,
            last_page=math.ceil(total_records / page_size),
            total_records=total_records,
        )

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)
