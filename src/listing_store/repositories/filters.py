"""
Pagination and sorting contract for list queries.

`Filters` carries the caller's page / page size / sort key together with the
allow-list of sort keys. `validate_filters` records bound and allow-list failures
on a Validator; the repository only ever interpolates a sort column that passed
the allow-list (`sort_column()` re-checks and raises otherwise).
"""

import math
from dataclasses import dataclass, field

from listing_store.exceptions import InvalidFieldError
from listing_store.validators.validator import Validator, permitted_value

MAX_PAGE = 10_000_000
MAX_PAGE_SIZE = 100


@dataclass
class Filters:
    page: int = 1
    page_size: int = 20
    sort: str = "id"
    sort_safelist: tuple[str, ...] = field(default_factory=tuple)

    def sort_column(self) -> str:
        """Column name of the validated sort key, without the '-' prefix."""
        if not permitted_value(self.sort, *self.sort_safelist):
            # unvalidated structural input must never reach the ORDER BY clause
            raise InvalidFieldError(f"unsafe sort parameter: {self.sort}", fields=["sort"])
        return self.sort.removeprefix("-")

    def sort_direction(self) -> str:
        return "DESC" if self.sort.startswith("-") else "ASC"

    def limit(self) -> int:
        return self.page_size

    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def validate_filters(v: Validator, f: Filters) -> None:
    v.check(f.page > 0, "page", "must be greater than zero")
    v.check(f.page <= MAX_PAGE, "page", "must be a maximum of 10 million")
    v.check(f.page_size > 0, "page_size", "must be greater than zero")
    v.check(f.page_size <= MAX_PAGE_SIZE, "page_size", "must be a maximum of 100")
    v.check(permitted_value(f.sort, *f.sort_safelist), "sort", "invalid sort value")


@dataclass(frozen=True)
class Metadata:
    current_page: int = 0
    page_size: int = 0
    first_page: int = 0
    last_page: int = 0
    total_records: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "current_page": self.current_page,
            "page_size": self.page_size,
            "first_page": self.first_page,
            "last_page": self.last_page,
            "total_records": self.total_records,
        }


def calculate_metadata(total_records: int, page: int, page_size: int) -> Metadata:
    """Pagination metadata; every field is zero when nothing matched."""
    if total_records == 0:
        return Metadata()
    return Metadata(
        current_page=page,
        page_size=page_size,
        first_page=1,
        last_page=math.ceil(total_records / page_size),
        total_records=total_records,
    )
