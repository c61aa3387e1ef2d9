"""
Topapi Backend: Page Requests
===============================

What:  Parses `page` / `limit` query strings into an offset window and
       builds the `pagination` block of list responses.

Contract:
    page, limit are 1-based positive integers
    absent, non-numeric or non-positive values fall back to page=1, limit=10
    limit is capped at MAX_PAGE_LIMIT (100)
    page is clamped so the offset fits a signed 64-bit integer; such a page
    is simply past the end
    store range: offset = (page - 1) * limit through offset + limit - 1 inclusive
    totalPages = ceil(total / limit)

Example:
    page=4, limit=10 over 25 records → data [], total 25, totalPages 3
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_PAGE_LIMIT = 100
MAX_OFFSET = 2**63 - 1  # largest OFFSET Postgres and SQLite can bind


def _positive_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = int(str(value).strip())
    except ValueError:
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def range_end(self) -> int:
        """Inclusive index of the last requested row."""
        return self.offset + self.limit - 1

    def page_info(self, total: int) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "totalPages": math.ceil(total / self.limit),
        }


def parse_page_request(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_PAGE_LIMIT,
) -> PageRequest:
    size = min(_positive_int(limit) or default_limit, max_limit)
    number = min(_positive_int(page) or DEFAULT_PAGE, MAX_OFFSET // size + 1)
    return PageRequest(page=number, limit=size)
