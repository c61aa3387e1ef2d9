"""
Topapi Backend: Abstract Record Store Interface
=================================================

What:  Abstract base class defining the contract for the external record store.
Why:   Resource services issue exactly one store call per request and must not
       care whether rows live in hosted Postgres, a REST data API or an
       in-memory test double.
How:   Concrete stores inherit from RecordStore and implement the six calls.
Who:   Called by the resource services and by the database health probe.

Contract:
    - Rows are plain dicts keyed by column name.
    - "No row" is signalled with None (select_one, update) or 0 (delete);
      callers decide whether that is a 404.
    - Every other failure is raised as StoreError. No retries.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Tuple

Row = Dict[str, Any]


class RecordStore(ABC):
    """
    Generic table-oriented record store.

    Implementations:
        - SqlRecordStore: SQLAlchemy async session against Postgres (default)
        - FakeRecordStore: in-memory double used by the test suite
    """

    @abstractmethod
    async def select_page(
        self,
        table: str,
        *,
        offset: int,
        limit: int,
        filters: Optional[Mapping[str, Any]] = None,
        search: Optional[Tuple[str, str]] = None,
    ) -> Tuple[List[Row], int]:
        """
        Return one page of rows, newest first, plus the total match count.

        Args:
            table:   Table name.
            offset:  Zero-based index of the first row.
            limit:   Maximum number of rows; the inclusive range end is
                     offset + limit - 1.
            filters: Exact-match column filters.
            search:  (column, term) for a case-insensitive substring match.
        """
        ...

    @abstractmethod
    async def select_one(self, table: str, key: str, value: Any) -> Optional[Row]:
        """Return the row whose `key` column equals `value`, or None."""
        ...

    @abstractmethod
    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        """Insert one row and return it as stored (defaults applied)."""
        ...

    @abstractmethod
    async def update(
        self, table: str, key: str, value: Any, changes: Mapping[str, Any]
    ) -> Optional[Row]:
        """Apply `changes` to the matching row and return it, or None if no row matched."""
        ...

    @abstractmethod
    async def delete(self, table: str, key: str, value: Any) -> int:
        """Delete matching rows and return how many were removed."""
        ...

    @abstractmethod
    async def ping(self) -> None:
        """
        Round-trip to the store.

        Raises:
            StoreError: when the store is unreachable.
        """
        ...

    async def aclose(self) -> None:
        """Release connections. Stores without resources keep the default."""
        return None
