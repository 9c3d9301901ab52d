"""The database driver capability consumed by models and the query builder.

A driver accumulates clause fragments (FROM, SELECT, WHERE, JOIN, DISTINCT,
LIMIT, ORDER BY) and turns them into one statement when a terminal method
(get, insert, update, delete, count_all_results) runs. Terminal methods clear
the accumulated clauses.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from ..result import Result


class _NotSet:

    def __repr__(self) -> str:
        return "NOT_SET"


NOT_SET = _NotSet()
"""Marks a WHERE call without a value: the field argument is then a raw condition."""

OPERATORS = ("=", "!=", "<>", "<", ">", "<=", ">=", "IS", "IS NOT", "LIKE", "NOT LIKE")
"""Comparison operators a WHERE field key may end with, upper-cased and single-spaced."""


class Driver(ABC):
    """Enumerated primitives a model needs from a database."""

    @abstractmethod
    def from_(self, table: str, alias: Optional[str] = None) -> "Driver":
        """Add a FROM target."""

    @abstractmethod
    def select(self, fragment: str, escape: bool = True) -> "Driver":
        """Add a SELECT fragment; escape=False keeps it verbatim."""

    @abstractmethod
    def where(self, field: str, value: Any = NOT_SET, escape: bool = True) -> "Driver":
        """Add an equality condition, or a raw condition when value is NOT_SET."""

    @abstractmethod
    def where_in(self, field: str, values: Iterable[Any], escape: bool = True) -> "Driver":
        """Add a "field is one of values" condition."""

    @abstractmethod
    def join(self, table: str, condition: str, join_type: str = "left",
             alias: Optional[str] = None) -> "Driver":
        """Add a JOIN of table (optionally aliased) on condition."""

    @abstractmethod
    def distinct(self, flag: bool = True) -> "Driver":
        ...

    @abstractmethod
    def limit(self, limit: int, offset: int = 0) -> "Driver":
        ...

    @abstractmethod
    def order_by(self, field: str, direction: str = "asc") -> "Driver":
        ...

    @abstractmethod
    def get(self) -> Optional[Result]:
        """Run the accumulated SELECT. Returns None when the database rejects it."""

    @abstractmethod
    def insert(self, table: str, data: dict[str, Any]) -> bool:
        ...

    @abstractmethod
    def insert_id(self) -> Any:
        """Id generated by the last successful insert()."""

    @abstractmethod
    def update(self, table: str, data: dict[str, Any]) -> bool:
        """UPDATE table using the accumulated WHERE conditions."""

    @abstractmethod
    def delete(self, table: str, limit: Optional[int] = None) -> bool:
        """DELETE from table using the accumulated WHERE conditions."""

    @abstractmethod
    def affected_rows(self) -> Optional[int]:
        """Rows touched by the last successful update() or delete()."""

    @abstractmethod
    def count_all_results(self) -> Optional[int]:
        """Count rows matched by the accumulated FROM/JOIN/WHERE, ignoring pagination."""

    @abstractmethod
    def count_all(self, table: str) -> Optional[int]:
        """Count every row of table."""

    @abstractmethod
    def list_fields(self, table: str) -> list[str]:
        """Column names of table, in declaration order."""

    @abstractmethod
    def reset(self) -> "Driver":
        """Forget every accumulated clause."""

    def close(self) -> None:
        """Release the database connection, if any. The driver reopens it on next use."""
