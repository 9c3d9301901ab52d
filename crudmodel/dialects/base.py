"""Base Dialect type: subclasses describe one engine's SQL flavour and connect() to it."""

from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Optional

from pydantic import BaseModel


class _DialectF:
    """Helper for dialect.f: __getattr__ returns the callable from the dialect's F config."""

    __slots__ = ("_dialect",)

    def __init__(self, dialect: "Dialect") -> None:
        self._dialect = dialect

    def __getattr__(self, name: str) -> Callable[..., Any]:
        F = type(self._dialect).F  # pylint: disable=invalid-name
        if name in F:
            return F[name]
        raise AttributeError(name)


class Dialect(BaseModel, ABC):
    """Base for database dialects.

    A dialect knows how to quote identifiers, which placeholder the engine's
    DB-API module expects, and the few statements whose syntax differs between
    engines (pagination, limited deletes, column listing, last insert id).
    """

    model_config = {"arbitrary_types_allowed": True}

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ()
    """URL schemes this dialect handles (e.g. ('sqlite',), ('mssql', 'sqlserver'))."""

    PLACEHOLDER: ClassVar[str] = "?"
    """Bound parameter marker of the engine's DB-API module."""

    QUOTES: ClassVar[tuple[str, str]] = ('"', '"')
    """Opening and closing identifier quote characters."""

    SQL_LIST_FIELDS: ClassVar[str] = (
        "SELECT column_name FROM information_schema.columns"
        " WHERE table_name = {placeholder} ORDER BY ordinal_position"
    )
    """Query returning one row per column of a table, first column is the column name."""

    F: ClassVar[dict[str, Callable[..., Any]]] = {
        "random": lambda: "RANDOM()",
    }
    """Dialect-specific SQL helpers. Access via dialect.f.random()."""

    @property
    def f(self) -> _DialectF:
        """Access dialect-specific helpers by name (e.g. self.f.random())."""
        return _DialectF(self)

    def quote(self, name: str) -> str:
        """Quote a single identifier; the `*` wildcard is left alone."""
        if name == "*":
            return name
        opening, closing = self.QUOTES
        return opening + name.replace(closing, closing * 2) + closing

    def sql_list_fields(self, table: str) -> tuple[str, tuple[str, ...]]:
        """Return (sql, parameters) listing the columns of table, in declaration order."""
        return self.SQL_LIST_FIELDS.format(placeholder=self.PLACEHOLDER), (table,)

    def sql_limit(self, limit: int, offset: int = 0, ordered: bool = True) -> str:
        """Return the pagination suffix appended after ORDER BY."""
        sql = f"\nLIMIT {int(limit)}"
        if offset:
            sql += f" OFFSET {int(offset)}"
        return sql

    @abstractmethod
    def sql_delete(self, table: str, where: str, limit: Optional[int] = None) -> str:
        """Return a DELETE statement for an already quoted table and a WHERE clause (may be empty).

        With a limit, at most that many matching rows are deleted; engines spell this differently.
        """
        ...  # pylint: disable=unnecessary-ellipsis

    def insert_id(self, cursor: Any) -> Any:
        """Return the id generated by the last INSERT run on cursor's connection."""
        return cursor.lastrowid

    @abstractmethod
    def error_class(self) -> type[Exception]:
        """Return the base exception class raised by the engine's DB-API module."""
        ...  # pylint: disable=unnecessary-ellipsis

    @abstractmethod
    def connect(self, url: str) -> Any:
        """Return a new raw driver connection for the given URL.

        The return value is engine-specific (e.g. sqlite3.Connection, pymysql.Connection).
        """
        ...  # pylint: disable=unnecessary-ellipsis
