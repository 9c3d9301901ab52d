"""SQL driver: accumulates clause fragments and compiles them into parametrised statements."""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional

from ..connection import Connection, _get_connection
from ..dialects import Dialect
from ..result import Result
from .base import Driver, NOT_SET, OPERATORS

logger = logging.getLogger("crudmodel")

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_$-]*(\.([A-Za-z_][A-Za-z0-9_$-]*|\*))*")
_CONDITION_KEY = re.compile(r"^\s*(?P<field>[^\s<>!=]+)\s*(?P<operator>.*?)\s*$")
_COMPARISON = re.compile(r"(\s*(?:<=|>=|<>|!=|=|<|>)\s*)")
_JOIN_TYPES = ("LEFT", "RIGHT", "OUTER", "INNER", "LEFT OUTER", "RIGHT OUTER")


class SqlDriver(Driver):
    """Driver over a named connection (see connect()).

    Clause methods return the driver so calls can be chained; terminal methods
    execute, clear the clauses and report database errors as failure values
    after logging them.
    """

    def __init__(self, connection_name: Optional[str] = "default",
                 connection: Optional[Connection] = None):
        self.connection_name = connection_name
        self._connection = connection
        self._insert_id = None
        self._affected_rows = None
        self.reset()

    # connection

    @property
    def connection(self) -> Connection:
        """Connection used by this driver, opened on first use."""
        if self._connection is None:
            self._connection = _get_connection(self.connection_name)
        return self._connection

    @property
    def dialect(self) -> Dialect:
        return self.connection.dialect

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()

    # identifiers

    def protect(self, token: str) -> str:
        """Quote a plain or dotted identifier; any other fragment is returned verbatim."""
        token = token.strip()
        if not _IDENTIFIER.fullmatch(token):
            return token
        return ".".join(self.dialect.quote(part) for part in token.split("."))

    def _protect_condition(self, condition: str) -> str:
        parts = _COMPARISON.split(condition.strip())
        return "".join(
            part if index % 2 else self.protect(part)
            for index, part in enumerate(parts)
        )

    # clause accumulation

    def reset(self) -> SqlDriver:
        self._selects: list[str] = []
        self._distinct = False
        self._froms: list[str] = []
        self._joins: list[str] = []
        self._wheres: list[tuple[str, tuple[Any, ...]]] = []
        self._orders: list[str] = []
        self._limit: Optional[int] = None
        self._offset = 0
        return self

    def from_(self, table: str, alias: Optional[str] = None) -> SqlDriver:
        target = self.protect(table)
        if alias and alias != table:
            target += " " + self.dialect.quote(alias)
        if target not in self._froms:
            self._froms.append(target)
        return self

    def select(self, fragment: str, escape: bool = True) -> SqlDriver:
        if escape:
            self._selects.extend(self.protect(part) for part in fragment.split(",") if part.strip())
        else:
            self._selects.append(fragment)
        return self

    def where(self, field: str, value: Any = NOT_SET, escape: bool = True) -> SqlDriver:
        if value is NOT_SET:
            self._wheres.append((f"({field})", ()))
            return self
        if isinstance(value, (list, tuple, set, frozenset)):
            return self.where_in(field, value, escape)
        column, operator = self._split_key(field)
        if escape:
            column = self.protect(column)
        if value is None:
            operator = "IS NOT" if operator in ("!=", "<>", "IS NOT") else "IS"
            self._wheres.append((f"{column} {operator} NULL", ()))
        else:
            self._wheres.append((f"{column} {operator} {self.dialect.PLACEHOLDER}", (value,)))
        return self

    def where_in(self, field: str, values: Iterable[Any], escape: bool = True) -> SqlDriver:
        values = tuple(values)
        column = self.protect(field) if escape else field
        if not values:
            # nothing is a member of the empty set
            self._wheres.append(("1 = 0", ()))
            return self
        placeholders = ", ".join(self.dialect.PLACEHOLDER for _ in values)
        self._wheres.append((f"{column} IN ({placeholders})", values))
        return self

    def join(self, table: str, condition: str, join_type: str = "left",
             alias: Optional[str] = None) -> SqlDriver:
        kind = " ".join(str(join_type or "").upper().split())
        keyword = f"{kind} JOIN" if kind in _JOIN_TYPES else "JOIN"
        target = self.protect(table)
        if alias and alias != table:
            target += " " + self.dialect.quote(alias)
        self._joins.append(f"{keyword} {target} ON {self._protect_condition(condition)}")
        return self

    def distinct(self, flag: bool = True) -> SqlDriver:
        self._distinct = bool(flag)
        return self

    def limit(self, limit: int, offset: int = 0) -> SqlDriver:
        self._limit = int(limit)
        self._offset = int(offset or 0)
        return self

    def order_by(self, field: str, direction: str = "asc") -> SqlDriver:
        direction = (direction or "asc").strip().lower()
        if direction == "random":
            self._orders.append(self.dialect.f.random())
            return self
        suffix = " DESC" if direction == "desc" else " ASC"
        for part in field.split(","):
            if not part.strip():
                continue
            protected = self.protect(part)
            # parts carrying their own direction are kept as written
            self._orders.append(protected + suffix if _IDENTIFIER.fullmatch(part.strip()) else protected)
        return self

    # compilation

    @staticmethod
    def _split_key(key: str) -> tuple[str, str]:
        match = _CONDITION_KEY.match(key)
        if match is None:
            raise ValueError(f"Cannot parse condition key {key!r}")
        operator = " ".join(match.group("operator").upper().split()) or "="
        if operator not in OPERATORS:
            raise ValueError(f"Unsupported operator {operator!r} in condition key {key!r}")
        return match.group("field"), operator

    def sql_where(self) -> tuple[str, tuple[Any, ...]]:
        """Return the WHERE clause (including leading newline) and its bound values."""
        if not self._wheres:
            return "", ()
        sql = "\nWHERE " + "\nAND ".join(condition for condition, _ in self._wheres)
        values = tuple(value for _, values in self._wheres for value in values)
        return sql, values

    def _sql_from_join(self) -> str:
        sql = ""
        if self._froms:
            sql += "\nFROM " + ", ".join(self._froms)
        for join in self._joins:
            sql += "\n" + join
        return sql

    def sql_select(self) -> tuple[str, tuple[Any, ...]]:
        """Compile the accumulated clauses into a SELECT statement and its bound values."""
        sql = "SELECT " + ("DISTINCT " if self._distinct else "")
        sql += ", ".join(self._selects) if self._selects else "*"
        sql += self._sql_from_join()
        where, values = self.sql_where()
        sql += where
        if self._orders:
            sql += "\nORDER BY " + ", ".join(self._orders)
        if self._limit is not None:
            sql += self.dialect.sql_limit(self._limit, self._offset, ordered=bool(self._orders))
        return sql, values

    def sql_count(self) -> tuple[str, tuple[Any, ...]]:
        where, values = self.sql_where()
        return "SELECT COUNT(*) AS numrows" + self._sql_from_join() + where, values

    # execution

    def _run(self, sql: str, values=(), fetch_insert_id: bool = False,
             reset: bool = True) -> Optional[Result]:
        try:
            return self.connection.execute(sql, values, fetch_insert_id=fetch_insert_id)
        except self.dialect.error_class():
            logger.exception("Statement failed: %s", sql)
            return None
        finally:
            if reset:
                self.reset()

    def get(self) -> Optional[Result]:
        return self._run(*self.sql_select())

    def insert(self, table: str, data: dict[str, Any]) -> bool:
        columns = ", ".join(self.dialect.quote(name) for name in data)
        placeholders = ", ".join(self.dialect.PLACEHOLDER for _ in data)
        sql = f"INSERT INTO {self.protect(table)} ({columns})\nVALUES ({placeholders})"
        result = self._run(sql, tuple(data.values()), fetch_insert_id=True)
        if result is None:
            return False
        self._insert_id = result.insert_id
        return True

    def insert_id(self) -> Any:
        return self._insert_id

    def update(self, table: str, data: dict[str, Any]) -> bool:
        assignments = ", ".join(f"{self.dialect.quote(name)} = {self.dialect.PLACEHOLDER}" for name in data)
        where, values = self.sql_where()
        sql = f"UPDATE {self.protect(table)}\nSET {assignments}{where}"
        result = self._run(sql, tuple(data.values()) + values)
        if result is None:
            return False
        self._affected_rows = result.affected_rows
        return True

    def delete(self, table: str, limit: Optional[int] = None) -> bool:
        where, values = self.sql_where()
        sql = self.dialect.sql_delete(self.protect(table), where, limit)
        result = self._run(sql, values)
        if result is None:
            return False
        self._affected_rows = result.affected_rows
        return True

    def affected_rows(self) -> Optional[int]:
        return self._affected_rows

    def count_all_results(self) -> Optional[int]:
        result = self._run(*self.sql_count())
        if result is None:
            return None
        return int(result.rows[0]["numrows"])

    def count_all(self, table: str) -> Optional[int]:
        result = self._run(f"SELECT COUNT(*) AS numrows FROM {self.protect(table)}")
        if result is None:
            return None
        return int(result.rows[0]["numrows"])

    def list_fields(self, table: str) -> list[str]:
        sql, values = self.dialect.sql_list_fields(table)
        # introspection must not clear a query being built
        result = self._run(sql, values, reset=False)
        if result is None:
            return []
        return [next(iter(row.values())) for row in result.rows]
