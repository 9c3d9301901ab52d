"""Model: CRUD operations over declared tables without hand-written SQL.

Subclasses declare their tables and relationships in setup()::

    class Offices(Model, connection_name="hr"):
        def setup(self):
            self.declare("offices")
            self.declare("countries", fields=["iso", "name"])
            self.relate("offices", "countries")

    offices = Offices()
    offices.get({"fields": ["id", "name"], "iso": "UK"})

Public operations never raise for data-dependent failures: they return False
on failure and NO_RESULTS when a read matched nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, ClassVar, Iterable, Optional, Union

from pydantic import BaseModel, ValidationError

from .builder import QueryBuilder
from .cache import Cache
from .driver import Driver, SqlDriver
from .result import NO_RESULTS, NoResults
from .session import DEFAULT_COUNT_KEY, QuerySession
from .table import Relationship, TableDescriptor

logger = logging.getLogger("crudmodel")

Rows = list[dict[str, Any]]


class GetOptions(BaseModel):
    """Options accepted by Model.get(); keys other than these become WHERE conditions."""

    model_config = {"extra": "allow"}

    fields: Union[list[str], str]
    """Fields to select, or a hand-written select expression ("*" selects every field)."""
    sort: str = "asc"
    order_by: str
    offset: int = 0
    limit: Optional[int] = None
    distinct: bool = True
    join: Union[str, bool, None] = "left"
    """Join type for automatic joins; a falsy value disables them."""

    @property
    def conditions(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, bytes, Mapping, list, tuple, set)):
        return len(value) == 0
    return False


def _column(field: str) -> str:
    """Name a field takes in result rows (`countries.name` -> `name`)."""
    return field.rsplit(".", 1)[-1]


class Model:
    """Base class for data models built on one or more tables.

    Configuration comes from class keywords, inherited by subclasses
    (`class Users(Model, connection_name="accounts", strict=True)`), and can be
    overridden per instance.

    Attributes:
        tables: Declared table descriptors, keyed by alias.
        session: Tracking state of the current operation.
        builder: Clause construction over tables, session and driver.
        driver: Database driver the clauses are sent to.
    """

    _CONNECTION_NAME: ClassVar[Optional[str]] = "default"
    _STRICT: ClassVar[bool] = False

    def __init_subclass__(cls, connection_name: Optional[str] = None,
                          strict: Optional[bool] = None, **kwargs):
        super().__init_subclass__(**kwargs)
        if connection_name is not None:
            cls._CONNECTION_NAME = connection_name
        if strict is not None:
            cls._STRICT = strict

    def __init__(
        self,
        driver: Optional[Driver] = None,
        connection_name: Optional[str] = None,
        cache: Optional[Cache] = None,
        cache_key: Optional[str] = None,
        strict: Optional[bool] = None,
    ):
        self.driver = driver if driver is not None else SqlDriver(connection_name or self._CONNECTION_NAME)
        self.cache = cache
        self.cache_key = cache_key or type(self).__name__.lower()
        self.strict = self._STRICT if strict is None else strict
        self.tables: dict[str, TableDescriptor] = {}
        self.session = QuerySession()
        self.builder = QueryBuilder(self.tables, self.session, self.driver, strict=self.strict)
        self.setup()

    def setup(self) -> None:
        """Declare tables and relationships. Called once by the constructor."""

    def close(self) -> None:
        """Close the driver's database connection; the next operation reopens it."""
        self.driver.close()

    def __enter__(self) -> Model:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    # structure

    def table_fields(self, tables: Iterable[str]) -> dict[str, list[str]]:
        """Return {table: columns} for tables, through the cache when there is one."""
        tables = list(tables)
        if self.cache is None:
            return {table: self.driver.list_fields(table) for table in tables}
        key = f"table_structure/{self.cache_key}"
        structure = self.cache.get(key) or {}
        missing = [table for table in tables if table not in structure]
        if missing:
            for table in missing:
                structure[table] = self.driver.list_fields(table)
            self.cache.write(structure, key)
        return {table: structure[table] for table in tables}

    def declare(self, table: str, alias: str = "", fields: Optional[Iterable[str]] = None,
                primary_key: Optional[str] = None) -> TableDescriptor:
        """Declare a table used by this model and return its descriptor.

        Fields are read from the database (through the cache) when not given;
        the primary key defaults to the first field. The first table declared
        becomes the default primary table.
        """
        key = alias or table
        if not fields:
            fields = self.table_fields([table])[table]
        descriptor = TableDescriptor(name=table, alias=key, fields=tuple(fields),
                                     primary_key=primary_key or "")
        self.tables[key] = descriptor
        if self.session.primary_table is None:
            self.session.primary_table = key
        return descriptor

    def relate(self, table: str, related: Optional[str] = None,
               keys: Optional[tuple[str, str]] = None) -> Optional[dict[str, Relationship]]:
        """Set or get the relationships of a declared table (see TableDescriptor.relate)."""
        return self.tables[table].relate(related, keys)

    # session

    def begin_query(self, primary_table: str, reset: bool = True) -> QuerySession:
        """Start an operation centered on primary_table, clearing the session unless reset is False."""
        if reset:
            self.session.reset(primary_table)
        else:
            self.session.primary_table = primary_table
        return self.session

    def _table_key(self, table: Optional[str]) -> Optional[str]:
        key = table or self.session.primary_table
        if key not in self.tables:
            logger.warning("%s has no table %r", type(self).__name__, key)
            return None
        return key

    def _candidate_tables(self, key: str) -> list[str]:
        related = list(self.tables[key].relate())
        return list(dict.fromkeys(related + self.session.tables_joined))

    def _writable(self, data: Mapping, key: str, clause: str) -> dict[str, Any]:
        descriptor = self.tables[key]
        row = {}
        for name, value in data.items():
            if descriptor.has_field(name):
                row[name] = value
            else:
                self.builder.drop_field(name, clause)
        return row

    @contextmanager
    def _building(self):
        """Clear the driver clauses when building a query raises, then re-raise."""
        try:
            yield
        except Exception:
            self.driver.reset()
            raise

    def _restrict(self, where: Any, key: str) -> bool:
        """Add WHERE conditions for a write on key; False when none of them could be used."""
        if not isinstance(where, Mapping):
            where = {self.tables[key].primary_key: where}
        dropped = len(self.session.dropped_fields)
        self.builder.where(where, key, use_alias=False)
        if len(self.session.dropped_fields) - dropped == len(where):
            # every condition was dropped: refuse to touch the whole table
            self.driver.reset()
            return False
        return True

    # writes

    def insert(self, data: Optional[Mapping] = None, table: Optional[str] = None) -> bool:
        """Insert one row; keys that are not fields of the table are left out."""
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key)
        if _is_empty(data):
            return False
        row = self._writable(data, key, "insert")
        if not row:
            return False
        if not self.driver.insert(self.tables[key].name, row):
            return False
        self.session.last_insert_id = self.driver.insert_id()
        return True

    def update(self, data: Optional[Mapping] = None, where: Any = None,
               table: Optional[str] = None) -> bool:
        """Update rows matching where, a mapping or a primary key value."""
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key)
        if _is_empty(data) or _is_empty(where):
            return False
        row = self._writable(data, key, "update")
        if not row:
            return False
        with self._building():
            if not self._restrict(where, key):
                return False
        # the driver cannot alias the target of an UPDATE, conditions use the table name
        if not self.driver.update(self.tables[key].name, row):
            return False
        self.session.rows_affected = self.driver.affected_rows()
        return True

    def delete(self, where: Any = None, table: Optional[str] = None,
               limit: Optional[int] = None) -> bool:
        """Delete rows matching where, a mapping or a primary key value."""
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key)
        if _is_empty(where):
            return False
        with self._building():
            if not self._restrict(where, key):
                return False
        if not self.driver.delete(self.tables[key].name, limit):
            return False
        self.session.rows_affected = self.driver.affected_rows()
        return True

    # counts

    def count(self, where: Any = None, table: Optional[str] = None,
              reset: bool = True) -> Union[int, bool]:
        """Count rows matching where, joining related tables it refers to."""
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key, reset)
        if _is_empty(where):
            return False
        if not isinstance(where, (Mapping, str)):
            where = {self.tables[key].primary_key: where}
        tables = self._candidate_tables(key) if isinstance(where, Mapping) else None
        with self._building():
            self.builder.from_()
            self.builder.where(where, tables)
            self.builder.join()
        total = self.driver.count_all_results()
        return False if total is None else total

    def count_all(self, table: Optional[str] = None) -> Union[int, bool]:
        """Count every row of a table."""
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key)
        total = self.driver.count_all(self.tables[key].name)
        return False if total is None else total

    # reads

    def _fetch(self) -> Union[Rows, NoResults, bool]:
        result = self.driver.get()
        if result is None:
            return False
        self.session.rows_returned = result.num_rows
        if result.num_rows == 0:
            return NO_RESULTS
        return result.result_array()

    def _as_options(self, options: Any, table: Optional[str]) -> dict[str, Any]:
        if options is None:
            return {}
        if isinstance(options, Mapping):
            return dict(options)
        key = self._table_key(table)
        if key is None:
            return {}
        return {self.tables[key].primary_key: options}

    def get(self, options: Any = None, table: Optional[str] = None,
            reset: bool = True) -> Union[Rows, NoResults, bool]:
        """Read rows.

        Without arguments, run whatever clauses were already sent to the
        driver. Otherwise build the query from options: control keys (see
        GetOptions) default to the primary key only, sorted ascending, DISTINCT
        and left automatic joins; every other key is a WHERE condition. A
        scalar instead of a mapping matches the primary key.

        Returns:
            The rows as dicts, NO_RESULTS when none matched, or False when the
            table is unknown, the options are invalid or the database failed.
        """
        if options is None and table is None:
            return self._fetch()
        key = self._table_key(table)
        if key is None:
            return False
        self.begin_query(key, reset)
        descriptor = self.tables[key]
        tables = self._candidate_tables(key)
        defaults = {
            "fields": [descriptor.primary_key],
            "sort": "asc",
            "order_by": f"{descriptor.alias}.{descriptor.primary_key}",
            "offset": 0,
            "distinct": True,
            "join": "left",
        }
        try:
            opts = GetOptions.model_validate({**defaults, **self._as_options(options, key)})
        except ValidationError:
            logger.warning("Invalid options for %s.get()", type(self).__name__, exc_info=True)
            return False
        fields = list(descriptor.fields) if opts.fields == "*" else opts.fields

        with self._building():
            self.builder.from_()
            if opts.distinct:
                self.driver.distinct()
            self.builder.where(opts.conditions, tables)
            self.builder.select(fields, True, tables)
            if opts.join:
                self.builder.join(None, opts.join)
            if opts.limit is not None:
                self.driver.limit(opts.limit, opts.offset)
            self.driver.order_by(opts.order_by, opts.sort)
        return self._fetch()

    def get_one(self, options: Any = None, table: Optional[str] = None,
                reset: bool = True) -> Union[dict[str, Any], NoResults, bool]:
        """Return the first matching row, or what get() returned when there is none."""
        options = self._as_options(options, table)
        options["limit"] = 1
        rows = self.get(options, table, reset)
        if not rows:
            return rows
        return rows[0]

    def get_field(self, field: str, options: Any = None, table: Optional[str] = None,
                  reset: bool = True) -> Any:
        """Return one field of the first matching row (NO_RESULTS / False passed through)."""
        options = self._as_options(options, table)
        options["fields"] = [field]
        row = self.get_one(options, table, reset)
        if not row:
            return row
        return row.get(_column(field))

    def get_list(self, key: str, value: str, options: Any = None, table: Optional[str] = None,
                 reset: bool = True) -> Union[dict[Any, Any], NoResults, bool]:
        """Map row[key] to row[value] over all matching rows."""
        options = self._as_options(options, table)
        options["fields"] = [key, value]
        rows = self.get(options, table, reset)
        if not rows:
            return rows
        key_column, value_column = _column(key), _column(value)
        return {row[key_column]: row[value_column] for row in rows}

    def get_column(self, column: str, options: Any = None, table: Optional[str] = None,
                   reset: bool = True) -> Union[list[Any], NoResults, bool]:
        """List row[column] over all matching rows, in result order."""
        options = self._as_options(options, table)
        options["fields"] = [column]
        rows = self.get(options, table, reset)
        if not rows:
            return rows
        name = _column(column)
        return [row[name] for row in rows]

    # counters

    def get_insert_id(self) -> Any:
        return self.session.last_insert_id

    def get_num_rows(self) -> Optional[int]:
        return self.session.rows_returned

    def get_affected_rows(self) -> Optional[int]:
        return self.session.rows_affected

    def set_count(self, count: Optional[int] = None, key: Optional[str] = None) -> None:
        """Stash count (default: rows returned by the last read) under key.

        Nothing is stored when count is omitted and no read has run since the last reset.
        """
        if count is None:
            count = self.session.rows_returned
        if count is None:
            return
        self.session.named_counts[key or DEFAULT_COUNT_KEY] = count

    def get_count(self, key: str = DEFAULT_COUNT_KEY) -> Union[int, bool]:
        """Return the count stashed under key, or False when there is none."""
        if key in self.session.named_counts:
            return self.session.named_counts[key]
        return False
