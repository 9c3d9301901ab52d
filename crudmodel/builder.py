"""Query builder: routes field references to tables and emits clauses through a driver.

The builder works on one model's table descriptors and query session. It keeps
track of which tables a query touches (SELECT and WHERE fields register their
table) so that join() can later emit the JOIN clauses those references need,
using the relationships declared on the primary table.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Union

from .driver import Driver, OPERATORS
from .errors import UnknownFieldError
from .session import QuerySession
from .table import TableDescriptor

logger = logging.getLogger("crudmodel")

_UNSAFE = re.compile(r"[^A-Za-z0-9_\-]")
_CONDITION_KEY = re.compile(r"^\s*(?P<field>[^\s<>!=]+)(?P<operator>.*)$", re.S)

Tables = Optional[Union[str, Iterable[str]]]


class QueryBuilder:
    """Clause construction for a model (see Model.builder)."""

    def __init__(
        self,
        tables: dict[str, TableDescriptor],
        session: QuerySession,
        driver: Driver,
        strict: bool = False,
    ):
        self.tables = tables
        self.session = session
        self.driver = driver
        self.strict = strict

    # helpers

    def _primary(self) -> str:
        primary = self.session.primary_table
        if primary is None:
            raise ValueError("No primary table: declare a table or call begin_query() first")
        return primary

    def candidate_tables(self, tables: Tables = None) -> list[str]:
        """Tables scanned to resolve an unqualified field, primary table first.

        Defaults to the tables already joined. Keys without a descriptor are skipped.
        """
        if not tables:
            tables = list(self.session.tables_joined)
        elif isinstance(tables, str):
            tables = [tables]
        else:
            tables = list(tables)
        primary = self._primary()
        if primary not in tables:
            tables.insert(0, primary)
        return [key for key in dict.fromkeys(tables) if key in self.tables]

    def drop_field(self, field: str, clause: str) -> None:
        """Leave field out of clause; raises UnknownFieldError in strict mode."""
        self.session.dropped_fields.append(field)
        if self.strict:
            raise UnknownFieldError(field, clause)
        logger.debug("Dropping unknown field %r from %s", field, clause)

    def resolve_field(self, field: str, tables: Tables = None, use_alias: bool = True) -> Optional[str]:
        """Return the table-qualified reference for field, or None when no table has it.

        A field already written as `table.column` is returned as is. Otherwise
        the first candidate table declaring the column wins. Either way the
        table is registered as referenced by the current query.
        """
        if "." in field:
            self.session.reference(field.split(".", 1)[0])
            return field
        for key in self.candidate_tables(tables):
            descriptor = self.tables[key]
            if descriptor.has_field(field):
                self.session.reference(key)
                prefix = descriptor.alias if use_alias else descriptor.name
                return f"{prefix}.{field}"
        return None

    # clauses

    def from_(self, table: Optional[str] = None) -> QueryBuilder:
        """Emit FROM for table (default: the primary table) unless it is already joined."""
        key = table or self._primary()
        if self.session.is_joined(key):
            return self
        descriptor = self.tables.get(key)
        if descriptor is None:
            self.driver.from_(key)
        else:
            self.driver.from_(descriptor.name, descriptor.alias)
        self.session.mark_joined(key)
        self.session.reference(key)
        return self

    def select(self, fields: Union[str, Iterable[str]], escape: bool = True,
               tables: Tables = None) -> QueryBuilder:
        """Select fields, each resolved against tables.

        A string is a hand-written select expression and goes to the driver
        verbatim. Qualified `table.column` fields are not escaped.
        """
        if isinstance(fields, str):
            self.driver.select(fields, escape=False)
            return self
        for field in fields:
            reference = self.resolve_field(field, tables)
            if reference is None:
                self.drop_field(field, "select")
                continue
            self.driver.select(reference, escape=escape and "." not in field)
        return self

    def where(self, options: Union[Mapping, str], tables: Any = None,
              use_alias: bool = True) -> QueryBuilder:
        """Add WHERE conditions.

        options maps field keys to values. A key may end with a comparison
        operator ("price >", "name !="); only the field part is used to find
        the table, after stripping characters outside [A-Za-z0-9_-]. A
        non-empty sequence value becomes an IN condition, anything else an
        equality (or the given operator). Keys ending with an operator the
        driver does not support (see OPERATORS) are dropped like unknown fields.

        A string is a hand-written condition passed to the driver as is; when
        tables is also given it is bound as that condition's value.
        """
        if not isinstance(options, Mapping):
            if tables:
                self.driver.where(options, tables, escape=False)
            else:
                self.driver.where(options)
            return self
        for key, value in options.items():
            match = _CONDITION_KEY.match(str(key))
            if match is None:
                self.drop_field(str(key), "where")
                continue
            field, operator = match.group("field"), " ".join(match.group("operator").upper().split())
            if operator and operator not in OPERATORS:
                self.drop_field(str(key), "where")
                continue
            if "." in field:
                reference = self.resolve_field(field)
                escape = False
            else:
                reference = self.resolve_field(_UNSAFE.sub("", field), tables, use_alias)
                escape = True
            if reference is None:
                self.drop_field(str(key), "where")
                continue
            if isinstance(value, (list, tuple, set, frozenset)) and value:
                self.driver.where_in(reference, value, escape=escape)
            else:
                condition = f"{reference} {operator}" if operator else reference
                self.driver.where(condition, value, escape=escape)
        return self

    def join(self, table: Optional[str] = None, join_type: Union[str, bool] = "left",
             set_as_primary: bool = False) -> bool:
        """Join table to the primary table through their declared relationship.

        Without a table, join every referenced table that is not joined yet,
        then forget the references; fails when nothing was referenced.
        Joining an already joined table succeeds without doing anything.
        Fails when the primary table declares no relationship to table.
        With set_as_primary, table becomes the primary table afterwards.
        """
        if not isinstance(join_type, str):
            join_type = "left"
        if table is None:
            if not self.session.tables_referenced:
                return False
            for key in list(self.session.tables_referenced):
                if not self.session.is_joined(key):
                    self.join(key, join_type)
            self.session.tables_referenced = []
            return True
        if self.session.is_joined(table):
            return True
        primary = self._primary()
        holder = self.tables[primary]
        related = self.tables.get(table)
        if related is None or not holder.is_related_to(table):
            logger.warning("No relationship from %s to %s, cannot join", primary, table)
            return False
        foreign_key, primary_key = holder.join_keys(related)
        self.driver.join(
            related.name,
            f"{holder.alias}.{foreign_key} = {related.alias}.{primary_key}",
            join_type,
            alias=related.alias,
        )
        self.session.mark_joined(table)
        if set_as_primary:
            self.session.primary_table = table
        return True
