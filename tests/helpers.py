"""Shared test helpers."""

from typing import Any, Optional

from crudmodel.driver import Driver, NOT_SET
from crudmodel.model import Model
from crudmodel.result import Result

SCHEMA = {
    "offices": ["id", "name", "country_iso", "city"],
    "countries": ["iso", "name"],
    "users": ["id", "name", "office_id"],
}


class RecordingDriver(Driver):
    """Driver that records every primitive call and answers with canned values."""

    def __init__(self, fields: Optional[dict] = None, rows: Optional[list] = None,
                 count: int = 0, affected: int = 1):
        self.calls: list[tuple] = []
        self.fields = SCHEMA if fields is None else fields
        self.rows = rows or []
        self.count = count
        self.affected = affected
        self.fail = False
        self.list_fields_calls: list[str] = []
        self._insert_id = None
        self._affected_rows = None

    def named(self, name: str) -> list[tuple]:
        """Recorded calls to one primitive."""
        return [call for call in self.calls if call[0] == name]

    def from_(self, table, alias=None):
        self.calls.append(("from", table, alias))
        return self

    def select(self, fragment, escape=True):
        self.calls.append(("select", fragment, escape))
        return self

    def where(self, field, value=NOT_SET, escape=True):
        self.calls.append(("where", field, value, escape))
        return self

    def where_in(self, field, values, escape=True):
        self.calls.append(("where_in", field, tuple(values), escape))
        return self

    def join(self, table, condition, join_type="left", alias=None):
        self.calls.append(("join", table, condition, join_type, alias))
        return self

    def distinct(self, flag=True):
        self.calls.append(("distinct", flag))
        return self

    def limit(self, limit, offset=0):
        self.calls.append(("limit", limit, offset))
        return self

    def order_by(self, field, direction="asc"):
        self.calls.append(("order_by", field, direction))
        return self

    def get(self) -> Optional[Result]:
        self.calls.append(("get",))
        if self.fail:
            return None
        return Result(rows=self.rows)

    def insert(self, table, data) -> bool:
        self.calls.append(("insert", table, dict(data)))
        if self.fail:
            return False
        self._insert_id = 42
        return True

    def insert_id(self) -> Any:
        return self._insert_id

    def update(self, table, data) -> bool:
        self.calls.append(("update", table, dict(data)))
        if self.fail:
            return False
        self._affected_rows = self.affected
        return True

    def delete(self, table, limit=None) -> bool:
        self.calls.append(("delete", table, limit))
        if self.fail:
            return False
        self._affected_rows = self.affected
        return True

    def affected_rows(self):
        return self._affected_rows

    def count_all_results(self):
        self.calls.append(("count_all_results",))
        return None if self.fail else self.count

    def count_all(self, table):
        self.calls.append(("count_all", table))
        return None if self.fail else self.count

    def list_fields(self, table):
        self.list_fields_calls.append(table)
        return list(self.fields.get(table, []))

    def reset(self):
        self.calls.append(("reset",))
        return self


class Offices(Model):
    """Offices located in countries, users working in offices."""

    def setup(self):
        self.declare("offices")
        self.declare("countries", primary_key="iso")
        self.declare("users")
        self.relate("offices", "countries")
        self.relate("users", "offices")


class AliasedOffices(Model):
    """Same tables as Offices, queried through short aliases."""

    def setup(self):
        self.declare("offices", "o", fields=SCHEMA["offices"])
        self.declare("countries", "c", fields=SCHEMA["countries"])
        self.relate("o", "c")
