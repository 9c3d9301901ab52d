"""Per-model query session: which tables the query under construction touches."""

from typing import Any, Optional

from pydantic import BaseModel, Field

DEFAULT_COUNT_KEY = "_default"


class QuerySession(BaseModel):
    """Tracking state for one logical operation of a model.

    Everything except `named_counts` is cleared by reset(), which every public
    operation calls first unless told otherwise.
    """

    primary_table: Optional[str] = None
    """Key of the table the query is centered on."""
    tables_referenced: list[str] = Field(default_factory=list)
    """Tables touched by SELECT or WHERE and not yet consumed by an automatic join."""
    tables_joined: list[str] = Field(default_factory=list)
    """Tables emitted as FROM/JOIN, in emission order; the first one is the FROM table."""
    dropped_fields: list[str] = Field(default_factory=list)
    """Field tokens that matched no table and were left out of the query."""
    last_insert_id: Any = None
    rows_affected: Optional[int] = None
    rows_returned: Optional[int] = None
    named_counts: dict[str, int] = Field(default_factory=dict)
    """Counts stashed by callers under labels; survives reset()."""

    def reset(self, primary_table: Optional[str] = None) -> "QuerySession":
        """Clear tracking state and counters, then center the session on primary_table."""
        self.primary_table = primary_table
        self.tables_referenced = []
        self.tables_joined = []
        self.dropped_fields = []
        self.last_insert_id = None
        self.rows_affected = None
        self.rows_returned = None
        return self

    def reference(self, table: str) -> None:
        if table not in self.tables_referenced:
            self.tables_referenced.append(table)

    def mark_joined(self, table: str) -> None:
        if table not in self.tables_joined:
            self.tables_joined.append(table)

    def is_joined(self, table: str) -> bool:
        return table in self.tables_joined
