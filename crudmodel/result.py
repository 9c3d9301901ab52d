"""Statement results and the no-results signal returned by read operations."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class NoResults:
    """Signal for "the query ran fine and matched zero rows".

    Falsy, so `if rows:` still reads naturally, but distinct from False
    (failure), None and an empty list: compare with `is NO_RESULTS`.
    """

    _instance: Optional["NoResults"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __len__(self) -> int:
        return 0

    def __repr__(self) -> str:
        return "NO_RESULTS"

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


NO_RESULTS = NoResults()


class Result(BaseModel):
    """Outcome of one executed statement."""

    rows: list[dict[str, Any]] = Field(default_factory=list)
    """Fetched rows as column -> value mappings (empty for writes)."""
    affected_rows: int = 0
    """Row count reported by the cursor (-1 when the engine cannot tell)."""
    insert_id: Any = None
    """Generated id, only fetched for INSERT statements."""

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    def result_array(self) -> list[dict[str, Any]]:
        """Return the rows as a list of dicts."""
        return list(self.rows)

    def row(self, index: int = 0) -> Optional[dict[str, Any]]:
        """Return one row, or None past the end."""
        if index < len(self.rows):
            return self.rows[index]
        return None


__all__ = ["NO_RESULTS", "NoResults", "Result"]
