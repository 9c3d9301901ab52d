"""Exceptions raised by models running in strict mode."""


class UnknownFieldError(ValueError):
    """A field token matched no declared table column (strict mode only)."""

    def __init__(self, field: str, clause: str):
        self.field = field
        self.clause = clause
        super().__init__(f"Unknown field {field!r} in {clause}")
