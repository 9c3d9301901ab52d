"""Database driver capability and its SQL implementation."""

from .base import Driver, NOT_SET, OPERATORS
from .sql import SqlDriver

__all__ = ["Driver", "NOT_SET", "OPERATORS", "SqlDriver"]
