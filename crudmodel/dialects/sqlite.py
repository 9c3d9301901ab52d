"""SQLite dialect."""

import logging
import sqlite3
import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect

logger = logging.getLogger(__name__)


class SqliteDialect(Dialect):
    """Dialect for SQLite (scheme sqlite)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("sqlite",)

    SQL_LIST_FIELDS: ClassVar[str] = "SELECT name FROM pragma_table_info({placeholder}) ORDER BY cid"

    def sql_delete(self, table: str, where: str, limit: Optional[int] = None) -> str:
        # DELETE ... LIMIT needs a compile-time option, go through rowid instead
        if limit is None:
            return f"DELETE FROM {table}{where}"
        return (
            f"DELETE FROM {table}\nWHERE rowid IN ("
            f"SELECT rowid FROM {table}{where}\nLIMIT {int(limit)})"
        )

    def error_class(self) -> type[Exception]:
        return sqlite3.Error

    def connect(self, url: str):
        parsed = urllib.parse.urlparse(url)
        path = (parsed.path or "")[1:] or parsed.hostname
        logger.debug("Connecting to SQLite database %s", path)
        conn = sqlite3.connect(path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn
