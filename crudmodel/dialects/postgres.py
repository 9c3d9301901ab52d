"""PostgreSQL dialect."""

import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect


class PostgresDialect(Dialect):
    """Dialect for PostgreSQL (scheme postgresql)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("postgresql", "postgres")

    PLACEHOLDER: ClassVar[str] = "%s"

    SQL_LIST_FIELDS: ClassVar[str] = (
        "SELECT column_name FROM information_schema.columns"
        " WHERE table_schema = current_schema() AND table_name = {placeholder}"
        " ORDER BY ordinal_position"
    )

    def sql_delete(self, table: str, where: str, limit: Optional[int] = None) -> str:
        if limit is None:
            return f"DELETE FROM {table}{where}"
        return (
            f"DELETE FROM {table}\nWHERE ctid IN ("
            f"SELECT ctid FROM {table}{where}\nLIMIT {int(limit)})"
        )

    def insert_id(self, cursor):
        # lastrowid is an OID on psycopg2; the session sequence value is what callers expect
        cursor.execute("SELECT LASTVAL()")
        return cursor.fetchone()[0]

    def error_class(self) -> type[Exception]:
        import psycopg2  # pylint: disable=import-outside-toplevel,import-error
        return psycopg2.Error

    def connect(self, url: str):
        import psycopg2  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        return psycopg2.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port,
        )
