"""SQL Server dialect."""

import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect


class SqlserverDialect(Dialect):
    """Dialect for SQL Server (schemes mssql, sqlserver)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mssql", "sqlserver")

    QUOTES: ClassVar[tuple[str, str]] = ("[", "]")

    F: ClassVar[dict[str, callable]] = {
        "random": lambda: "NEWID()",
    }

    def sql_limit(self, limit: int, offset: int = 0, ordered: bool = True) -> str:
        # OFFSET ... FETCH is only valid after an ORDER BY
        sql = "" if ordered else "\nORDER BY (SELECT NULL)"
        return sql + f"\nOFFSET {int(offset or 0)} ROWS FETCH NEXT {int(limit)} ROWS ONLY"

    def sql_delete(self, table: str, where: str, limit: Optional[int] = None) -> str:
        if limit is None:
            return f"DELETE FROM {table}{where}"
        return f"DELETE TOP ({int(limit)}) FROM {table}{where}"

    def insert_id(self, cursor):
        cursor.execute("SELECT @@IDENTITY")
        return cursor.fetchone()[0]

    def error_class(self) -> type[Exception]:
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        return pyodbc.Error

    def connect(self, url: str):
        import pyodbc  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        database = (parsed.path or "").lstrip("/") or None
        port = parsed.port or 1433
        server = parsed.hostname or "localhost"
        if port and port != 1433:
            server = f"{server},{port}"
        conn_str = (
            f"DRIVER={{ODBC Driver 17 for SQL Server}};"
            f"SERVER={server};"
            f"DATABASE={database or ''};"
            f"UID={parsed.username or ''};"
            f"PWD={parsed.password or ''}"
        )
        return pyodbc.connect(conn_str)
