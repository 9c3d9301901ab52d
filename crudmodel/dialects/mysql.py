"""MySQL dialect."""

import urllib.parse
from typing import ClassVar, Optional

from .base import Dialect


class MysqlDialect(Dialect):
    """Dialect for MySQL (scheme mysql)."""

    SUPPORTED_SCHEMA: ClassVar[tuple[str, ...]] = ("mysql",)

    PLACEHOLDER: ClassVar[str] = "%s"

    QUOTES: ClassVar[tuple[str, str]] = ("`", "`")

    SQL_LIST_FIELDS: ClassVar[str] = (
        "SELECT column_name FROM information_schema.columns"
        " WHERE table_schema = DATABASE() AND table_name = {placeholder}"
        " ORDER BY ordinal_position"
    )

    F: ClassVar[dict[str, callable]] = {
        "random": lambda: "RAND()",
    }

    def sql_delete(self, table: str, where: str, limit: Optional[int] = None) -> str:
        sql = f"DELETE FROM {table}{where}"
        if limit is not None:
            sql += f"\nLIMIT {int(limit)}"
        return sql

    def error_class(self) -> type[Exception]:
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        return pymysql.Error

    def connect(self, url: str):
        import pymysql  # pylint: disable=import-outside-toplevel,import-error
        parsed = urllib.parse.urlparse(url)
        return pymysql.connect(
            host=parsed.hostname,
            user=parsed.username,
            password=parsed.password,
            database=(parsed.path or "")[1:] or None,
            port=parsed.port or 3306,
        )
