"""Named database URLs and the connections opened from them."""

import logging
from typing import Any, Callable, Optional, Union

from .dialects import Dialect, get_dialect_for_url
from .result import Result

logger = logging.getLogger("crudmodel")


_urls: dict[str, Union[str, Callable[[], str]]] = {}
def connect(database_url: Union[str, Callable[[], str]], name: Optional[str] = "default"):
    """Register database_url under name.

    database_url is either a URL string such as "sqlite:///path.db" or a method
    returning one, called every time a connection is opened.
    """
    if not isinstance(database_url, str) and not callable(database_url):
        raise ValueError("database_url must be a str or a method returning a str")
    _urls[name or "default"] = database_url


def _get_url(name: Optional[str] = "default") -> str:
    try:
        url = _urls[name or "default"]
    except KeyError as error:
        raise ValueError(f"No connection configured with name=`{name}`") from error
    if callable(url):
        url = url()
    return url


def _get_connection(name: Optional[str] = "default") -> "Connection":
    """Open a new Connection for a registered name."""
    return Connection(_get_url(name))


class Connection:
    """A raw DB-API connection paired with the Dialect of its URL scheme.

    Statements run in autocommit fashion: each execute() commits on success and
    rolls back on failure before re-raising.
    """

    def __init__(self, url: str):
        self.url = url
        self.dialect: Dialect = get_dialect_for_url(url)
        self._raw = None

    @property
    def raw(self) -> Any:
        """The underlying driver connection, opened on first use."""
        if self._raw is None:
            self._raw = self.dialect.connect(self.url)
        return self._raw

    def execute(self, sql: str, parameters=(), fetch_insert_id: bool = False) -> Result:
        """Run one statement and return its rows, row count and optionally the generated id.

        Raises:
            The engine's error class (see Dialect.error_class) when the statement fails.
        """
        logger.debug("%s %r", sql, tuple(parameters))
        cursor = self.raw.cursor()
        try:
            cursor.execute(sql, tuple(parameters))
            rows = []
            if cursor.description:
                names = [column[0] for column in cursor.description]
                rows = [dict(zip(names, row)) for row in cursor.fetchall()]
            self.raw.commit()
            insert_id = self.dialect.insert_id(cursor) if fetch_insert_id else None
            return Result(rows=rows, affected_rows=cursor.rowcount, insert_id=insert_id)
        except self.dialect.error_class():
            self.raw.rollback()
            raise
        finally:
            cursor.close()

    def close(self) -> None:
        if self._raw is not None:
            self._raw.close()
            self._raw = None
