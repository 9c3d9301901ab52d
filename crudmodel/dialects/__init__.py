"""Database dialects, picked from the scheme of a database URL.

    >>> get_dialect_for_url("mysql+pymysql://app@db/hr").quote("offices")
    '`offices`'
"""

import urllib.parse

from .base import Dialect
from .sqlite import SqliteDialect
from .mysql import MysqlDialect
from .postgres import PostgresDialect
from .sqlserver import SqlserverDialect

DIALECTS: dict[str, type[Dialect]] = {
    scheme: dialect_cls
    for dialect_cls in (SqliteDialect, MysqlDialect, PostgresDialect, SqlserverDialect)
    for scheme in dialect_cls.SUPPORTED_SCHEMA
}
"""Dialect class for each supported URL scheme."""


def get_dialect_for_scheme(scheme: str) -> Dialect:
    """Return a Dialect for a URL scheme; case and any `+driver` suffix are ignored."""
    normalized = (scheme or "").split("+")[0].lower()
    try:
        return DIALECTS[normalized]()
    except KeyError as error:
        raise ValueError(f"Unsupported database scheme: {scheme}") from error


def get_dialect_for_url(url: str) -> Dialect:
    """Return the Dialect matching the scheme of a database URL."""
    return get_dialect_for_scheme(urllib.parse.urlparse(url).scheme)


__all__ = [
    "DIALECTS",
    "Dialect",
    "SqliteDialect",
    "MysqlDialect",
    "PostgresDialect",
    "SqlserverDialect",
    "get_dialect_for_scheme",
    "get_dialect_for_url",
]
