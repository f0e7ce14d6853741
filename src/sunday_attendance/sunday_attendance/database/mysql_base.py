from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DataAccessError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def _describe(exc: mysql.connector.Error) -> str:
    return getattr(exc, "msg", None) or str(exc)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, context: str, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits when the block finishes, rolls back on any error. Driver errors are
    translated into ``DataAccessError("Failed to <context>: ...")``.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("Database connection failed while trying to %s: %s", context, e)
        raise DataAccessError(f"Failed to {context}: {_describe(e)}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        conn.rollback()
        logger.error("Database error while trying to %s: %s", context, e)
        raise DataAccessError(
            f"Failed to {context}: {_describe(e)}",
            duplicate=getattr(e, "errno", None) == errorcode.ER_DUP_ENTRY,
        ) from e
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for ``IN (...)``; callers must not pass an empty sequence."""
    if not values:
        raise ValueError("in_clause() needs at least one value")
    return ", ".join(["%s"] * len(values))


def as_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    return bool(int(value)) if not isinstance(value, bool) else value


def iter_chunks(values: Sequence[Any], size: int = 500) -> Iterator[Sequence[Any]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]
