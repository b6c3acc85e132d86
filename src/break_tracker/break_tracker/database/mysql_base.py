from __future__ import annotations

import asyncio
import functools
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, TypeVar

import mysql.connector

from ..core.exceptions import TransportError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
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


@contextmanager
def transport_errors(operation: str) -> Iterator[None]:
    """Translate driver failures into TransportError.

    Callers that need a more specific mapping (e.g. IntegrityError) catch it
    inside this block first.
    """
    try:
        yield
    except mysql.connector.Error as exc:
        logger.warning("MySQL %s failed: %s", operation, exc)
        raise TransportError(f"{operation} failed: {exc}") from exc


async def run_blocking(func: Callable[..., T], /, *args: Any, **kwargs: Any) -> T:
    """Run a blocking driver call on a worker thread so the event loop keeps going."""
    return await asyncio.to_thread(functools.partial(func, *args, **kwargs))
