"""Database client.

Thread-local connection reuse for DoltDB / MySQL (pymysql). Repository
calls run in worker threads via ``asyncio.to_thread``, so each worker thread
keeps its own connection and reconnects when it goes stale.
"""

import threading
from contextlib import contextmanager
from typing import Any, Generator

import pymysql
from pymysql.cursors import DictCursor

from ..config import get_database_config

_thread_local = threading.local()


def _connect() -> pymysql.Connection:
    return pymysql.connect(
        **get_database_config(),
        autocommit=True,
        charset="utf8mb4",
        cursorclass=DictCursor,
    )


def get_connection() -> pymysql.Connection:
    """Get a thread-local database connection, reusing it if alive."""
    conn = getattr(_thread_local, "conn", None)
    if conn is not None:
        try:
            conn.ping(reconnect=False)
            return conn
        except pymysql.Error:
            try:
                conn.close()
            except pymysql.Error:
                pass
    conn = _connect()
    _thread_local.conn = conn
    return conn


@contextmanager
def get_cursor() -> Generator[Any, None, None]:
    """
    Context manager for a dict cursor on the thread-local connection.

    Example:
        with get_cursor() as cursor:
            cursor.execute("SELECT * FROM organizations WHERE ein = %s", (ein,))
            row = cursor.fetchone()
    """
    conn = get_connection()
    with conn.cursor() as cursor:
        yield cursor


def execute_query(sql: str, params: tuple | None = None, fetch: str = "all") -> list[dict] | dict | None:
    """Execute a query and return results.

    Args:
        sql: SQL query with %s placeholders
        params: Query parameters
        fetch: 'all' for fetchall(), 'one' for fetchone(), 'none' for no fetch

    Returns:
        Query results as list of dicts, single dict, or None
    """
    with get_cursor() as cursor:
        cursor.execute(sql, params or ())

        if fetch == "all":
            return cursor.fetchall()
        elif fetch == "one":
            return cursor.fetchone()
        return None


def check_connection() -> bool:
    """Return True if the database answers a trivial query."""
    try:
        execute_query("SELECT 1", fetch="one")
        return True
    except pymysql.Error:
        return False


def close_connection():
    """Close this thread's connection, if any."""
    conn = getattr(_thread_local, "conn", None)
    if conn is not None:
        _thread_local.conn = None
        try:
            conn.close()
        except pymysql.Error:
            pass
