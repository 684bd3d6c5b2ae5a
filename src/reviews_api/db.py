import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence

import psycopg2
import psycopg2.extras
from psycopg2.pool import ThreadedConnectionPool

from reviews_api import config

logger = logging.getLogger(__name__)

_POOL: Optional[ThreadedConnectionPool] = None


# PUBLIC_INTERFACE
def init_db_pool() -> None:
    """Initialize the global PostgreSQL connection pool."""
    global _POOL
    if _POOL is not None:
        return

    _POOL = ThreadedConnectionPool(
        minconn=config.pool_min(),
        maxconn=config.pool_max(),
        dsn=config.database_dsn(),
    )
    logger.info("Database connection pool initialized (max %d connections)", config.pool_max())


# PUBLIC_INTERFACE
def close_db_pool() -> None:
    """Close every pooled connection."""
    global _POOL
    if _POOL is None:
        return
    _POOL.closeall()
    _POOL = None
    logger.info("Database connection pool closed")


# PUBLIC_INTERFACE
@contextmanager
def connection() -> Iterator[Any]:
    """Borrow one connection from the pool for the duration of the block."""
    if _POOL is None:
        init_db_pool()
    assert _POOL is not None
    conn = _POOL.getconn()
    try:
        yield conn
    finally:
        if not conn.closed:
            # Reads leave a transaction open; never hand it back to the pool that way.
            conn.rollback()
        _POOL.putconn(conn)


# PUBLIC_INTERFACE
def get_db() -> Iterator[Any]:
    """FastAPI dependency: one scoped connection per request."""
    with connection() as conn:
        yield conn


def _dict_cursor(conn):
    return conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)


@contextmanager
def _rollback_on_error(conn) -> Iterator[None]:
    try:
        yield
    except psycopg2.Error:
        conn.rollback()
        raise


# PUBLIC_INTERFACE
def fetch_one(conn, query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
    """Fetch a single row as a dict, or None."""
    with _rollback_on_error(conn), _dict_cursor(conn) as cur:
        cur.execute(query, params or [])
        row = cur.fetchone()
        return dict(row) if row else None


# PUBLIC_INTERFACE
def fetch_all(conn, query: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
    """Fetch all rows as dicts."""
    with _rollback_on_error(conn), _dict_cursor(conn) as cur:
        cur.execute(query, params or [])
        rows = cur.fetchall()
        return [dict(r) for r in rows]


# PUBLIC_INTERFACE
def execute_script(conn, script: str) -> None:
    """Run a parameterless DDL script and commit it."""
    with _rollback_on_error(conn), conn.cursor() as cur:
        cur.execute(script)
        conn.commit()


# PUBLIC_INTERFACE
def execute_returning_optional(conn, query: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
    """Execute a statement with RETURNING and return the first row as dict, or None if nothing matched."""
    with _rollback_on_error(conn), _dict_cursor(conn) as cur:
        cur.execute(query, params or [])
        row = cur.fetchone()
        conn.commit()
        return dict(row) if row else None


# PUBLIC_INTERFACE
def execute_returning_one(conn, query: str, params: Optional[Sequence[Any]] = None) -> Dict[str, Any]:
    """Execute a statement with RETURNING and return the first row as dict."""
    with _rollback_on_error(conn), _dict_cursor(conn) as cur:
        cur.execute(query, params or [])
        row = cur.fetchone()
        if not row:
            conn.rollback()
            raise RuntimeError("Expected one row returned, got none.")
        conn.commit()
        return dict(row)
