import os
from contextlib import contextmanager
from typing import Iterator

import psycopg

# Seconds to wait for Postgres before giving up on a connection.
DEFAULT_CONNECT_TIMEOUT = 10


def get_database_url() -> str:
    """Get the database URL from environment variables."""
    url = os.environ["DATABASE_URL"]
    return url


def get_connect_timeout() -> int:
    """Get the connection timeout, from PACER_DB_CONNECT_TIMEOUT if set."""
    raw = os.getenv("PACER_DB_CONNECT_TIMEOUT")
    if not raw:
        return DEFAULT_CONNECT_TIMEOUT
    try:
        timeout = int(raw)
    except ValueError as e:
        raise ValueError(
            f"PACER_DB_CONNECT_TIMEOUT must be an integer, got {raw!r}"
        ) from e
    if timeout < 1:
        raise ValueError(f"PACER_DB_CONNECT_TIMEOUT must be positive, got {timeout}")
    return timeout


def get_sqlalchemy_database_url() -> str:
    """Get the database URL formatted for SQLAlchemy.

    Alembic migrations run through SQLAlchemy. Automatically converts
    postgresql:// to postgresql+psycopg:// to ensure psycopg3 is used
    instead of psycopg2.
    """
    url = get_database_url()
    if url.startswith("postgresql://"):
        url = url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


@contextmanager
def get_db_connection() -> Iterator[psycopg.Connection]:
    """Get a database connection context manager.

    Explicitly closes the connection, so a run save or a history query never
    holds a connection open past the request that needed it. Callers that
    write several rows together (a run and its samples) open a transaction
    on the connection themselves.
    """
    url = get_database_url()
    conn = psycopg.connect(url, connect_timeout=get_connect_timeout())
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def get_db_cursor() -> Iterator[psycopg.Cursor]:
    """Get a database cursor context manager.

    Automatically commits the transaction on successful completion,
    or rolls back on exception.
    """
    with get_db_connection() as conn:
        with conn.cursor() as cursor:
            try:
                yield cursor
                # Commit the transaction on successful completion
                conn.commit()
            except Exception:
                # Rollback on error (though psycopg does this automatically)
                conn.rollback()
                raise
