"""
SQLite connection management for the local card catalog.

Two entry points:

``open_connection()``
    Opens and configures a raw connection (``sqlite3.Row`` rows, busy
    timeout, optional WAL). Writers get the parent directory created for
    them; readers (``read_only=True``) need an existing file and run with
    ``PRAGMA query_only``, so a missing catalog is an error instead of a
    fresh empty database.

``get_connection()``
    Context manager around ``open_connection()``. Writable connections
    commit on clean exit; every connection rolls back on exception and is
    closed.

Usage::

    from card_recommender.db.connection import get_connection

    with get_connection("data/db/cards.db") as conn:          # import-cards
        CardRepository(conn).upsert_many(cards)

    with get_connection("data/db/cards.db", read_only=True) as conn:
        rows = CardRepository(conn).fetch_active_rows()        # catalog reads
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def open_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
    read_only: bool = False,
) -> sqlite3.Connection:
    """Open ``db_path`` and apply the catalog's connection settings.

    Args:
        db_path:         SQLite file path, or ``":memory:"``.
        wal_mode:        Switch writable file databases to WAL journaling.
        busy_timeout_ms: Lock wait in milliseconds.
        read_only:       Open an existing file without write access.

    Raises:
        sqlite3.OperationalError: The file cannot be opened (for readers,
            including when it does not exist).
    """
    timeout_s = busy_timeout_ms / 1000
    in_memory = db_path == MEMORY_DB

    if not in_memory:
        if read_only and not Path(db_path).is_file():
            raise sqlite3.OperationalError(f"unable to open database file: {db_path}")
        if not read_only:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=timeout_s)

    conn.row_factory = sqlite3.Row
    try:
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if read_only:
            conn.execute("PRAGMA query_only = ON;")
        # journal_mode is persistent and needs write access
        elif wal_mode and not in_memory:
            conn.execute("PRAGMA journal_mode = WAL;")
    except sqlite3.Error:
        conn.close()
        raise

    logger.debug("Opened %s SQLite connection to %s", "read-only" if read_only else "writable", db_path)
    return conn


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
    read_only: bool = False,
) -> Generator[sqlite3.Connection, None, None]:
    """Yield a configured connection; commit (writers) or roll back, then close."""
    conn = open_connection(db_path, wal_mode, busy_timeout_ms, read_only)
    try:
        yield conn
        if not read_only:
            conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
