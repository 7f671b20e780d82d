"""
Base repository with the SQL helpers shared by catalog repositories.

Repositories receive an open ``sqlite3.Connection`` (normally from
``get_connection()``) and never commit themselves; the connection context
manager owns the transaction. SQL is written out by hand, and rows leave
the repository as pydantic models.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """Thin logging wrapper around a ``sqlite3.Connection``.

    Attributes:
        conn: The connection every statement runs on.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        logger.debug("SQL: %s | params: %s", " ".join(sql.split()), params)
        return self.conn.execute(sql, params)

    def executemany(self, sql: str, params_list: list[Params]) -> sqlite3.Cursor:
        logger.debug("SQL (many): %s | count: %d", " ".join(sql.split()), len(params_list))
        return self.conn.executemany(sql, params_list)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        """First row of a query, or ``None`` when it returns nothing."""
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        return self.execute(sql, params).fetchall()
