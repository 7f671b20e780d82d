"""
SQLite schema for the card catalog.

One table, ``credit_cards``, whose columns mirror ``CardRecord``. Category
earn rates and caps are nullable: NULL (or 0) means "earns at the base rate"
and "uncapped" respectively. ``is_active`` is stored as 0/1.

Every statement uses ``IF NOT EXISTS`` so ``apply_schema()`` can run on each
start-up and in every test.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_CREDIT_CARDS = """
CREATE TABLE IF NOT EXISTS credit_cards (
    id                        TEXT    PRIMARY KEY,
    name                      TEXT    NOT NULL,
    issuer                    TEXT    NOT NULL,
    reward_type               TEXT    NOT NULL DEFAULT 'points'
                                      CHECK (reward_type IN ('points', 'miles', 'cashback')),
    base_earn_rate            REAL    NOT NULL DEFAULT 1.0,
    groceries_earn_rate       REAL,
    dining_earn_rate          REAL,
    travel_earn_rate          REAL,
    gas_earn_rate             REAL,
    groceries_cap             REAL,
    dining_cap                REAL,
    travel_cap                REAL,
    gas_cap                   REAL,
    annual_fee                REAL    NOT NULL DEFAULT 0,
    point_value               REAL    NOT NULL DEFAULT 0.01,
    welcome_bonus             TEXT,
    credit_score_requirement  TEXT    NOT NULL DEFAULT 'good',
    foreign_transaction_fee   REAL    NOT NULL DEFAULT 0,
    application_url           TEXT,
    image_url                 TEXT,
    is_active                 INTEGER NOT NULL DEFAULT 1,
    updated_at                TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_credit_cards_active
    ON credit_cards (is_active, issuer, name);
"""

_ALL_DDL: list[str] = [_DDL_CREDIT_CARDS]

ALL_TABLE_NAMES: list[str] = ["credit_cards"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Create the catalog tables and indexes on ``conn`` if missing."""
    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)
    conn.commit()
    logger.info("Schema applied: %d table(s) created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Names of the tables present in ``conn``, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name;"
    ).fetchall()
    return [row[0] for row in rows]
