"""
Repository for the ``credit_cards`` catalog table.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from card_recommender.db.repositories.base import BaseRepository
from card_recommender.models.card import CardRecord

logger = logging.getLogger(__name__)

_COLUMNS: tuple[str, ...] = (
    "id",
    "name",
    "issuer",
    "reward_type",
    "base_earn_rate",
    "groceries_earn_rate",
    "dining_earn_rate",
    "travel_earn_rate",
    "gas_earn_rate",
    "groceries_cap",
    "dining_cap",
    "travel_cap",
    "gas_cap",
    "annual_fee",
    "point_value",
    "welcome_bonus",
    "credit_score_requirement",
    "foreign_transaction_fee",
    "application_url",
    "image_url",
    "is_active",
)

_COLUMN_LIST = ", ".join(_COLUMNS)
_PLACEHOLDERS = ", ".join("?" for _ in _COLUMNS)
_UPDATE_SET = ", ".join(f"{col} = excluded.{col}" for col in _COLUMNS if col != "id")

_UPSERT_SQL = (
    f"INSERT INTO credit_cards ({_COLUMN_LIST}) VALUES ({_PLACEHOLDERS}) "
    f"ON CONFLICT (id) DO UPDATE SET {_UPDATE_SET}, "
    "updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now');"
)


def _to_params(card: CardRecord) -> tuple:
    data = card.model_dump(mode="json")
    data["is_active"] = 1 if card.is_active else 0
    return tuple(data[col] for col in _COLUMNS)


class CardRepository(BaseRepository):
    """Read/write access to the ``credit_cards`` table."""

    def upsert(self, card: CardRecord) -> None:
        """Insert ``card`` or replace the existing row with the same id.

        Raises:
            ValueError: ``card.id`` is empty.
        """
        if not card.id:
            raise ValueError(f"Card {card.name!r} has no id; cannot store it.")
        self.execute(_UPSERT_SQL, _to_params(card))

    def upsert_many(self, cards: Iterable[CardRecord]) -> int:
        """Upsert every card; returns the number of rows written."""
        params = []
        for card in cards:
            if not card.id:
                raise ValueError(f"Card {card.name!r} has no id; cannot store it.")
            params.append(_to_params(card))
        if params:
            self.executemany(_UPSERT_SQL, params)
        logger.info("Upserted %d card(s)", len(params))
        return len(params)

    def get_by_id(self, card_id: str) -> Optional[CardRecord]:
        row = self.fetchone("SELECT * FROM credit_cards WHERE id = ?;", (card_id,))
        return CardRecord.from_row(row) if row else None

    def fetch_active_rows(self) -> list[sqlite3.Row]:
        """Raw active rows in a stable order (issuer, name, id)."""
        return self.fetchall(
            "SELECT * FROM credit_cards WHERE is_active = 1 ORDER BY issuer, name, id;"
        )

    def fetch_active(self) -> list[CardRecord]:
        return [CardRecord.from_row(row) for row in self.fetch_active_rows()]

    def fetch_all(self) -> list[CardRecord]:
        rows = self.fetchall("SELECT * FROM credit_cards ORDER BY issuer, name, id;")
        return [CardRecord.from_row(row) for row in rows]

    def count(self, active_only: bool = False) -> int:
        sql = "SELECT COUNT(*) AS n FROM credit_cards"
        if active_only:
            sql += " WHERE is_active = 1"
        row = self.fetchone(sql + ";")
        return int(row["n"]) if row else 0

    def set_active(self, card_id: str, is_active: bool) -> bool:
        """Flip the active flag; returns ``False`` if no card has ``card_id``."""
        cursor = self.execute(
            """
            UPDATE credit_cards
               SET is_active = ?, updated_at = strftime('%Y-%m-%dT%H:%M:%SZ', 'now')
             WHERE id = ?;
            """,
            (1 if is_active else 0, card_id),
        )
        return cursor.rowcount > 0
