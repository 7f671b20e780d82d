"""
Card catalog gateways: the engine's only source of card records.

Every gateway implements ``CardCatalogGateway.fetch_active_cards()`` and
returns a fresh list of active ``CardRecord`` objects in a stable order.
Store failures surface as ``CatalogUnavailable``; individual rows that
cannot become a ``CardRecord`` are logged and skipped.

Implementations
---------------
``StaticCardCatalog``  in-memory list (tests, embedding callers)
``JsonCardCatalog``    a JSON file holding a list of card objects
``SqliteCardCatalog``  the local ``credit_cards`` table
``HttpCardCatalog``    a PostgREST/Supabase endpoint (see ``http_catalog``)
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable, Mapping, Protocol

from pydantic import ValidationError

from card_recommender.models.card import CardRecord

logger = logging.getLogger(__name__)


# ── Errors ────────────────────────────────────────────────────────────────────


class CatalogUnavailable(RuntimeError):
    """Raised when the backing card store cannot be reached or read.

    Attributes:
        source: Human-readable description of the store (path or URL).
        reason: Underlying error message.
    """

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Card catalog unavailable ({source}): {reason}")


# ── Protocol ──────────────────────────────────────────────────────────────────


class CardCatalogGateway(Protocol):
    def fetch_active_cards(self) -> list[CardRecord]:
        ...


# ── Row conversion ────────────────────────────────────────────────────────────


def records_from_rows(rows: Iterable[Any], source: str) -> list[CardRecord]:
    """Convert raw rows to active ``CardRecord`` objects.

    Non-mapping rows and rows pydantic still rejects are skipped with a
    warning. Inactive rows are dropped.
    """
    cards: list[CardRecord] = []
    for index, row in enumerate(rows):
        if not isinstance(row, (Mapping, sqlite3.Row)):
            logger.warning("Skipping catalog row %d from %s: not an object", index, source)
            continue
        try:
            card = CardRecord.from_row(row)
        except (ValidationError, TypeError, ValueError) as exc:
            logger.warning("Skipping catalog row %d from %s: %s", index, source, exc)
            continue
        if card.is_active:
            cards.append(card)
    return cards


# ── Implementations ───────────────────────────────────────────────────────────


class StaticCardCatalog:
    """Serves a fixed list of cards (records or raw rows) in the given order."""

    def __init__(self, cards: Iterable[CardRecord | Mapping[str, Any]]) -> None:
        self._rows = list(cards)

    def fetch_active_cards(self) -> list[CardRecord]:
        cards: list[CardRecord] = []
        for row in self._rows:
            if isinstance(row, CardRecord):
                if row.is_active:
                    cards.append(row)
            else:
                cards.extend(records_from_rows([row], "static"))
        return cards


class JsonCardCatalog:
    """Reads cards from a JSON file.

    The file holds either a list of card objects or an object with a
    ``cards`` list. It is re-read on every fetch.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load_rows(self) -> list[Any]:
        """Raw card objects from the file, active or not.

        Raises:
            CatalogUnavailable: The file is missing, unreadable or not JSON.
        """
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise CatalogUnavailable(str(self.path), str(exc)) from exc

        if isinstance(payload, dict):
            payload = payload.get("cards", [])
        if not isinstance(payload, list):
            raise CatalogUnavailable(str(self.path), "expected a list of card objects")
        return payload

    def fetch_active_cards(self) -> list[CardRecord]:
        cards = records_from_rows(self.load_rows(), str(self.path))
        logger.debug("Loaded %d active cards from %s", len(cards), self.path)
        return cards


class SqliteCardCatalog:
    """Reads active cards from the local ``credit_cards`` table."""

    def __init__(
        self,
        db_path: str,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        self.db_path = db_path
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms

    def fetch_active_cards(self) -> list[CardRecord]:
        from card_recommender.db.connection import get_connection
        from card_recommender.db.repositories.card_repo import CardRepository

        if self.db_path != ":memory:" and not Path(self.db_path).exists():
            raise CatalogUnavailable(
                self.db_path, "database file does not exist; run 'card-recommender init-db'"
            )
        try:
            with get_connection(
                self.db_path, self.wal_mode, self.busy_timeout_ms, read_only=True
            ) as conn:
                rows = CardRepository(conn).fetch_active_rows()
        except sqlite3.Error as exc:
            raise CatalogUnavailable(self.db_path, str(exc)) from exc
        return records_from_rows(rows, self.db_path)
