"""
Shared pytest fixtures for the card recommender test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the catalog
    schema applied. Created anew for each test that requests it.
  - ``sample_cards``: The cards in ``config/cards/sample_cards.json``.
  - Small card / profile fixtures reused across test modules.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Generator

import pytest

from card_recommender.db.schema import apply_schema
from card_recommender.models.card import CardRecord
from card_recommender.models.profile import MonthlySpending, SpendingProfile

PROJECT_ROOT = Path(__file__).parent.parent
SAMPLE_CARDS_PATH = PROJECT_ROOT / "config" / "cards" / "sample_cards.json"
SAMPLE_PROFILE_PATH = PROJECT_ROOT / "config" / "profiles" / "sample_profile.json"


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the schema applied.

    Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    apply_schema(conn)
    yield conn
    conn.close()


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_card_rows() -> list[dict]:
    """Raw rows of the bundled sample catalog (one of them inactive)."""
    return json.loads(SAMPLE_CARDS_PATH.read_text(encoding="utf-8"))


@pytest.fixture
def sample_cards(sample_card_rows: list[dict]) -> list[CardRecord]:
    """Every sample card as a ``CardRecord``, in file order."""
    return [CardRecord.model_validate(row) for row in sample_card_rows]


@pytest.fixture
def flat_cashback_card() -> CardRecord:
    """A no-fee 2% cashback card with no bonus categories or welcome bonus."""
    return CardRecord(
        id="flat-2",
        name="Flat Two",
        issuer="Example Bank",
        reward_type="cashback",
        base_earn_rate=2.0,
        annual_fee=0,
        credit_score_requirement="good",
    )


@pytest.fixture
def chase_points_card() -> CardRecord:
    """A Chase points card with dining/travel bonuses and a $95 fee."""
    return CardRecord(
        id="chase-sapphire-preferred",
        name="Chase Sapphire Preferred",
        issuer="Chase",
        reward_type="points",
        base_earn_rate=1.0,
        dining_earn_rate=3.0,
        travel_earn_rate=2.0,
        annual_fee=95,
        point_value=0.0125,
        welcome_bonus="60,000 bonus points after you spend $4,000 in the first 3 months",
        credit_score_requirement="good",
    )


@pytest.fixture
def general_spender() -> SpendingProfile:
    """Good credit, $1,000/month of general spend, cashback redemption."""
    return SpendingProfile(
        annual_income=60_000,
        credit_score="good",
        monthly_spending=MonthlySpending(general=1000),
        travel_frequency="occasionally",
        redemption_preference="cashback",
        signup_bonus_importance="medium",
    )


@pytest.fixture
def sample_profile() -> SpendingProfile:
    """The bundled sample profile."""
    raw = json.loads(SAMPLE_PROFILE_PATH.read_text(encoding="utf-8"))
    return SpendingProfile.model_validate(raw)
