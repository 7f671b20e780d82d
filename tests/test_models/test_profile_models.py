"""
Tests for card_recommender/models/profile.py and models/spending.py.

What we test
------------
MonthlySpending:
  - Negative, missing or non-numeric amounts become 0.
  - items() follows SpendingCategory order; total / has_spending.

SpendingProfile:
  - Enum fields accept mixed case and hyphen/space spellings.
  - Unknown enum values are rejected.
  - credit_score is free text, lower-cased; blank → "good".
  - current_cards accepts a single string and drops blanks.
  - total_monthly_spend / total_annual_spend.

Transaction:
  - amount parsing, category normalisation, month bucket.
"""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from card_recommender.models.profile import MonthlySpending, SpendingProfile
from card_recommender.models.spending import Transaction
from card_recommender.taxonomy.card_taxonomy import (
    BonusImportance,
    RedemptionPreference,
    TravelFrequency,
)


class TestMonthlySpending:
    def test_bad_amounts_become_zero(self):
        spend = MonthlySpending(groceries=-50, dining="abc", travel=None, gas="120.5")
        assert spend.groceries == 0.0
        assert spend.dining == 0.0
        assert spend.travel == 0.0
        assert spend.gas == pytest.approx(120.5)

    def test_items_order(self):
        spend = MonthlySpending(general=5, groceries=1)
        assert [name for name, _ in spend.items()] == [
            "groceries", "dining", "travel", "gas", "streaming", "general",
        ]

    def test_total_and_has_spending(self):
        assert MonthlySpending().total == 0.0
        assert not MonthlySpending().has_spending
        spend = MonthlySpending(groceries=100, streaming=15)
        assert spend.total == pytest.approx(115.0)
        assert spend.has_spending

    def test_amount_unknown_category_is_zero(self):
        assert MonthlySpending(groceries=10).amount("transit") == 0.0


class TestSpendingProfile:
    def test_enum_spellings(self):
        profile = SpendingProfile(
            travel_frequency="Very Frequently",
            redemption_preference="maximum-value",
            signup_bonus_importance="HIGH",
        )
        assert profile.travel_frequency == TravelFrequency.VERY_FREQUENTLY
        assert profile.redemption_preference == RedemptionPreference.MAXIMUM_VALUE
        assert profile.signup_bonus_importance == BonusImportance.HIGH

    def test_unknown_enum_rejected(self):
        with pytest.raises(ValidationError):
            SpendingProfile(travel_frequency="daily")

    def test_credit_score_free_text(self):
        assert SpendingProfile(credit_score="Excellent").credit_score == "excellent"
        assert SpendingProfile(credit_score="").credit_score == "good"
        assert SpendingProfile(credit_score="platinum").credit_score == "platinum"

    def test_current_cards_coercion(self):
        assert SpendingProfile(current_cards="amex-gold").current_cards == ("amex-gold",)
        assert SpendingProfile(current_cards=["a", " ", "b"]).current_cards == ("a", "b")
        assert SpendingProfile(current_cards=None).current_cards == ()

    def test_annual_totals(self, sample_profile):
        assert sample_profile.total_monthly_spend == pytest.approx(2345.0)
        assert sample_profile.total_annual_spend == pytest.approx(2345.0 * 12)

    def test_nested_dict_monthly_spending(self):
        profile = SpendingProfile.model_validate({"monthly_spending": {"dining": "250"}})
        assert profile.monthly_spending.dining == pytest.approx(250.0)


class TestTransaction:
    def test_amount_string(self):
        tx = Transaction(date="2026-03-14", description=" Whole Foods ", amount="$1,204.50")
        assert tx.amount == pytest.approx(1204.5)
        assert tx.description == "Whole Foods"
        assert tx.date == date(2026, 3, 14)

    def test_invalid_amount_rejected(self):
        with pytest.raises(ValidationError):
            Transaction(date="2026-03-14", description="x", amount="n/a")

    def test_category_normalised(self):
        tx = Transaction(date="2026-03-14", amount=5, category="Online Shopping")
        assert tx.category == "online_shopping"
        assert Transaction(date="2026-03-14", amount=5, category="  ").category is None

    def test_month_bucket(self):
        assert Transaction(date=date(2025, 12, 1), amount=1).month == "2025-12"
