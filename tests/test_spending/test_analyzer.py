"""
Tests for card_recommender/spending/analyzer.py.

What we test
------------
categorize_transaction():
  - Ordered pattern table; first match wins; unmatched → general.

analyze_spending():
  - Only purchases (amount > 0) are counted.
  - Category totals, monthly averages over distinct months.
  - Pre-assigned categories are kept.
  - Insights, seasonal patterns, data quality and confidence level.
  - Empty history → empty analysis.

build_spending_profile():
  - Only the six profile categories are carried over.
  - Preferences override defaults; blanks keep defaults.

baseline_card_value() / improvement_potential().

load_transactions():
  - CSV and JSON readers; missing columns and bad rows raise ValueError.
"""

from __future__ import annotations

import json
from datetime import date

import pytest

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import MonthlySpending, SpendingProfile
from card_recommender.models.spending import Transaction
from card_recommender.recommendations.ranker import evaluate_card
from card_recommender.spending.analyzer import (
    analyze_spending,
    baseline_card_value,
    build_spending_profile,
    categorize_transaction,
    confidence_level,
    improvement_potential,
    load_transactions,
)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _tx(day: date, description: str, amount: float, category: str | None = None) -> Transaction:
    return Transaction(date=day, description=description, amount=amount, category=category)


def _history() -> list[Transaction]:
    return [
        _tx(date(2026, 1, 5), "WHOLE FOODS MARKET #123", 300),
        _tx(date(2026, 1, 10), "STARBUCKS STORE 1234", 50),
        _tx(date(2026, 2, 5), "WHOLE FOODS MARKET #123", 500),
        _tx(date(2026, 2, 12), "SHELL OIL 5555", 40),
        _tx(date(2026, 2, 20), "WHOLE FOODS REFUND", -100),
    ]


# ── Categorisation ────────────────────────────────────────────────────────────

class TestCategorize:
    @pytest.mark.parametrize("description,expected", [
        ("WHOLE FOODS MARKET #123", "groceries"),
        ("STARBUCKS STORE 1234", "dining"),
        ("SHELL OIL 5555", "gas"),
        ("UNITED AIRLINES", "travel"),
        ("NETFLIX.COM", "streaming"),
        ("MACYS #0042", "department_stores"),
        ("CVS/PHARMACY #123", "drug_stores"),
        ("AMAZON MKTP US", "online_shopping"),
        ("MTA NYCT PAYGO", "transit"),
        ("ACME HARDWARE", "general"),
        ("", "general"),
    ])
    def test_patterns(self, description, expected):
        assert categorize_transaction(description) == expected

    @pytest.mark.parametrize("description", [
        "CVS/PHARMACY #123", "RITE AID PHARMACY", "WALGREENS PHARMACY 0042",
    ])
    def test_pharmacy_is_not_a_department_store(self, description):
        # "macy" sits inside "pharmacy"
        assert categorize_transaction(description) == "drug_stores"

    def test_first_match_wins(self):
        # costco is listed under groceries before warehouse clubs
        assert categorize_transaction("COSTCO WHSE #0001") == "groceries"


# ── Analysis ──────────────────────────────────────────────────────────────────

class TestAnalyzeSpending:
    def test_totals_and_averages(self):
        analysis = analyze_spending(_history())
        assert analysis.category_totals == pytest.approx(
            {"groceries": 800.0, "dining": 50.0, "gas": 40.0}
        )
        assert analysis.monthly_spending == pytest.approx(
            {"groceries": 400.0, "dining": 25.0, "gas": 20.0}
        )
        assert analysis.total_spending == pytest.approx(890.0)
        assert analysis.months_of_data == 2
        assert analysis.transaction_count == 4

    def test_insights(self):
        insights = analyze_spending(_history()).insights
        assert insights[0].startswith("groceries represents 90%")
        assert any("concentrated" in text for text in insights)
        # exactly $400/month of groceries does not trip the > $400 rule
        assert not any("grocery spending" in text for text in insights)

    def test_data_quality(self):
        analysis = analyze_spending(_history())
        # volume 10 + two months 15 + three categories 10 + descriptions 10
        assert analysis.data_quality == pytest.approx(45.0)
        assert analysis.confidence_level == "medium"

    def test_preassigned_category(self):
        analysis = analyze_spending([_tx(date(2026, 3, 1), "ACME HARDWARE", 80, category="Travel")])
        assert analysis.category_totals == {"travel": 80.0}

    def test_merchant_frequency(self):
        analysis = analyze_spending(_history())
        assert analysis.merchant_frequency["WHOLE FOODS MARKET #"] == 2

    def test_seasonal_patterns(self):
        history = [
            _tx(date(2025, 12, 10), "ACME HARDWARE", 1200),
            _tx(date(2026, 7, 4), "UNITED AIRLINES", 600),
            _tx(date(2026, 3, 4), "UNITED AIRLINES", 900),
        ]
        patterns = analyze_spending(history).seasonal_patterns
        assert set(patterns) == {"holiday_shopping", "summer_travel"}

    def test_no_seasonal_patterns(self):
        assert analyze_spending(_history()).seasonal_patterns == {}

    def test_empty_history(self):
        analysis = analyze_spending([])
        assert analysis.total_spending == 0.0
        assert analysis.transaction_count == 0
        assert analysis.confidence_level == "low"

    def test_only_refunds(self):
        analysis = analyze_spending([_tx(date(2026, 1, 1), "REFUND", -20)])
        assert analysis.transaction_count == 0

    @pytest.mark.parametrize("quality,expected", [(71, "high"), (70, "medium"), (41, "medium"), (40, "low")])
    def test_confidence_level(self, quality, expected):
        assert confidence_level(quality) == expected


# ── Profile construction ──────────────────────────────────────────────────────

class TestBuildSpendingProfile:
    def test_defaults(self):
        history = _history() + [_tx(date(2026, 2, 1), "MTA NYCT PAYGO", 120)]
        profile = build_spending_profile(analyze_spending(history))
        assert profile.monthly_spending.groceries == pytest.approx(400.0)
        assert profile.monthly_spending.dining == pytest.approx(25.0)
        assert profile.monthly_spending.general == 0.0
        # transit has no profile bucket
        assert profile.total_monthly_spend == pytest.approx(445.0)
        assert profile.credit_score == "good"
        assert profile.annual_income == 50_000.0

    def test_preferences_override(self):
        profile = build_spending_profile(
            analyze_spending(_history()),
            {
                "credit_score": "excellent",
                "travel_frequency": None,
                "redemption_preference": "travel",
                "current_cards": ["amex-gold"],
                "monthly_spending": {"general": 99999},
            },
        )
        assert profile.credit_score == "excellent"
        assert profile.travel_frequency == "occasionally"
        assert profile.redemption_preference == "travel"
        assert profile.current_cards == ("amex-gold",)
        assert profile.monthly_spending.general == 0.0

    def test_invalid_preference(self):
        with pytest.raises(ValueError):
            build_spending_profile(analyze_spending(_history()), {"travel_frequency": "daily"})


class TestCurrentCardAnalysis:
    def test_baseline(self):
        profile = SpendingProfile(monthly_spending=MonthlySpending(general=1000))
        assert baseline_card_value(profile) == pytest.approx(120.0)

    def test_improvement_potential(self):
        profile = SpendingProfile(
            monthly_spending=MonthlySpending(general=1000),
            redemption_preference="cashback",
        )
        card = CardRecord(id="flat", reward_type="cashback", base_earn_rate=2.0)
        rec = evaluate_card(card, profile)
        assert improvement_potential([rec], profile) == pytest.approx(rec.net_annual_benefit - 120.0)
        assert improvement_potential([], profile) == 0.0

    def test_improvement_never_negative(self):
        profile = SpendingProfile(monthly_spending=MonthlySpending(general=1000))
        card = CardRecord(id="fee", reward_type="cashback", base_earn_rate=0, annual_fee=500)
        rec = evaluate_card(card, profile)
        assert improvement_potential([rec], profile) == 0.0


# ── Loading ───────────────────────────────────────────────────────────────────

class TestLoadTransactions:
    def test_csv(self, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text(
            "Date,Description,Amount,Category\n"
            "2026-01-05,WHOLE FOODS MARKET,\"1,200.50\",\n"
            "2026-01-06,Team dinner,80,dining\n",
            encoding="utf-8",
        )
        transactions = load_transactions(path)
        assert len(transactions) == 2
        assert transactions[0].amount == pytest.approx(1200.5)
        assert transactions[0].category is None
        assert transactions[1].category == "dining"

    def test_csv_missing_columns(self, tmp_path):
        path = tmp_path / "statement.csv"
        path.write_text("date,memo\n2026-01-05,x\n", encoding="utf-8")
        with pytest.raises(ValueError, match="missing required columns"):
            load_transactions(path)

    def test_json_wrapped(self, tmp_path):
        path = tmp_path / "statement.json"
        path.write_text(json.dumps({"transactions": [
            {"date": "2026-01-05", "description": "NETFLIX.COM", "amount": 15.49},
        ]}), encoding="utf-8")
        (tx,) = load_transactions(path)
        assert tx.description == "NETFLIX.COM"

    def test_bad_rows_reported_together(self, tmp_path):
        path = tmp_path / "statement.json"
        path.write_text(json.dumps([
            {"date": "2026-01-05", "description": "ok", "amount": 10},
            {"date": "not a date", "description": "bad", "amount": 10},
            {"date": "2026-01-07", "description": "bad", "amount": "n/a"},
        ]), encoding="utf-8")
        with pytest.raises(ValueError, match="2 row"):
            load_transactions(path)

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "statement.json"
        path.write_text("{oops", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_transactions(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_transactions(tmp_path / "absent.csv")
