"""
Tests for card_recommender/recommendations/point_valuation.py.

What we test
------------
valuate():
  - Issuer rows resolve per travel frequency (Chase, Amex, Capital One, Citi).
  - Issuer match needs both the issuer substring and the reward type.
  - Cashback cards are worth face value on every channel.
  - Co-branded miles fall back to the generic airline-miles row.
  - Cards with no row use their nominal point_value, flexibility 0.5.
  - optimal_value == max(travel_value, transfer_value).
  - A custom table can be passed in.

effective_point_value():
  - Selects the channel for each redemption preference.
  - flexible = 0.7 * optimal + 0.3 * cashback.
  - Always > 0 for every reward type / frequency / preference.
"""

from __future__ import annotations

import itertools

import pytest

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.recommendations.point_valuation import (
    FALLBACK_FLEXIBILITY,
    ISSUER_VALUATIONS,
    IssuerValuation,
    TieredValue,
    effective_point_value,
    find_valuation,
    valuate,
)
from card_recommender.taxonomy.card_taxonomy import (
    RedemptionPreference,
    RewardType,
    TravelFrequency,
)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _card(issuer: str, reward_type: str, point_value: float = 0.01) -> CardRecord:
    return CardRecord(id=f"{issuer}-{reward_type}", issuer=issuer, reward_type=reward_type,
                      point_value=point_value)


def _profile(frequency: str = "occasionally", preference: str = "cashback") -> SpendingProfile:
    return SpendingProfile(travel_frequency=frequency, redemption_preference=preference)


# ── Issuer rows ───────────────────────────────────────────────────────────────

class TestIssuerRows:
    def test_chase_frequent_traveller(self):
        v = valuate(_card("Chase", "points"), _profile("frequently"))
        assert v.cashback_value == pytest.approx(1.0)
        assert v.travel_value == pytest.approx(1.5)
        assert v.transfer_value == pytest.approx(1.7)
        assert v.optimal_value == pytest.approx(1.7)
        assert v.redemption_flexibility == pytest.approx(0.85)

    def test_chase_very_frequent_transfer_boost(self):
        v = valuate(_card("JPMorgan Chase", "points"), _profile("very_frequently"))
        assert v.transfer_value == pytest.approx(2.1)
        assert v.travel_value == pytest.approx(1.5)
        assert v.optimal_value == pytest.approx(2.1)

    def test_chase_occasional_travel(self):
        v = valuate(_card("Chase", "points"), _profile("occasionally"))
        assert v.travel_value == pytest.approx(1.25)
        assert v.transfer_value == pytest.approx(1.7)

    @pytest.mark.parametrize("issuer", ["American Express", "Amex"])
    def test_amex_weak_cashback(self, issuer):
        v = valuate(_card(issuer, "points"), _profile("rarely"))
        assert v.cashback_value == pytest.approx(0.6)
        assert v.travel_value == pytest.approx(1.0)
        assert v.transfer_value == pytest.approx(1.8)
        assert v.redemption_flexibility == pytest.approx(0.75)

    @pytest.mark.parametrize("frequency", ["frequently", "very_frequently"])
    def test_amex_travel_boost_for_heavy_travellers(self, frequency):
        v = valuate(_card("American Express", "points"), _profile(frequency))
        assert v.travel_value == pytest.approx(1.4)

    @pytest.mark.parametrize("frequency", ["frequently", "very_frequently"])
    def test_chase_travel_boost_for_heavy_travellers(self, frequency):
        v = valuate(_card("Chase", "points"), _profile(frequency))
        assert v.travel_value == pytest.approx(1.5)

    def test_capital_one_miles(self):
        v = valuate(_card("Capital One", "miles"), _profile("very_frequently"))
        assert v.travel_value == pytest.approx(1.0)
        assert v.transfer_value == pytest.approx(1.7)
        assert v.optimal_value == pytest.approx(1.7)
        assert v.redemption_flexibility == pytest.approx(0.9)

    def test_citi_points(self):
        v = valuate(_card("Citi", "points"), _profile("occasionally"))
        assert v.travel_value == pytest.approx(1.25)
        assert v.transfer_value == pytest.approx(1.6)
        v = valuate(_card("Citibank", "points"), _profile("very_frequently"))
        assert v.transfer_value == pytest.approx(1.9)

    def test_cashback_face_value(self):
        v = valuate(_card("Discover", "cashback"), _profile("never"))
        for value in (v.cashback_value, v.travel_value, v.transfer_value,
                      v.statement_credit, v.gift_cards, v.optimal_value):
            assert value == pytest.approx(1.0)
        assert v.redemption_flexibility == pytest.approx(1.0)

    @pytest.mark.parametrize("frequency,expected", [
        ("very_frequently", 1.8),
        ("frequently", 1.5),
        ("occasionally", 1.2),
        ("rarely", 0.8),
        ("never", 0.8),
    ])
    def test_airline_miles_by_frequency(self, frequency, expected):
        v = valuate(_card("Delta", "miles"), _profile(frequency))
        assert v.travel_value == pytest.approx(expected)
        assert v.transfer_value == pytest.approx(expected)
        assert v.cashback_value == pytest.approx(0.8)
        assert v.gift_cards == pytest.approx(0.9)
        assert v.redemption_flexibility == pytest.approx(0.6)

    def test_issuer_row_requires_matching_reward_type(self):
        # Chase miles is not Ultimate Rewards; it falls through to airline miles.
        row = find_valuation(_card("Chase", "miles"))
        assert row is not None
        assert row.issuer_pattern is None
        assert row.reward_type == RewardType.MILES


# ── Fallback ──────────────────────────────────────────────────────────────────

class TestFallback:
    def test_unmatched_card_uses_nominal_value(self):
        v = valuate(_card("Regional Bank", "points", point_value=0.008), _profile())
        assert v.cashback_value == pytest.approx(0.008)
        assert v.travel_value == pytest.approx(0.008)
        assert v.optimal_value == pytest.approx(0.008)
        assert v.redemption_flexibility == FALLBACK_FLEXIBILITY

    def test_capital_one_points_has_no_row(self):
        assert find_valuation(_card("Capital One", "points")) is None

    def test_unusable_point_value_uses_baseline(self):
        v = valuate(_card("Regional Bank", "points", point_value=-3), _profile())
        assert v.cashback_value == pytest.approx(0.01)

    def test_custom_table(self):
        table = (
            IssuerValuation(
                issuer_pattern="regional",
                reward_type=RewardType.POINTS,
                cashback=TieredValue(0.9),
                travel=TieredValue(1.1, {"frequently": 1.3}),
                transfer=TieredValue(1.0),
                statement_credit=TieredValue(0.9),
                gift_cards=TieredValue(0.9),
                flexibility=0.7,
            ),
        )
        v = valuate(_card("Regional Bank", "points"), _profile("frequently"), table=table)
        assert v.travel_value == pytest.approx(1.3)
        assert v.optimal_value == pytest.approx(1.3)

    def test_optimal_is_max_of_travel_and_transfer_for_every_row(self):
        for row, frequency in itertools.product(ISSUER_VALUATIONS, TravelFrequency):
            travel = row.travel.resolve(frequency.value)
            transfer = row.transfer.resolve(frequency.value)
            card = _card(row.issuer_pattern or "Some Bank", row.reward_type.value)
            v = valuate(card, _profile(frequency.value))
            assert v.optimal_value == pytest.approx(max(v.travel_value, v.transfer_value))
            if find_valuation(card) is row:
                assert v.optimal_value == pytest.approx(max(travel, transfer))


# ── Effective point value ─────────────────────────────────────────────────────

class TestEffectivePointValue:
    @pytest.mark.parametrize("preference,expected", [
        ("cashback", 1.0),
        ("travel", 1.5),
        ("maximum_value", 1.7),
        ("flexible", 0.7 * 1.7 + 0.3 * 1.0),
    ])
    def test_chase_by_preference(self, preference, expected):
        card = _card("Chase", "points")
        value = effective_point_value(card, _profile("frequently", preference))
        assert value == pytest.approx(expected)

    def test_precomputed_valuation_is_used(self):
        card = _card("Chase", "points")
        profile = _profile("frequently", "maximum_value")
        valuation = valuate(card, _profile("very_frequently"))
        assert effective_point_value(card, profile, valuation) == pytest.approx(2.1)

    def test_always_positive(self):
        issuers = ["Chase", "American Express", "Capital One", "Citi", "Nowhere Credit Union"]
        for issuer, reward_type, frequency, preference in itertools.product(
            issuers, RewardType, TravelFrequency, RedemptionPreference
        ):
            card = _card(issuer, reward_type.value)
            value = effective_point_value(card, _profile(frequency.value, preference.value))
            assert value > 0
