"""
Point valuation: converts a card's reward currency into per-channel values
personalised by the user's travel habits.

Heuristic table
---------------
``ISSUER_VALUATIONS`` is an ordered tuple of ``IssuerValuation`` rows. A row
matches when its ``issuer_pattern`` is a substring of the lower-cased issuer
(``None`` matches any issuer) AND its ``reward_type`` equals the card's.
The first matching row wins, so issuer-specific rows precede generic ones.

Each channel is a ``TieredValue``: a default plus optional overrides keyed by
``TravelFrequency``. New issuers are added by appending a row; the scoring
code never branches on issuer names.

Cards with no matching row are valued at their nominal ``point_value`` on
every channel (0.01 if the catalog value is unusable), flexibility 0.5.

``optimal_value`` is always ``max(travel_value, transfer_value)``.

Effective point value
---------------------
One scalar selected by ``redemption_preference``:
    cashback       → cashback channel
    travel         → travel channel
    maximum_value  → optimal
    flexible       → 0.7 * optimal + 0.3 * cashback
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from card_recommender.models.card import BASELINE_POINT_VALUE, CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.models.recommendation import DynamicPointValue
from card_recommender.taxonomy.card_taxonomy import (
    RedemptionPreference,
    RewardType,
    TravelFrequency,
)

FALLBACK_FLEXIBILITY = 0.5
FLEXIBLE_OPTIMAL_WEIGHT = 0.7
FLEXIBLE_CASHBACK_WEIGHT = 0.3


@dataclass(frozen=True)
class TieredValue:
    """A channel value that may depend on travel frequency."""

    default: float
    by_frequency: Mapping[str, float] = field(default_factory=dict)

    def resolve(self, frequency: str) -> float:
        return self.by_frequency.get(frequency, self.default)


def _flat(value: float) -> TieredValue:
    return TieredValue(value)


def _tiered(default: float, **overrides: float) -> TieredValue:
    return TieredValue(default, MappingProxyType(dict(overrides)))


@dataclass(frozen=True)
class IssuerValuation:
    """One row of the issuer heuristic table."""

    issuer_pattern: Optional[str]
    reward_type: RewardType
    cashback: TieredValue
    travel: TieredValue
    transfer: TieredValue
    statement_credit: TieredValue
    gift_cards: TieredValue
    flexibility: float

    def matches(self, card: CardRecord) -> bool:
        if card.reward_type != self.reward_type:
            return False
        if self.issuer_pattern is None:
            return True
        return self.issuer_pattern in card.issuer.lower()


_VF = TravelFrequency.VERY_FREQUENTLY.value
_FR = TravelFrequency.FREQUENTLY.value
_OC = TravelFrequency.OCCASIONALLY.value

_AIRLINE_MILES = _tiered(0.8, **{_VF: 1.8, _FR: 1.5, _OC: 1.2})

ISSUER_VALUATIONS: tuple[IssuerValuation, ...] = (
    # Chase Ultimate Rewards
    IssuerValuation(
        issuer_pattern="chase",
        reward_type=RewardType.POINTS,
        cashback=_flat(1.0),
        travel=_tiered(1.25, **{_FR: 1.5, _VF: 1.5}),
        transfer=_tiered(1.7, **{_VF: 2.1}),
        statement_credit=_flat(1.0),
        gift_cards=_flat(1.0),
        flexibility=0.85,
    ),
    # American Express Membership Rewards; weak cash redemption
    IssuerValuation(
        issuer_pattern="american express",
        reward_type=RewardType.POINTS,
        cashback=_flat(0.6),
        travel=_tiered(1.0, **{_FR: 1.4, _VF: 1.4}),
        transfer=_tiered(1.8, **{_VF: 2.2}),
        statement_credit=_flat(0.6),
        gift_cards=_flat(1.0),
        flexibility=0.75,
    ),
    IssuerValuation(
        issuer_pattern="amex",
        reward_type=RewardType.POINTS,
        cashback=_flat(0.6),
        travel=_tiered(1.0, **{_FR: 1.4, _VF: 1.4}),
        transfer=_tiered(1.8, **{_VF: 2.2}),
        statement_credit=_flat(0.6),
        gift_cards=_flat(1.0),
        flexibility=0.75,
    ),
    # Capital One Venture miles
    IssuerValuation(
        issuer_pattern="capital one",
        reward_type=RewardType.MILES,
        cashback=_flat(1.0),
        travel=_flat(1.0),
        transfer=_tiered(1.4, **{_VF: 1.7}),
        statement_credit=_flat(1.0),
        gift_cards=_flat(1.0),
        flexibility=0.9,
    ),
    # Citi ThankYou Points
    IssuerValuation(
        issuer_pattern="citi",
        reward_type=RewardType.POINTS,
        cashback=_flat(1.0),
        travel=_flat(1.25),
        transfer=_tiered(1.6, **{_VF: 1.9}),
        statement_credit=_flat(1.0),
        gift_cards=_flat(1.0),
        flexibility=0.8,
    ),
    # Flat cash: every channel is worth face value
    IssuerValuation(
        issuer_pattern=None,
        reward_type=RewardType.CASHBACK,
        cashback=_flat(1.0),
        travel=_flat(1.0),
        transfer=_flat(1.0),
        statement_credit=_flat(1.0),
        gift_cards=_flat(1.0),
        flexibility=1.0,
    ),
    # Co-branded airline miles
    IssuerValuation(
        issuer_pattern=None,
        reward_type=RewardType.MILES,
        cashback=_flat(0.8),
        travel=_AIRLINE_MILES,
        transfer=_AIRLINE_MILES,
        statement_credit=_flat(0.8),
        gift_cards=_flat(0.9),
        flexibility=0.6,
    ),
)


def find_valuation(
    card: CardRecord,
    table: tuple[IssuerValuation, ...] = ISSUER_VALUATIONS,
) -> Optional[IssuerValuation]:
    """Return the first table row matching ``card``, or ``None``."""
    for row in table:
        if row.matches(card):
            return row
    return None


def nominal_point_value(card: CardRecord) -> float:
    """The card's catalog point value, or the 0.01 baseline if unusable."""
    value = card.point_value
    if value is None or not math.isfinite(value) or value <= 0:
        return BASELINE_POINT_VALUE
    return value


def valuate(
    card: CardRecord,
    profile: SpendingProfile,
    table: tuple[IssuerValuation, ...] = ISSUER_VALUATIONS,
) -> DynamicPointValue:
    """Compute the per-channel point values of ``card`` for ``profile``.

    Never fails: cards with no heuristic row fall back to their nominal value.

    Args:
        card:    Catalog record.
        profile: User profile (only ``travel_frequency`` is read).
        table:   Heuristic table; overridable for tests and experiments.

    Returns:
        ``DynamicPointValue`` with all channels > 0.
    """
    row = find_valuation(card, table)
    if row is None:
        base = nominal_point_value(card)
        return DynamicPointValue(
            cashback_value=base,
            travel_value=base,
            transfer_value=base,
            statement_credit=base,
            gift_cards=base,
            optimal_value=base,
            redemption_flexibility=FALLBACK_FLEXIBILITY,
        )

    frequency = profile.travel_frequency.value
    travel = row.travel.resolve(frequency)
    transfer = row.transfer.resolve(frequency)
    return DynamicPointValue(
        cashback_value=row.cashback.resolve(frequency),
        travel_value=travel,
        transfer_value=transfer,
        statement_credit=row.statement_credit.resolve(frequency),
        gift_cards=row.gift_cards.resolve(frequency),
        optimal_value=max(travel, transfer),
        redemption_flexibility=row.flexibility,
    )


def select_point_value(
    valuation: DynamicPointValue,
    preference: RedemptionPreference,
) -> float:
    """Pick the scalar point value matching a redemption preference."""
    if preference == RedemptionPreference.TRAVEL:
        return valuation.travel_value
    if preference == RedemptionPreference.MAXIMUM_VALUE:
        return valuation.optimal_value
    if preference == RedemptionPreference.FLEXIBLE:
        return (
            valuation.optimal_value * FLEXIBLE_OPTIMAL_WEIGHT
            + valuation.cashback_value * FLEXIBLE_CASHBACK_WEIGHT
        )
    return valuation.cashback_value


def effective_point_value(
    card: CardRecord,
    profile: SpendingProfile,
    valuation: Optional[DynamicPointValue] = None,
) -> float:
    """Dollar value of one point for this user; always > 0.

    Args:
        card:      Catalog record.
        profile:   User profile.
        valuation: Pre-computed ``valuate(card, profile)``; computed if omitted.
    """
    if valuation is None:
        valuation = valuate(card, profile)
    value = select_point_value(valuation, profile.redemption_preference)
    if not math.isfinite(value) or value <= 0:
        return nominal_point_value(card)
    return value
