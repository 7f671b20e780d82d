"""
Personalization scoring: how well one card suits one user, 0–100.

Score formula (additive, then clamped to [0, 100])
--------------------------------------------------
    total = credit_fit + category_alignment + travel_alignment
            + fee_justification + bonus_importance

Component explanations
----------------------
credit_fit:
    User tier → proxy score (excellent 750, good 700, fair 650, poor or
    unknown 550). +25 / +20 / +15 when the card requires excellent / good /
    fair and the proxy meets it. −10 when the proxy is below 650, whatever
    the requirement.

category_alignment (0–30):
    Σ over bonus categories of share_of_spend * (rate − base_rate) * 10,
    for categories whose rate beats the base rate. Zero total spend → 0.

travel_alignment (miles cards only):
    very_frequently +15, frequently +10, occasionally +5, rarely −5,
    never −10.

fee_justification:
    No fee → +10. Otherwise fee / annual_rewards:
    < 0.3 → +15, < 0.5 → +10, < 0.7 → +5, else −10.
    Zero rewards count as unjustified (−10).

bonus_importance:
    high   → min(welcome_value / 50, 15)
    medium → min(welcome_value / 100, 8)
    low    → 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.recommendations import rewards, welcome_bonus
from card_recommender.taxonomy.card_taxonomy import (
    BONUS_CATEGORIES,
    BonusImportance,
    CreditTier,
    RewardType,
    TravelFrequency,
    credit_score_proxy,
)
from card_recommender.utils.numbers import clamp

_REQUIREMENT_BONUS: dict[str, tuple[int, float]] = {
    CreditTier.EXCELLENT.value: (750, 25.0),
    CreditTier.GOOD.value:      (700, 20.0),
    CreditTier.FAIR.value:      (650, 15.0),
}
_SUBPRIME_THRESHOLD = 650
_SUBPRIME_PENALTY = -10.0

_CATEGORY_ALIGNMENT_CAP = 30.0

_TRAVEL_ALIGNMENT: dict[TravelFrequency, float] = {
    TravelFrequency.VERY_FREQUENTLY: 15.0,
    TravelFrequency.FREQUENTLY:      10.0,
    TravelFrequency.OCCASIONALLY:     5.0,
    TravelFrequency.RARELY:          -5.0,
    TravelFrequency.NEVER:          -10.0,
}

# (upper bound on fee / rewards, points)
_FEE_RATIO_STEPS: tuple[tuple[float, float], ...] = (
    (0.3, 15.0),
    (0.5, 10.0),
    (0.7, 5.0),
)
_NO_FEE_POINTS = 10.0
_UNJUSTIFIED_FEE_POINTS = -10.0

# importance → (divisor, ceiling)
_BONUS_WEIGHT: dict[BonusImportance, tuple[float, float]] = {
    BonusImportance.HIGH:   (50.0, 15.0),
    BonusImportance.MEDIUM: (100.0, 8.0),
}


@dataclass
class ScoreComponents:
    """Additive parts of a personalization score.

    Attributes:
        credit_fit:         Credit-tier fit bonus or penalty.
        category_alignment: 0–30, bonus-rate fit to the user's spend mix.
        travel_alignment:   Miles-card fit to travel frequency (0 otherwise).
        fee_justification:  Fee vs rewards.
        bonus_importance:   Welcome bonus weighted by stated importance.
    """

    credit_fit:         float
    category_alignment: float
    travel_alignment:   float
    fee_justification:  float
    bonus_importance:   float

    @property
    def total(self) -> float:
        return (
            self.credit_fit
            + self.category_alignment
            + self.travel_alignment
            + self.fee_justification
            + self.bonus_importance
        )


# ── Component functions ───────────────────────────────────────────────────────


def credit_fit(card: CardRecord, profile: SpendingProfile) -> float:
    proxy = credit_score_proxy(profile.credit_score)
    points = 0.0
    requirement = _REQUIREMENT_BONUS.get(card.credit_score_requirement)
    if requirement is not None:
        threshold, bonus = requirement
        if proxy >= threshold:
            points += bonus
    if proxy < _SUBPRIME_THRESHOLD:
        points += _SUBPRIME_PENALTY
    return points


def category_alignment(card: CardRecord, profile: SpendingProfile) -> float:
    total = profile.total_monthly_spend
    if total <= 0:
        return 0.0
    points = 0.0
    for category in BONUS_CATEGORIES:
        rate = card.earn_rate(category)
        if rate > card.base_earn_rate:
            share = profile.monthly_spending.amount(category) / total
            points += share * (rate - card.base_earn_rate) * 10
    return min(points, _CATEGORY_ALIGNMENT_CAP)


def travel_alignment(card: CardRecord, profile: SpendingProfile) -> float:
    if card.reward_type != RewardType.MILES:
        return 0.0
    return _TRAVEL_ALIGNMENT.get(profile.travel_frequency, 0.0)


def fee_justification(card: CardRecord, annual_rewards: float) -> float:
    if card.annual_fee == 0:
        return _NO_FEE_POINTS
    if annual_rewards <= 0:
        return _UNJUSTIFIED_FEE_POINTS
    ratio = card.annual_fee / annual_rewards
    for bound, points in _FEE_RATIO_STEPS:
        if ratio < bound:
            return points
    return _UNJUSTIFIED_FEE_POINTS


def bonus_importance(profile: SpendingProfile, welcome_value: float) -> float:
    weight = _BONUS_WEIGHT.get(profile.signup_bonus_importance)
    if weight is None:
        return 0.0
    divisor, ceiling = weight
    return min(welcome_value / divisor, ceiling)


# ── Public API ────────────────────────────────────────────────────────────────


def score_components(
    card: CardRecord,
    profile: SpendingProfile,
    annual_rewards: Optional[float] = None,
    welcome_value: Optional[float] = None,
) -> ScoreComponents:
    """Compute every additive part of the personalization score.

    Args:
        card:           Catalog record.
        profile:        User profile.
        annual_rewards: Output of ``rewards.annual_rewards``; computed if omitted.
        welcome_value:  Output of ``welcome_bonus.welcome_value``; computed if omitted.
    """
    if annual_rewards is None:
        annual_rewards = rewards.annual_rewards(card, profile)
    if welcome_value is None:
        welcome_value = welcome_bonus.welcome_value(card, profile)
    return ScoreComponents(
        credit_fit=credit_fit(card, profile),
        category_alignment=category_alignment(card, profile),
        travel_alignment=travel_alignment(card, profile),
        fee_justification=fee_justification(card, annual_rewards),
        bonus_importance=bonus_importance(profile, welcome_value),
    )


def score(
    card: CardRecord,
    profile: SpendingProfile,
    annual_rewards: Optional[float] = None,
    welcome_value: Optional[float] = None,
) -> float:
    """Personalization score in [0, 100]."""
    components = score_components(card, profile, annual_rewards, welcome_value)
    return clamp(components.total, 0.0, 100.0)
