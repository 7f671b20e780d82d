"""
Explainability text: risk factors, optimization tips and the reasoning bundle.

Every rule is evaluated independently and appends at most one message (the
per-category rules append one per category). Output order follows rule
order, so the same inputs always give the same lists.

Messages cite raw figures (fees, percentages, multipliers, point values)
without currency formatting; rendering is the presentation layer's job.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.models.recommendation import (
    CategoryBreakdownEntry,
    DynamicPointValue,
    RecommendationReasoning,
)
from card_recommender.recommendations import rewards, welcome_bonus
from card_recommender.recommendations.point_valuation import valuate
from card_recommender.taxonomy.card_taxonomy import (
    BONUS_CATEGORIES,
    CreditTier,
    TravelFrequency,
    credit_score_proxy,
)

HIGH_FEE_RISK_THRESHOLD = 300.0
FEE_COVERAGE_MULTIPLE = 1.5
EXCELLENT_CREDIT_PROXY = 750
EXPERTISE_FLEXIBILITY = 0.7
TRANSFER_PREMIUM = 1.5
CONCENTRATION_SPEND = 2000.0
BONUS_TIMING_VALUE = 500.0
HIGH_FEE_DRAWBACK = 200.0
HIGH_OPTIMAL_VALUE = 1.5


def _fmt(value: float) -> str:
    """Render a number without a trailing ``.0``."""
    return f"{value:g}"


def _capped_overflows(card: CardRecord, profile: SpendingProfile) -> Iterable[str]:
    for category in BONUS_CATEGORIES:
        cap = card.monthly_cap(category)
        if cap is None:
            continue
        if profile.monthly_spending.amount(category) * 12 > cap * 12:
            yield category.value


# ── Risk assessor ─────────────────────────────────────────────────────────────


def risks(
    card: CardRecord,
    profile: SpendingProfile,
    annual_rewards: Optional[float] = None,
    valuation: Optional[DynamicPointValue] = None,
) -> list[str]:
    """Warnings for this (card, user) pair, in rule order; may be empty.

    ``annual_rewards`` and ``valuation`` are computed when omitted.
    """
    if valuation is None:
        valuation = valuate(card, profile)
    if annual_rewards is None:
        annual_rewards = rewards.annual_rewards(card, profile)

    messages: list[str] = []

    fee = card.annual_fee
    if fee > HIGH_FEE_RISK_THRESHOLD and annual_rewards < fee * FEE_COVERAGE_MULTIPLE:
        messages.append(
            f"High annual fee (${_fmt(fee)}) may not be justified by your rewards"
        )

    if card.foreign_transaction_fee > 0 and profile.travel_frequency != TravelFrequency.NEVER:
        messages.append(
            f"{_fmt(card.foreign_transaction_fee)}% foreign transaction fee "
            "reduces value when travelling abroad"
        )

    if (
        card.credit_score_requirement == CreditTier.EXCELLENT
        and credit_score_proxy(profile.credit_score) < EXCELLENT_CREDIT_PROXY
    ):
        messages.append("Requires excellent credit; application is likely to be declined")

    if valuation.redemption_flexibility < EXPERTISE_FLEXIBILITY:
        messages.append("Getting the best point value requires redemption expertise")

    for category in _capped_overflows(card, profile):
        messages.append(f"{category.capitalize()} spending exceeds the bonus category cap")

    return messages


# ── Optimization advisor ──────────────────────────────────────────────────────


def tips(
    card: CardRecord,
    profile: SpendingProfile,
    annual_rewards: Optional[float] = None,
    welcome_value: Optional[float] = None,
    valuation: Optional[DynamicPointValue] = None,
) -> list[str]:
    """Suggestions for getting more out of the card, in rule order.

    Omitted figures are computed from ``card`` and ``profile``.
    """
    if valuation is None:
        valuation = valuate(card, profile)
    if annual_rewards is None:
        annual_rewards = rewards.annual_rewards(card, profile)
    if welcome_value is None:
        welcome_value = welcome_bonus.welcome_value(card, profile)

    messages: list[str] = []

    if valuation.transfer_value > valuation.cashback_value * TRANSFER_PREMIUM:
        messages.append(
            "Transfer points to airline or hotel partners for up to "
            f"{_fmt(valuation.transfer_value)} per point"
        )

    for category in BONUS_CATEGORIES:
        rate = card.earn_rate(category)
        annual_spend = profile.monthly_spending.amount(category) * 12
        if rate > card.base_earn_rate and annual_spend > CONCENTRATION_SPEND:
            messages.append(
                f"Put your {category.value} spending on this card to earn {_fmt(rate)}x rewards"
            )

    if welcome_value > BONUS_TIMING_VALUE:
        messages.append(
            "Time large purchases to meet the welcome bonus spending requirement"
        )

    fee = card.annual_fee
    if fee > 0:
        monthly_rewards = annual_rewards / 12
        if monthly_rewards > 0 and math.isfinite(fee / monthly_rewards):
            months = math.ceil(fee / monthly_rewards)
            messages.append(f"Annual fee pays for itself in {months} months of normal spending")
        else:
            messages.append(
                "Annual fee is not recovered by rewards at your current spending"
            )

    return messages


# ── Reasoning bundle ──────────────────────────────────────────────────────────


def build_reasoning(
    card: CardRecord,
    valuation: DynamicPointValue,
    breakdown: list[CategoryBreakdownEntry],
) -> RecommendationReasoning:
    """Short benefits / drawbacks / best-use-cases lists for one card.

    Best-use cases are the two bonus categories with the highest rate above
    the base rate; ties keep category order.
    """
    benefits: list[str] = []
    if card.annual_fee == 0:
        benefits.append("No annual fee makes this a risk-free choice")
    if valuation.optimal_value > HIGH_OPTIMAL_VALUE:
        benefits.append(
            f"Points can be worth up to {_fmt(valuation.optimal_value)} with optimal redemption"
        )

    drawbacks: list[str] = []
    if card.annual_fee > HIGH_FEE_DRAWBACK:
        drawbacks.append(
            f"High annual fee of ${_fmt(card.annual_fee)} requires consistent use to justify"
        )
    if valuation.redemption_flexibility < EXPERTISE_FLEXIBILITY:
        drawbacks.append("Requires travel expertise to maximize point value")

    bonus_entries = [
        entry for entry in breakdown
        if entry.category in BONUS_CATEGORIES and entry.earn_rate > card.base_earn_rate
    ]
    bonus_entries.sort(key=lambda e: -e.earn_rate)
    use_cases = [
        f"{_fmt(entry.earn_rate)}x rewards on {entry.category}"
        for entry in bonus_entries[:2]
    ]

    return RecommendationReasoning(
        primary_benefits=benefits,
        potential_drawbacks=drawbacks,
        best_use_cases=use_cases,
    )
