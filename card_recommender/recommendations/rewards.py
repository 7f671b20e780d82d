"""
Category rewards calculator.

For each spending category:

    annual   = monthly_spend * 12
    capped   = min(annual, monthly_cap * 12)     # uncapped → capped = annual
    overflow = annual - capped
    reward   = capped * category_rate * epv + overflow * base_rate * epv

Overflow always earns at the base rate, never the bonus rate. Streaming and
general spend have no bonus field and earn at the base rate throughout.
``epv`` is the effective point value from ``point_valuation``.
"""

from __future__ import annotations

from typing import Optional

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.models.recommendation import CategoryBreakdownEntry
from card_recommender.recommendations.point_valuation import effective_point_value


def category_reward(
    monthly_spend: float,
    rate: float,
    base_rate: float,
    monthly_cap: Optional[float],
    point_value: float,
) -> tuple[float, float]:
    """Annual reward for one category and the reward forgone to the cap.

    Returns:
        ``(annual_reward, cap_impact)``; ``cap_impact`` is 0 when uncapped
        or when spend stays under the cap.
    """
    annual = monthly_spend * 12
    capped = annual if monthly_cap is None else min(annual, monthly_cap * 12)
    overflow = annual - capped
    reward = capped * rate * point_value + overflow * base_rate * point_value
    cap_impact = overflow * max(rate - base_rate, 0.0) * point_value
    return reward, cap_impact


def category_breakdown(
    card: CardRecord,
    profile: SpendingProfile,
    point_value: Optional[float] = None,
) -> list[CategoryBreakdownEntry]:
    """One entry per spending category, in ``SpendingCategory`` order.

    Args:
        card:        Catalog record.
        profile:     User profile.
        point_value: Effective point value; computed if omitted.
    """
    if point_value is None:
        point_value = effective_point_value(card, profile)

    entries: list[CategoryBreakdownEntry] = []
    for category, monthly in profile.monthly_spending.items():
        rate = card.earn_rate(category)
        reward, cap_impact = category_reward(
            monthly, rate, card.base_earn_rate, card.monthly_cap(category), point_value
        )
        entries.append(
            CategoryBreakdownEntry(
                category=category,
                annual_spending=monthly * 12,
                earn_rate=rate,
                annual_rewards=reward,
                cap_impact=cap_impact,
            )
        )
    return entries


def annual_rewards(
    card: CardRecord,
    profile: SpendingProfile,
    point_value: Optional[float] = None,
) -> float:
    """Yearly reward value of ``card`` for ``profile``; always >= 0."""
    return sum(
        entry.annual_rewards
        for entry in category_breakdown(card, profile, point_value)
    )
