"""
Card and spending-profile taxonomy.

Two groups of enumerations:
  - Card side:    ``RewardType``, ``CreditTier``
  - Profile side: ``TravelFrequency``, ``RedemptionPreference``,
                  ``PaymentBehavior``, ``BonusImportance``, ``SpendingCategory``

``CREDIT_SCORE_PROXIES`` maps a credit tier to the numeric score the scorer
compares against card requirements.

This module has NO imports from any other ``card_recommender`` package.
"""

from enum import StrEnum


class RewardType(StrEnum):
    """Currency a card earns in."""

    POINTS = "points"
    """Transferable or portal points (Ultimate Rewards, Membership Rewards, ...)."""

    MILES = "miles"
    """Airline or bank miles; value depends heavily on travel habits."""

    CASHBACK = "cashback"
    """Flat cash currency; every redemption channel is worth the same."""


class CreditTier(StrEnum):
    """Self-reported credit score band."""

    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class TravelFrequency(StrEnum):
    """How often the user travels. Ordered from least to most."""

    NEVER = "never"
    RARELY = "rarely"
    OCCASIONALLY = "occasionally"
    FREQUENTLY = "frequently"
    VERY_FREQUENTLY = "very_frequently"


class RedemptionPreference(StrEnum):
    """How the user intends to spend their rewards."""

    CASHBACK = "cashback"
    TRAVEL = "travel"
    FLEXIBLE = "flexible"
    """Mix of optimal redemptions and cash; valued as a 70/30 blend."""

    MAXIMUM_VALUE = "maximum_value"
    """Willing to chase transfer partners for the best possible value."""


class PaymentBehavior(StrEnum):
    """Typical monthly statement payment."""

    FULL = "full"
    MINIMUM = "minimum"
    PARTIAL = "partial"


class BonusImportance(StrEnum):
    """Weight the user places on a sign-up bonus."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SpendingCategory(StrEnum):
    """Spending buckets of a ``SpendingProfile``.

    The first four have dedicated earn-rate and cap fields on ``CardRecord``;
    ``STREAMING`` and ``GENERAL`` always earn at the card's base rate.
    """

    GROCERIES = "groceries"
    DINING = "dining"
    TRAVEL = "travel"
    GAS = "gas"
    STREAMING = "streaming"
    GENERAL = "general"


# Categories with a dedicated ``<category>_earn_rate`` / ``<category>_cap`` pair.
BONUS_CATEGORIES: tuple[SpendingCategory, ...] = (
    SpendingCategory.GROCERIES,
    SpendingCategory.DINING,
    SpendingCategory.TRAVEL,
    SpendingCategory.GAS,
)

CREDIT_SCORE_PROXIES: dict[str, int] = {
    CreditTier.EXCELLENT: 750,
    CreditTier.GOOD:      700,
    CreditTier.FAIR:      650,
    CreditTier.POOR:      550,
}

# Unknown tiers are treated like "poor".
DEFAULT_CREDIT_SCORE_PROXY = 550


def credit_score_proxy(tier: str | None) -> int:
    """Map a free-text credit tier to its numeric proxy (unknown → 550)."""
    if not tier:
        return DEFAULT_CREDIT_SCORE_PROXY
    return CREDIT_SCORE_PROXIES.get(tier.strip().lower(), DEFAULT_CREDIT_SCORE_PROXY)
