"""
Welcome bonus evaluator: free-text bonus description → dollar estimate.

Bonus text is marketing copy ("60,000 bonus points after you spend $4,000 in
the first 3 months", "$200 cash back", "5% back up to $150"). Parsing is an
ordered tuple of independent ``BonusRule`` objects; the first rule that
returns a value wins.

Rules (in order)
----------------
1. points_or_miles : ``<N>[k] [bonus] points|miles``
                     → N * effective point value, × 0.70 when the dollar
                     spend requirement would take more than 6 months to
                     meet at the user's current monthly spend.
2. dollar_amount   : the first ``$M`` → M, unless a percentage is followed
                     by a ``$M`` cap (that pair belongs to rule 3).
3. percent_capped  : ``N% … $M`` → M * N / 100.
4. (none)          : 0.

Unparseable or missing text evaluates to 0; nothing here raises.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Callable, Optional

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.recommendations.point_valuation import effective_point_value
from card_recommender.utils.numbers import to_float

logger = logging.getLogger(__name__)

MAX_MONTHS_TO_MEET = 6.0
HARD_TO_EARN_DISCOUNT = 0.70

_POINTS_RE = re.compile(
    r"(\d[\d,]*(?:\.\d+)?)\s*(k)?\s*(?:bonus\s+)?(points|miles)\b",
    re.IGNORECASE,
)
_DOLLAR_RE = re.compile(r"\$\s*(\d[\d,]*(?:\.\d+)?)")
_PERCENT_RE = re.compile(r"(\d+(?:\.\d+)?)\s*%")


@dataclass(frozen=True)
class BonusContext:
    """Inputs a rule may need besides the text itself."""

    point_value: float
    monthly_spend: float


@dataclass(frozen=True)
class BonusRule:
    """One extraction rule: returns a dollar value, or ``None`` if it does not apply."""

    name: str
    extract: Callable[[str, BonusContext], Optional[float]]


def spend_requirement(text: str) -> Optional[float]:
    """First dollar amount in ``text``, read as the minimum-spend requirement."""
    match = _DOLLAR_RE.search(text)
    return to_float(match.group(1)) if match else None


def _points_or_miles(text: str, ctx: BonusContext) -> Optional[float]:
    match = _POINTS_RE.search(text)
    if match is None:
        return None
    magnitude = to_float(match.group(1))
    if magnitude is None:
        return None
    if match.group(2):
        magnitude *= 1000

    value = magnitude * ctx.point_value
    requirement = spend_requirement(text)
    if requirement is not None:
        if ctx.monthly_spend <= 0:
            value *= HARD_TO_EARN_DISCOUNT
        elif requirement / ctx.monthly_spend > MAX_MONTHS_TO_MEET:
            value *= HARD_TO_EARN_DISCOUNT
    return value


def _percent_cap(text: str) -> Optional[tuple[re.Match, re.Match]]:
    """A percentage followed later by a dollar amount (its cap), if present."""
    percent = _PERCENT_RE.search(text)
    if percent is None:
        return None
    cap = _DOLLAR_RE.search(text, percent.end())
    if cap is None:
        return None
    return percent, cap


def _dollar_amount(text: str, ctx: BonusContext) -> Optional[float]:
    if _percent_cap(text) is not None:
        return None
    match = _DOLLAR_RE.search(text)
    return to_float(match.group(1)) if match else None


def _percent_capped(text: str, ctx: BonusContext) -> Optional[float]:
    pair = _percent_cap(text)
    if pair is None:
        return None
    percent, cap = pair
    pct = to_float(percent.group(1))
    amount = to_float(cap.group(1))
    if pct is None or amount is None:
        return None
    return amount * pct / 100


BONUS_RULES: tuple[BonusRule, ...] = (
    BonusRule("points_or_miles", _points_or_miles),
    BonusRule("dollar_amount", _dollar_amount),
    BonusRule("percent_capped", _percent_capped),
)


def parse_bonus(
    text: Optional[str],
    point_value: float,
    monthly_spend: float,
    rules: tuple[BonusRule, ...] = BONUS_RULES,
) -> float:
    """Apply ``rules`` in order to ``text``; first non-``None`` result wins.

    Returns:
        Dollar estimate >= 0. Missing text, no match, or a non-finite result
        all give 0.
    """
    if not text or not text.strip():
        return 0.0
    ctx = BonusContext(point_value=point_value, monthly_spend=monthly_spend)
    for rule in rules:
        value = rule.extract(text, ctx)
        if value is None:
            continue
        if not math.isfinite(value) or value < 0:
            logger.debug("Bonus rule %s gave unusable value %r for %r", rule.name, value, text)
            return 0.0
        return value
    return 0.0


def welcome_value(
    card: CardRecord,
    profile: SpendingProfile,
    point_value: Optional[float] = None,
) -> float:
    """Discounted dollar estimate of the card's welcome bonus for this user."""
    if point_value is None:
        point_value = effective_point_value(card, profile)
    return parse_bonus(card.welcome_bonus, point_value, profile.total_monthly_spend)
