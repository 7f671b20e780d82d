"""
Recommendation orchestrator: evaluates every catalog card for one user,
ranks them, and returns the top N.

Usage flow
----------
1. recommend(profile, catalog, max_results=5)
   -> catalog.fetch_active_cards()          (I/O; may raise CatalogUnavailable)
   -> rank_cards(profile, cards, max_results)

2. rank_cards(profile, cards, max_results)
   -> evaluate_card(card, profile)  per card (pure; optionally threaded)
   -> stable sort by ranking_score descending
   -> first max_results

Ranking key
-----------
    ranking_score = personalization_score * 0.6 + (net_annual_benefit / 10) * 0.4

Ties keep catalog order. A card whose evaluation raises is logged and turned
into a zero-valued recommendation so one bad row never aborts the batch.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import TYPE_CHECKING, Iterable

from card_recommender.models.card import CardRecord
from card_recommender.models.profile import SpendingProfile
from card_recommender.models.recommendation import DynamicPointValue, Recommendation
from card_recommender.recommendations.advisor import build_reasoning, risks, tips
from card_recommender.recommendations.point_valuation import (
    effective_point_value,
    valuate,
)
from card_recommender.recommendations.rewards import category_breakdown
from card_recommender.recommendations.scorer import score
from card_recommender.recommendations.welcome_bonus import welcome_value
from card_recommender.utils.numbers import clamp, finite

if TYPE_CHECKING:
    from card_recommender.catalog.gateway import CardCatalogGateway

logger = logging.getLogger(__name__)

DEFAULT_MAX_RESULTS = 5

SCORE_WEIGHT = 0.6
BENEFIT_WEIGHT = 0.4
BENEFIT_SCALE = 10.0

_BASE_CONFIDENCE = 70.0
_CONFIDENT_SCORE = 50.0
_CONFIDENT_FLEXIBILITY = 0.7


def ranking_score(personalization_score: float, net_annual_benefit: float) -> float:
    return (
        personalization_score * SCORE_WEIGHT
        + (net_annual_benefit / BENEFIT_SCALE) * BENEFIT_WEIGHT
    )


def confidence_score(
    personalization_score: float,
    profile: SpendingProfile,
    valuation: DynamicPointValue,
) -> float:
    """70 base, +15 for a strong fit, +10 with any spend data, +5 for easy redemption."""
    confidence = _BASE_CONFIDENCE
    if personalization_score > _CONFIDENT_SCORE:
        confidence += 15
    if profile.monthly_spending.has_spending:
        confidence += 10
    if valuation.redemption_flexibility > _CONFIDENT_FLEXIBILITY:
        confidence += 5
    return min(confidence, 100.0)


def evaluate_card(card: CardRecord, profile: SpendingProfile) -> Recommendation:
    """Value, score and explain one card for one user.

    Pure computation; may raise on pathological data (callers that need
    batch safety go through ``rank_cards``).
    """
    valuation = valuate(card, profile)
    point_value = effective_point_value(card, profile, valuation)
    breakdown = category_breakdown(card, profile, point_value)

    rewards = finite(sum(entry.annual_rewards for entry in breakdown))
    bonus = finite(welcome_value(card, profile, point_value))
    personalization = clamp(finite(score(card, profile, rewards, bonus)), 0.0, 100.0)

    net_benefit = finite(rewards - card.annual_fee)
    first_year = finite(rewards + bonus - card.annual_fee)

    return Recommendation(
        card=card,
        annual_value=rewards,
        net_annual_benefit=net_benefit,
        first_year_value=first_year,
        welcome_bonus_value=bonus,
        personalization_score=personalization,
        ai_confidence_score=confidence_score(personalization, profile, valuation),
        risk_factors=risks(card, profile, rewards, valuation),
        optimization_tips=tips(card, profile, rewards, bonus, valuation),
        category_breakdown=breakdown,
        point_valuation=valuation,
        reasoning=build_reasoning(card, valuation, breakdown),
        ranking_score=finite(ranking_score(personalization, net_benefit)),
    )


def degraded_recommendation(card: CardRecord) -> Recommendation:
    """Zero-valued stand-in for a card whose evaluation failed."""
    return Recommendation(
        card=card,
        annual_value=0.0,
        net_annual_benefit=0.0,
        first_year_value=0.0,
        welcome_bonus_value=0.0,
        personalization_score=0.0,
        ai_confidence_score=0.0,
        point_valuation=DynamicPointValue(
            cashback_value=0.0,
            travel_value=0.0,
            transfer_value=0.0,
            statement_credit=0.0,
            gift_cards=0.0,
            optimal_value=0.0,
            redemption_flexibility=0.0,
        ),
        ranking_score=0.0,
    )


def _evaluate_safely(card: CardRecord, profile: SpendingProfile) -> Recommendation:
    try:
        return evaluate_card(card, profile)
    except Exception:
        logger.exception(
            "Evaluation failed for card %r (%s); using zero values",
            card.id,
            card.name,
            extra={"card_id": card.id},
        )
        return degraded_recommendation(card)


def exclude_held_cards(
    cards: Iterable[CardRecord],
    current_cards: Iterable[str],
) -> list[CardRecord]:
    """Drop cards the user already holds (matched by id or name, case-insensitive)."""
    held = [identifier for identifier in current_cards if identifier.strip()]
    if not held:
        return list(cards)
    return [card for card in cards if not any(card.matches(h) for h in held)]


def rank_cards(
    profile: SpendingProfile,
    cards: list[CardRecord],
    max_results: int = DEFAULT_MAX_RESULTS,
    max_workers: int = 1,
    skip_held_cards: bool = False,
) -> list[Recommendation]:
    """Evaluate and rank ``cards`` for ``profile``; no I/O.

    Args:
        profile:         User profile.
        cards:           Catalog snapshot, in catalog order.
        max_results:     Maximum recommendations returned; <= 0 gives ``[]``.
        max_workers:     Threads used for per-card evaluation; 1 runs inline.
        skip_held_cards: Leave out cards listed in ``profile.current_cards``
                         (off by default: every catalog card is scored).

    Returns:
        Recommendations sorted best-first; ties keep catalog order.
    """
    if max_results <= 0:
        return []

    candidates = exclude_held_cards(cards, profile.current_cards) if skip_held_cards else list(cards)
    if not candidates:
        return []

    evaluate = partial(_evaluate_safely, profile=profile)
    if max_workers > 1 and len(candidates) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(evaluate, candidates))
    else:
        results = [evaluate(card) for card in candidates]

    ranked = sorted(results, key=lambda rec: -rec.ranking_score)
    logger.debug(
        "Ranked %d cards; top=%s",
        len(ranked),
        ranked[0].card.name if ranked else None,
    )
    return ranked[:max_results]


def recommend(
    profile: SpendingProfile,
    catalog: "CardCatalogGateway",
    max_results: int = DEFAULT_MAX_RESULTS,
    max_workers: int = 1,
    skip_held_cards: bool = False,
) -> list[Recommendation]:
    """Fetch the active catalog and return the top ``max_results`` cards.

    Raises:
        CatalogUnavailable: The catalog store could not be reached.
    """
    cards = catalog.fetch_active_cards()
    logger.info("Fetched %d active cards from %s", len(cards), type(catalog).__name__)
    return rank_cards(
        profile,
        cards,
        max_results=max_results,
        max_workers=max_workers,
        skip_held_cards=skip_held_cards,
    )
