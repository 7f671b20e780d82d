"""
Engine output models.

``DynamicPointValue`` is derived once per (card, profile) pair by the point
valuation engine. ``CategoryBreakdownEntry`` and ``RecommendationReasoning``
are explanation payloads. ``Recommendation`` bundles everything the
presentation layer needs for one card; it is returned to the caller and
discarded, never persisted by the engine.

All models are frozen.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from card_recommender.models.card import CardRecord


class DynamicPointValue(BaseModel):
    """Per-redemption-channel value of one point for a specific user.

    Attributes:
        cashback_value: Value when redeemed for cash.
        travel_value: Value when redeemed through the issuer's travel portal.
        transfer_value: Value when transferred to airline/hotel partners.
        statement_credit: Value as a statement credit.
        gift_cards: Value as gift cards.
        optimal_value: Best of travel/transfer for the user's travel habits.
        redemption_flexibility: 0–1; how easily the optimal value is realised
            without specialised travel-hacking knowledge.
    """

    model_config = ConfigDict(frozen=True)

    cashback_value: float
    travel_value: float
    transfer_value: float
    statement_credit: float
    gift_cards: float
    optimal_value: float
    redemption_flexibility: float

    @field_validator("redemption_flexibility")
    @classmethod
    def validate_flexibility(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError(f"redemption_flexibility must be in [0, 1], got {v}.")
        return v


class CategoryBreakdownEntry(BaseModel):
    """Annual reward contribution of one spending category.

    ``annual_rewards`` is cap-aware (overflow earns at the base rate);
    ``cap_impact`` is the reward forgone because of the cap.
    """

    model_config = ConfigDict(frozen=True)

    category: str
    annual_spending: float
    earn_rate: float
    annual_rewards: float
    cap_impact: float = 0.0


class RecommendationReasoning(BaseModel):
    """Short human-readable justification bundle."""

    model_config = ConfigDict(frozen=True)

    primary_benefits: list[str] = Field(default_factory=list)
    potential_drawbacks: list[str] = Field(default_factory=list)
    best_use_cases: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    """One scored, explained card for one user.

    Attributes:
        card: The catalog record this recommendation is about.
        annual_value: Yearly reward value from ongoing spend.
        net_annual_benefit: ``annual_value - annual_fee``.
        first_year_value: ``annual_value + welcome_bonus_value - annual_fee``.
        welcome_bonus_value: Discounted estimate of the sign-up bonus.
        personalization_score: 0–100 fit of the card to this user.
        ai_confidence_score: 0–100 confidence in the estimate.
        risk_factors: Warnings, in rule order.
        optimization_tips: Suggestions, in rule order.
        category_breakdown: Per-category reward contributions.
        point_valuation: Channel values used for this user.
        reasoning: Benefits, drawbacks and best-use cases.
        ranking_score: Sort key; ``0.6 * score + 0.04 * net_annual_benefit``.
    """

    model_config = ConfigDict(frozen=True)

    card: CardRecord
    annual_value: float
    net_annual_benefit: float
    first_year_value: float
    welcome_bonus_value: float = 0.0
    personalization_score: float
    ai_confidence_score: float
    risk_factors: list[str] = Field(default_factory=list)
    optimization_tips: list[str] = Field(default_factory=list)
    category_breakdown: list[CategoryBreakdownEntry] = Field(default_factory=list)
    point_valuation: DynamicPointValue
    reasoning: RecommendationReasoning = Field(default_factory=RecommendationReasoning)
    ranking_score: float = 0.0

    @field_validator("personalization_score", "ai_confidence_score")
    @classmethod
    def validate_score_range(cls, v: float) -> float:
        if not 0.0 <= v <= 100.0:
            raise ValueError(f"score must be in [0, 100], got {v}.")
        return v
