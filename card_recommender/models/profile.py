"""
User spending profile.

``SpendingProfile`` is constructed by the caller per request (from a form, a
JSON file, or ``spending.analyzer.build_spending_profile``) and is never
mutated by the engine. Monthly spending amounts are coerced to non-negative
finite numbers; an all-zero profile is valid and produces zero rewards.

``credit_score`` is kept as free text: an unknown tier is not an error, the
scorer simply treats it like "poor".
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from card_recommender.taxonomy.card_taxonomy import (
    BonusImportance,
    PaymentBehavior,
    RedemptionPreference,
    SpendingCategory,
    TravelFrequency,
)
from card_recommender.utils.numbers import non_negative


class MonthlySpending(BaseModel):
    """Average monthly spend per category, in dollars."""

    model_config = ConfigDict(frozen=True)

    groceries: float = 0.0
    dining: float = 0.0
    travel: float = 0.0
    gas: float = 0.0
    streaming: float = 0.0
    general: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> float:
        return non_negative(v, 0.0)

    def items(self) -> list[tuple[str, float]]:
        """``(category, monthly_amount)`` pairs in ``SpendingCategory`` order."""
        return [(c.value, getattr(self, c.value)) for c in SpendingCategory]

    def amount(self, category: str) -> float:
        return getattr(self, category, 0.0)

    @property
    def total(self) -> float:
        """Total monthly spend across all categories."""
        return sum(amount for _, amount in self.items())

    @property
    def has_spending(self) -> bool:
        return any(amount > 0 for _, amount in self.items())


class SpendingProfile(BaseModel):
    """Everything the engine knows about one user.

    Attributes:
        annual_income: Gross yearly income in dollars.
        credit_score: Credit tier (``excellent``/``good``/``fair``/``poor``).
        monthly_spending: Average monthly spend per category.
        travel_frequency: How often the user travels.
        redemption_preference: How the user intends to redeem rewards.
        current_cards: Ids or names of cards the user already holds.
        monthly_payment_behavior: Typical statement payment.
        signup_bonus_importance: Weight given to welcome bonuses.
    """

    model_config = ConfigDict(frozen=True)

    annual_income: float = 0.0
    credit_score: str = "good"
    monthly_spending: MonthlySpending = Field(default_factory=MonthlySpending)
    travel_frequency: TravelFrequency = TravelFrequency.OCCASIONALLY
    redemption_preference: RedemptionPreference = RedemptionPreference.FLEXIBLE
    current_cards: tuple[str, ...] = ()
    monthly_payment_behavior: PaymentBehavior = PaymentBehavior.FULL
    signup_bonus_importance: BonusImportance = BonusImportance.MEDIUM

    @field_validator("annual_income", mode="before")
    @classmethod
    def coerce_income(cls, v: Any) -> float:
        return non_negative(v, 0.0)

    @field_validator("credit_score", mode="before")
    @classmethod
    def normalize_credit_score(cls, v: Any) -> str:
        text = str(v).strip().lower() if v is not None else ""
        return text or "good"

    @field_validator(
        "travel_frequency",
        "redemption_preference",
        "monthly_payment_behavior",
        "signup_bonus_importance",
        mode="before",
    )
    @classmethod
    def normalize_enum_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower().replace(" ", "_").replace("-", "_")
        return v

    @field_validator("current_cards", mode="before")
    @classmethod
    def coerce_current_cards(cls, v: Any) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        return tuple(str(card).strip() for card in v if str(card).strip())

    @property
    def total_monthly_spend(self) -> float:
        return self.monthly_spending.total

    @property
    def total_annual_spend(self) -> float:
        return self.monthly_spending.total * 12
