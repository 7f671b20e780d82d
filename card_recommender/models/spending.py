"""
Transaction history models used by the spending analyzer.

``Transaction`` is one purchase from a statement export. ``SpendingAnalysis``
summarises a batch of transactions and is the input to
``build_spending_profile``.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from card_recommender.utils.numbers import to_float


class Transaction(BaseModel):
    """One statement line.

    Attributes:
        date: Posting date.
        description: Merchant text as printed on the statement.
        amount: Purchase amount in dollars (negative for refunds/credits).
        category: Pre-assigned category; ``None`` lets the analyzer decide.
    """

    model_config = ConfigDict(frozen=True)

    date: dt.date
    description: str = ""
    amount: float
    category: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def coerce_description(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, v: Any) -> float:
        number = to_float(v)
        if number is None:
            raise ValueError(f"amount must be a finite number, got {v!r}.")
        return number

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip().lower().replace(" ", "_")
        return text or None

    @property
    def month(self) -> str:
        """``YYYY-MM`` bucket key."""
        return self.date.strftime("%Y-%m")


class SpendingAnalysis(BaseModel):
    """Summary of a transaction history.

    Attributes:
        category_totals: Total spend per category over the whole history.
        monthly_spending: Average monthly spend per category.
        total_spending: Sum of all counted purchases.
        insights: Plain-text observations, in rule order.
        seasonal_patterns: Pattern key → description.
        merchant_frequency: Merchant prefix → number of purchases.
        months_of_data: Distinct calendar months covered.
        transaction_count: Purchases counted.
        data_quality: 0–100 heuristic of how trustworthy the averages are.
        confidence_level: ``high`` / ``medium`` / ``low`` from ``data_quality``.
    """

    model_config = ConfigDict(frozen=True)

    category_totals: dict[str, float] = Field(default_factory=dict)
    monthly_spending: dict[str, float] = Field(default_factory=dict)
    total_spending: float = 0.0
    insights: list[str] = Field(default_factory=list)
    seasonal_patterns: dict[str, str] = Field(default_factory=dict)
    merchant_frequency: dict[str, int] = Field(default_factory=dict)
    months_of_data: int = 0
    transaction_count: int = 0
    data_quality: float = 0.0
    confidence_level: str = "low"
