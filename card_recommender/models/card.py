"""
Credit card catalog record.

``CardRecord`` is the engine's view of one row of the card catalog. Rows come
from hand-maintained tables (SQLite, JSON seed files, a hosted Postgres REST
API), so construction is deliberately forgiving: every numeric column is
coerced to a non-negative finite number and falls back to a documented
default instead of failing validation. A single bad catalog row must never
abort a recommendation batch.

Defaults for malformed values:
  - ``base_earn_rate``            → 1.0
  - ``<category>_earn_rate``      → ``None`` (earns at the base rate)
  - ``<category>_cap``            → ``None`` (uncapped)
  - ``annual_fee``                → 0.0
  - ``foreign_transaction_fee``   → 0.0
  - ``point_value``               → 0.01
  - ``reward_type``               → ``"points"``

A category rate or cap of 0 is treated as "not defined".
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from card_recommender.taxonomy.card_taxonomy import BONUS_CATEGORIES, RewardType
from card_recommender.utils.numbers import non_negative, positive_or_none

BASELINE_POINT_VALUE = 0.01
DEFAULT_BASE_EARN_RATE = 1.0

_RATE_FIELDS = (
    "groceries_earn_rate", "dining_earn_rate", "travel_earn_rate", "gas_earn_rate",
)
_CAP_FIELDS = ("groceries_cap", "dining_cap", "travel_cap", "gas_cap")
_FALSE_STRINGS = frozenset({"0", "false", "no", "off", "f", "n"})


class CardRecord(BaseModel):
    """A credit card as supplied by the catalog gateway.

    Attributes:
        id: Catalog primary key (stringified).
        name: Marketing name, e.g. ``"Sapphire Preferred"``.
        issuer: Issuing bank; matched case-insensitively against the
            point-valuation heuristics.
        reward_type: Currency the card earns in.
        base_earn_rate: Multiplier on spend outside bonus categories.
        groceries_earn_rate: Grocery multiplier, or ``None`` for base rate.
        dining_earn_rate: Dining multiplier, or ``None`` for base rate.
        travel_earn_rate: Travel multiplier, or ``None`` for base rate.
        gas_earn_rate: Gas multiplier, or ``None`` for base rate.
        groceries_cap: Monthly spend ceiling for the grocery bonus, or ``None``.
        dining_cap: Monthly spend ceiling for the dining bonus, or ``None``.
        travel_cap: Monthly spend ceiling for the travel bonus, or ``None``.
        gas_cap: Monthly spend ceiling for the gas bonus, or ``None``.
        annual_fee: Yearly fee in dollars.
        point_value: Nominal value of one point, used when no issuer
            heuristic applies.
        welcome_bonus: Free-text bonus description, e.g.
            ``"60,000 points after $4,000 spend in 3 months"``.
        credit_score_requirement: Minimum credit tier the issuer expects.
        foreign_transaction_fee: Percentage charged on foreign purchases.
        application_url: Where to apply.
        image_url: Card art.
        is_active: Inactive cards are filtered out by catalog gateways.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = ""
    name: str = "Unknown card"
    issuer: str = ""
    reward_type: RewardType = RewardType.POINTS
    base_earn_rate: float = DEFAULT_BASE_EARN_RATE
    groceries_earn_rate: Optional[float] = None
    dining_earn_rate: Optional[float] = None
    travel_earn_rate: Optional[float] = None
    gas_earn_rate: Optional[float] = None
    groceries_cap: Optional[float] = None
    dining_cap: Optional[float] = None
    travel_cap: Optional[float] = None
    gas_cap: Optional[float] = None
    annual_fee: float = 0.0
    point_value: float = BASELINE_POINT_VALUE
    welcome_bonus: Optional[str] = None
    credit_score_requirement: str = "good"
    foreign_transaction_fee: float = 0.0
    application_url: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    # ── Coercion ──────────────────────────────────────────────────────────────

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        text = "" if v is None else str(v).strip()
        return text or "Unknown card"

    @field_validator("issuer", mode="before")
    @classmethod
    def coerce_issuer(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("reward_type", mode="before")
    @classmethod
    def coerce_reward_type(cls, v: Any) -> RewardType:
        text = str(v).strip().lower() if v is not None else ""
        try:
            return RewardType(text)
        except ValueError:
            return RewardType.POINTS

    @field_validator("base_earn_rate", mode="before")
    @classmethod
    def coerce_base_rate(cls, v: Any) -> float:
        return non_negative(v, DEFAULT_BASE_EARN_RATE)

    @field_validator(*_RATE_FIELDS, *_CAP_FIELDS, mode="before")
    @classmethod
    def coerce_optional_positive(cls, v: Any) -> Optional[float]:
        return positive_or_none(v)

    @field_validator("annual_fee", "foreign_transaction_fee", mode="before")
    @classmethod
    def coerce_fee(cls, v: Any) -> float:
        return non_negative(v, 0.0)

    @field_validator("point_value", mode="before")
    @classmethod
    def coerce_point_value(cls, v: Any) -> float:
        return positive_or_none(v) or BASELINE_POINT_VALUE

    @field_validator("welcome_bonus", "application_url", "image_url", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Optional[str]:
        if not isinstance(v, str):
            return None
        return v.strip() or None

    @field_validator("credit_score_requirement", mode="before")
    @classmethod
    def coerce_requirement(cls, v: Any) -> str:
        text = str(v).strip().lower() if v is not None else ""
        return text or "good"

    @field_validator("is_active", mode="before")
    @classmethod
    def coerce_is_active(cls, v: Any) -> bool:
        if v is None:
            return True
        if isinstance(v, str):
            return v.strip().lower() not in _FALSE_STRINGS
        return bool(v)

    # ── Accessors ─────────────────────────────────────────────────────────────

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CardRecord":
        """Build a record from a raw catalog row (dict or ``sqlite3.Row``)."""
        return cls.model_validate(dict(row))

    def earn_rate(self, category: str) -> float:
        """Multiplier for ``category``; base rate when no bonus rate is defined."""
        if category in BONUS_CATEGORIES:
            rate = getattr(self, f"{category}_earn_rate")
            if rate:
                return rate
        return self.base_earn_rate

    def monthly_cap(self, category: str) -> Optional[float]:
        """Monthly bonus ceiling for ``category``, or ``None`` if uncapped."""
        if category not in BONUS_CATEGORIES:
            return None
        return getattr(self, f"{category}_cap")

    def matches(self, identifier: str) -> bool:
        """True if ``identifier`` equals this card's id or name (case-insensitive)."""
        needle = identifier.strip().lower()
        return bool(needle) and needle in {self.id.lower(), self.name.lower()}
