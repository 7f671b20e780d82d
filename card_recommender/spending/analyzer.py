"""
Spending analyzer: transaction history → ``SpendingProfile``.

Usage flow
----------
1. load_transactions(path)              CSV or JSON export → list[Transaction]
2. analyze_spending(transactions)       → SpendingAnalysis
3. build_spending_profile(analysis, preferences)
                                        → SpendingProfile for the ranker

Categorisation
--------------
``categorize_transaction`` checks ``CATEGORY_PATTERNS`` in order and returns
the first category whose pattern matches the lower-cased description, else
``general``. A transaction with a pre-assigned category keeps it.

Only purchases (amount > 0) are counted; refunds and payments are ignored.

Data quality (0–100)
--------------------
    volume      > 100 tx → 40, > 50 → 30, > 20 → 20, else 10
    time range  >= 12 months → 30, >= 6 → 25, >= 3 → 20, >= 1 → 15, else 5
    diversity   >= 6 categories → 20, >= 4 → 15, >= 2 → 10, else 5
    descriptions  share of descriptions longer than 5 chars * 10

Confidence level: high > 70, medium > 40, else low.
"""

from __future__ import annotations

import csv
import json
import logging
import re
from collections import Counter, defaultdict
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from pydantic import ValidationError

from card_recommender.models.profile import MonthlySpending, SpendingProfile
from card_recommender.models.recommendation import Recommendation
from card_recommender.models.spending import SpendingAnalysis, Transaction
from card_recommender.taxonomy.card_taxonomy import SpendingCategory

logger = logging.getLogger(__name__)

GENERAL = SpendingCategory.GENERAL.value
BASELINE_CASHBACK_RATE = 0.01

CATEGORY_PATTERNS: tuple[tuple[str, re.Pattern[str]], ...] = tuple(
    (name, re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        ("groceries",
         r"walmart|target|costco|sams club|kroger|safeway|publix|whole foods|trader joe|"
         r"aldi|food lion|harris teeter|giant|wegmans|fresh market|grocery|supermarket|"
         r"market basket|food\s*(store|mart)|super.*center"),
        ("dining",
         r"restaurant|cafe|coffee|starbucks|dunkin|mcdonald|burger|pizza|taco|subway|"
         r"chipotle|panera|domino|kfc|wendy|chick.fil.a|applebee|olive garden|red lobster|"
         r"outback|texas roadhouse|dining|eatery|bistro|grill|diner|buffet|fast.food|"
         r"food.truck|bar.grill|tavern|pub"),
        ("gas",
         r"shell|exxon|bp|chevron|mobil|texaco|citgo|sunoco|marathon|speedway|wawa|sheetz|"
         r"circle.k|7.eleven|gas|fuel|gasoline|petro"),
        ("travel",
         r"airline|airport|flight|hotel|marriott|hilton|hyatt|airbnb|vrbo|rental.car|hertz|"
         r"enterprise|avis|budget|uber|lyft|taxi|train|amtrak|cruise|travel|booking|expedia|"
         r"kayak|trip|vacation"),
        ("streaming",
         r"netflix|hulu|disney|amazon.prime|spotify|apple.music|youtube|twitch|hbo|"
         r"paramount|peacock|streaming|subscription"),
        ("department_stores",
         r"\bmacy|nordstrom|bloomingdale|saks|neiman.marcus|jcpenney|kohl|dillard|department.store"),
        ("drug_stores", r"cvs|walgreen|rite.aid|pharmacy|drug.store"),
        ("online_shopping", r"amazon|ebay|etsy|paypal|online|internet|web.*purchase|e.commerce"),
        ("warehouse_clubs", r"costco|sams.club|bjs|warehouse"),
        ("transit", r"metro|subway|bus|transit|mta|bart|cta|public.transport"),
    )
)

_MERCHANT_PREFIX_LEN = 20
_FREQUENT_MERCHANT_COUNT = 10

REQUIRED_CSV_COLUMNS = frozenset({"date", "description", "amount"})

DEFAULT_PREFERENCES: dict[str, Any] = {
    "annual_income": 50_000.0,
    "credit_score": "good",
    "travel_frequency": "occasionally",
    "redemption_preference": "flexible",
    "current_cards": (),
    "monthly_payment_behavior": "full",
    "signup_bonus_importance": "medium",
}


# ── Categorisation ────────────────────────────────────────────────────────────


def categorize_transaction(description: str) -> str:
    """Category slug for a statement description (``general`` if nothing matches)."""
    text = (description or "").lower()
    for name, pattern in CATEGORY_PATTERNS:
        if pattern.search(text):
            return name
    return GENERAL


def _category_of(tx: Transaction) -> str:
    return tx.category or categorize_transaction(tx.description)


# ── Analysis ──────────────────────────────────────────────────────────────────


def analyze_spending(transactions: Iterable[Transaction]) -> SpendingAnalysis:
    """Summarise purchases by category and month.

    Args:
        transactions: Statement lines in any order.

    Returns:
        ``SpendingAnalysis``; an empty history gives an all-zero analysis with
        ``confidence_level == "low"``.
    """
    purchases = [tx for tx in transactions if tx.amount > 0]
    if not purchases:
        return SpendingAnalysis()

    category_totals: dict[str, float] = defaultdict(float)
    monthly_totals: dict[str, dict[str, float]] = defaultdict(lambda: defaultdict(float))
    merchants: Counter[str] = Counter()

    for tx in purchases:
        category = _category_of(tx)
        category_totals[category] += tx.amount
        monthly_totals[tx.month][category] += tx.amount
        merchants[tx.description[:_MERCHANT_PREFIX_LEN].strip()] += 1

    months = len(monthly_totals)
    monthly_spending = {
        category: total / max(months, 1) for category, total in category_totals.items()
    }
    total = sum(category_totals.values())
    quality = data_quality(purchases, months)

    return SpendingAnalysis(
        category_totals=dict(category_totals),
        monthly_spending=monthly_spending,
        total_spending=total,
        insights=spending_insights(category_totals, monthly_spending, merchants, total),
        seasonal_patterns=seasonal_patterns(monthly_totals),
        merchant_frequency=dict(merchants),
        months_of_data=months,
        transaction_count=len(purchases),
        data_quality=quality,
        confidence_level=confidence_level(quality),
    )


def spending_insights(
    category_totals: Mapping[str, float],
    monthly_spending: Mapping[str, float],
    merchant_frequency: Counter[str],
    total_spending: float,
) -> list[str]:
    """Plain-text observations about the spend mix, in rule order."""
    insights: list[str] = []
    if total_spending <= 0:
        return insights

    top = sorted(category_totals.items(), key=lambda kv: (-kv[1], kv[0]))[:3]
    if top:
        name, amount = top[0]
        pct = round(amount / total_spending * 100)
        insights.append(
            f"{name} represents {pct}% of your spending; look for cards with high {name} rewards"
        )

    top3_share = sum(amount for _, amount in top) / total_spending
    if top3_share > 0.7:
        insights.append(
            "Your spending is concentrated in a few categories; specialised cards earn the most"
        )
    elif top3_share < 0.4:
        insights.append(
            "Your spending is diversified; flat-rate cashback or flexible points cards fit best"
        )

    if monthly_spending.get("dining", 0.0) > 500:
        insights.append("High dining spending detected; dining-focused cards could add significant value")
    if monthly_spending.get("travel", 0.0) > 300:
        insights.append("Regular travel spending; prefer travel cards with no foreign transaction fee")
    if monthly_spending.get("groceries", 0.0) > 400:
        insights.append("Substantial grocery spending; grocery bonus cards often have the highest multipliers")

    if merchant_frequency:
        merchant, count = merchant_frequency.most_common(1)[0]
        if count > _FREQUENT_MERCHANT_COUNT:
            insights.append(
                f"Frequent purchases at {merchant}; check for merchant co-branded cards"
            )
    return insights


def seasonal_patterns(monthly_totals: Mapping[str, Mapping[str, float]]) -> dict[str, str]:
    """Detect holiday-shopping (Nov–Dec) and summer-travel (Jun–Aug) spikes."""
    patterns: dict[str, str] = {}
    for month_key, totals in monthly_totals.items():
        month = int(month_key.split("-")[1])
        if month >= 11:
            holiday = totals.get(GENERAL, 0.0) + totals.get("online_shopping", 0.0)
            if holiday > 1000:
                patterns["holiday_shopping"] = "High spending detected during the holiday season"
        if 6 <= month <= 8 and totals.get("travel", 0.0) > 500:
            patterns["summer_travel"] = "Summer travel spending pattern detected"
    return patterns


def data_quality(transactions: list[Transaction], months_of_data: int) -> float:
    """0–100 trust score for an analysis built from ``transactions``."""
    if not transactions:
        return 0.0

    count = len(transactions)
    if count > 100:
        quality = 40.0
    elif count > 50:
        quality = 30.0
    elif count > 20:
        quality = 20.0
    else:
        quality = 10.0

    if months_of_data >= 12:
        quality += 30
    elif months_of_data >= 6:
        quality += 25
    elif months_of_data >= 3:
        quality += 20
    elif months_of_data >= 1:
        quality += 15
    else:
        quality += 5

    categories = {_category_of(tx) for tx in transactions}
    if len(categories) >= 6:
        quality += 20
    elif len(categories) >= 4:
        quality += 15
    elif len(categories) >= 2:
        quality += 10
    else:
        quality += 5

    described = sum(1 for tx in transactions if len(tx.description) > 5)
    quality += described / count * 10

    return min(quality, 100.0)


def confidence_level(quality: float) -> str:
    if quality > 70:
        return "high"
    if quality > 40:
        return "medium"
    return "low"


# ── Profile construction ──────────────────────────────────────────────────────


def build_spending_profile(
    analysis: SpendingAnalysis,
    preferences: Optional[Mapping[str, Any]] = None,
) -> SpendingProfile:
    """Combine analysed monthly averages with stated preferences.

    Only the six profile categories are carried over; everything else
    (department stores, transit, ...) is left out, as the cards' earn rates
    cannot be matched to it.

    Args:
        analysis:    Output of ``analyze_spending``.
        preferences: Any ``SpendingProfile`` field except ``monthly_spending``;
                     missing or empty values take ``DEFAULT_PREFERENCES``.
    """
    merged = dict(DEFAULT_PREFERENCES)
    for key, value in (preferences or {}).items():
        if key == "monthly_spending" or value in (None, ""):
            continue
        merged[key] = value

    monthly = MonthlySpending(
        **{c.value: analysis.monthly_spending.get(c.value, 0.0) for c in SpendingCategory}
    )
    return SpendingProfile(monthly_spending=monthly, **merged)


def baseline_card_value(profile: SpendingProfile) -> float:
    """Yearly value of a plain 1% cashback card for ``profile``."""
    return profile.total_annual_spend * BASELINE_CASHBACK_RATE


def improvement_potential(
    recommendations: list[Recommendation],
    profile: SpendingProfile,
) -> float:
    """How much the top recommendation beats the 1% baseline, never negative."""
    if not recommendations:
        return 0.0
    return max(0.0, recommendations[0].net_annual_benefit - baseline_card_value(profile))


# ── Loading ───────────────────────────────────────────────────────────────────


def load_transactions(path: Path) -> list[Transaction]:
    """Read a transaction export.

    ``.csv`` files need a header with ``date,description,amount`` and may add
    ``category``. Any other suffix is read as JSON: a list of objects or an
    object with a ``transactions`` list.

    All rows are validated before any are returned.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        ValueError: Missing columns, bad JSON, or any row failing validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Transaction file not found: {path}")

    if path.suffix.lower() == ".csv":
        rows = _read_csv_rows(path)
    else:
        rows = _read_json_rows(path)

    transactions: list[Transaction] = []
    errors: list[tuple[int, str]] = []
    for i, row in enumerate(rows, start=1):
        try:
            transactions.append(Transaction.model_validate(row))
        except (ValidationError, TypeError, ValueError) as exc:
            errors.append((i, str(exc)))

    if errors:
        max_shown = 10
        detail = "\n".join(f"  Row {n}: {msg}" for n, msg in errors[:max_shown])
        suffix = f"\n  ... and {len(errors) - max_shown} more" if len(errors) > max_shown else ""
        raise ValueError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )

    logger.info("Loaded %d transactions from %s", len(transactions), path.name)
    return transactions


def _read_csv_rows(path: Path) -> list[dict[str, Any]]:
    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")
        columns = {name.strip().lower() for name in reader.fieldnames}
        missing = REQUIRED_CSV_COLUMNS - columns
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(columns)}"
            )
        rows = []
        for raw in reader:
            row = {(k or "").strip().lower(): v for k, v in raw.items()}
            if not (row.get("category") or "").strip():
                row.pop("category", None)
            rows.append(row)
    return rows


def _read_json_rows(path: Path) -> list[Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get("transactions", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of transactions in {path}")
    return payload
