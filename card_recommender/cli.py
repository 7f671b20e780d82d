"""
Card Recommender — CLI entry point.

Commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging (stderr and optional log file).
  3. Validate inputs.
  4. Run the action.
  5. Print the result. Data commands print JSON on stdout; status lines from
     admin commands are plain text.

Install and run::

    pip install -e .
    card-recommender --help
    card-recommender init-db
    card-recommender import-cards --file config/cards/sample_cards.json
    card-recommender list-cards
    card-recommender recommend --profile config/profiles/sample_profile.json
    card-recommender analyze-spending --transactions data/statement.csv
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

app = typer.Typer(
    name="card-recommender",
    help="Personalised credit card recommendations from a spending profile.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from card_recommender.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    from card_recommender.utils.logging import configure_logging
    configure_logging(config.logging)


def _read_json_or_exit(path: Path, what: str) -> Any:
    if not path.exists():
        typer.echo(f"[ERROR] {what} file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as exc:
        typer.echo(f"[ERROR] Could not read {what.lower()} file {path}: {exc}", err=True)
        raise typer.Exit(code=1)


def _build_catalog_or_exit(config):
    from card_recommender.catalog.factory import build_catalog

    try:
        return build_catalog(config)
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


# ── Commands ──────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Create the SQLite card catalog database.

    Safe to run multiple times; all DDL uses IF NOT EXISTS.
    """
    from card_recommender.db.connection import get_connection
    from card_recommender.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Catalog source:   {config.catalog.source}")
    if config.catalog.source == "http":
        typer.echo(f"  Catalog URL:      {config.catalog.url or '(not set)'}")
        typer.echo(f"  Catalog API key:  {'set' if config.catalog.api_key else 'not set'}")
    elif config.catalog.source == "json":
        typer.echo(f"  Catalog file:     {config.catalog.json_path}")
    typer.echo(f"  Max results:      {config.engine.max_results}")
    typer.echo(f"  Max workers:      {config.engine.max_workers}")
    typer.echo(f"  Exclude held:     {config.engine.exclude_held_cards}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        full = config.model_dump(mode="json")
        if full["catalog"].get("api_key"):
            full["catalog"]["api_key"] = "***"
        _echo_json(full)

    typer.echo("")
    typer.echo("[OK] Config valid.")


@app.command("import-cards")
def import_cards(
    cards_file: Optional[str] = typer.Option(
        None,
        "--file",
        "-f",
        help="JSON card file. Defaults to config.catalog.json_path.",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate cards but do not write to the database.",
    ),
) -> None:
    """Load cards from a JSON file into the SQLite catalog.

    The file holds a list of card objects (or ``{"cards": [...]}``). Cards
    are upserted by ``id``; inactive cards are stored with is_active = 0.
    """
    from pydantic import ValidationError

    from card_recommender.db.connection import get_connection
    from card_recommender.db.repositories.card_repo import CardRepository
    from card_recommender.db.schema import apply_schema
    from card_recommender.models.card import CardRecord

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    path = Path(cards_file) if cards_file else Path(config.catalog.json_path)
    raw = _read_json_or_exit(path, "Cards")
    if isinstance(raw, dict):
        raw = raw.get("cards", [])
    if not isinstance(raw, list):
        typer.echo("[ERROR] Cards file must contain an array of card objects.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Loading cards from: {path}")
    cards: list[CardRecord] = []
    errors: list[tuple[int, str]] = []
    for i, row in enumerate(raw):
        try:
            card = CardRecord.model_validate(row)
        except ValidationError as exc:
            errors.append((i, str(exc)))
            continue
        if not card.id:
            errors.append((i, f"card {card.name!r} has no id"))
            continue
        cards.append(card)

    if errors:
        typer.echo(f"[ERROR] {len(errors)} card(s) failed validation:", err=True)
        for idx, msg in errors[:5]:
            typer.echo(f"  Card #{idx}: {msg}", err=True)
        if len(errors) > 5:
            typer.echo(f"  ... and {len(errors) - 5} more.", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Validated {len(cards)} card(s).")

    if dry_run:
        typer.echo("[DRY RUN] No cards written to database.")
        for card in cards:
            typer.echo(f"  {card.id} | {card.issuer} | {card.name}")
        return

    with get_connection(
        db_path or config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        written = CardRepository(conn).upsert_many(cards)

    typer.echo(f"  Upserted {written} card(s) into database.")
    typer.echo("[OK] Cards imported.")


@app.command("list-cards")
def list_cards(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Print the active cards of the configured catalog as JSON."""
    from card_recommender.catalog.gateway import CatalogUnavailable

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    catalog = _build_catalog_or_exit(config)

    try:
        cards = catalog.fetch_active_cards()
    except CatalogUnavailable as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        _echo_json([])
        raise typer.Exit(code=1)

    _echo_json([card.model_dump(mode="json") for card in cards])


@app.command("recommend")
def recommend_cmd(
    profile_file: str = typer.Option(
        ...,
        "--profile",
        "-p",
        help="JSON file with a spending profile.",
    ),
    max_results: Optional[int] = typer.Option(
        None,
        "--max-results",
        "-n",
        help="Number of cards to return (default: engine.max_results).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Rank the catalog for a spending profile and print the top cards as JSON.

    If the catalog cannot be reached an empty list is printed and the
    command exits with code 1.
    """
    from pydantic import ValidationError

    from card_recommender.catalog.gateway import CatalogUnavailable
    from card_recommender.models.profile import SpendingProfile
    from card_recommender.recommendations.ranker import recommend

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    raw = _read_json_or_exit(Path(profile_file), "Profile")
    try:
        profile = SpendingProfile.model_validate(raw)
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid profile: {exc}", err=True)
        raise typer.Exit(code=1)

    catalog = _build_catalog_or_exit(config)
    limit = config.engine.max_results if max_results is None else max_results

    try:
        recommendations = recommend(
            profile,
            catalog,
            max_results=limit,
            max_workers=config.engine.max_workers,
            skip_held_cards=config.engine.exclude_held_cards,
        )
    except CatalogUnavailable as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        _echo_json([])
        raise typer.Exit(code=1)

    _echo_json([rec.model_dump(mode="json") for rec in recommendations])


@app.command("analyze-spending")
def analyze_spending_cmd(
    transactions_file: str = typer.Option(
        ...,
        "--transactions",
        "-t",
        help="Transaction export (.csv with date,description,amount or .json).",
    ),
    preferences_file: Optional[str] = typer.Option(
        None,
        "--preferences",
        help="JSON file with profile preferences (income, credit score, ...).",
    ),
    max_results: Optional[int] = typer.Option(
        None,
        "--max-results",
        "-n",
        help="Number of cards to return (default: engine.max_results).",
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file.",
    ),
) -> None:
    """Analyse a transaction history, derive a profile and recommend cards.

    Prints one JSON object with ``analysis``, ``profile``, ``recommendations``
    and ``current_card_analysis``.
    """
    from card_recommender.catalog.gateway import CatalogUnavailable
    from card_recommender.recommendations.ranker import recommend
    from card_recommender.spending.analyzer import (
        analyze_spending,
        baseline_card_value,
        build_spending_profile,
        improvement_potential,
        load_transactions,
    )

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    try:
        transactions = load_transactions(Path(transactions_file))
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    if not transactions:
        typer.echo("[ERROR] No transactions found.", err=True)
        raise typer.Exit(code=1)

    preferences: dict[str, Any] = {}
    if preferences_file:
        preferences = _read_json_or_exit(Path(preferences_file), "Preferences")
        if not isinstance(preferences, dict):
            typer.echo("[ERROR] Preferences file must contain a JSON object.", err=True)
            raise typer.Exit(code=1)

    analysis = analyze_spending(transactions)
    try:
        profile = build_spending_profile(analysis, preferences)
    except ValueError as exc:
        typer.echo(f"[ERROR] Invalid preferences: {exc}", err=True)
        raise typer.Exit(code=1)

    catalog = _build_catalog_or_exit(config)
    limit = config.engine.max_results if max_results is None else max_results

    exit_code = 0
    try:
        recommendations = recommend(
            profile,
            catalog,
            max_results=limit,
            max_workers=config.engine.max_workers,
            skip_held_cards=config.engine.exclude_held_cards,
        )
    except CatalogUnavailable as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        recommendations = []
        exit_code = 1

    _echo_json(
        {
            "analysis": analysis.model_dump(mode="json"),
            "profile": profile.model_dump(mode="json"),
            "recommendations": [rec.model_dump(mode="json") for rec in recommendations],
            "current_card_analysis": {
                "estimated_annual_value": baseline_card_value(profile),
                "improvement_potential": improvement_potential(recommendations, profile),
            },
        }
    )
    if exit_code:
        raise typer.Exit(code=exit_code)


# ── Entry point ───────────────────────────────────────────────────────────────

if __name__ == "__main__":
    app()
