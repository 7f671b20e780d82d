"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets such as the catalog API key
  4. Environment variables        — ``CARD_RECOMMENDER_*`` prefix

Entry point: ``load_config(config_path=None) -> AppConfig``

CLI commands receive an ``AppConfig`` and pass the relevant section down;
library code never reads environment variables itself.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

ENV_PREFIX = "CARD_RECOMMENDER_"

CATALOG_SOURCES = ("sqlite", "json", "http")

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite catalog database settings."""

    model_config = ConfigDict(frozen=True)

    db_path: str = "data/db/cards.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000


class CatalogConfig(BaseModel):
    """Where active cards are fetched from.

    ``source`` selects the gateway:
      - ``sqlite`` → ``SqliteCardCatalog`` on ``database.db_path``
      - ``json``   → ``JsonCardCatalog`` on ``json_path``
      - ``http``   → ``HttpCardCatalog`` on ``url`` (PostgREST / Supabase)
    """

    model_config = ConfigDict(frozen=True)

    source: str = "sqlite"
    json_path: str = "config/cards/sample_cards.json"
    url: Optional[str] = None
    table: str = "credit_cards"
    api_key: Optional[str] = None
    timeout_s: float = 10.0

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        source = v.strip().lower()
        if source not in CATALOG_SOURCES:
            raise ValueError(f"catalog.source must be one of {list(CATALOG_SOURCES)}, got '{v}'.")
        return source

    @field_validator("timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"catalog.timeout_s must be positive, got {v}.")
        return v


class EngineConfig(BaseModel):
    """Recommendation engine settings."""

    model_config = ConfigDict(frozen=True)

    max_results: int = 5
    max_workers: int = 1
    exclude_held_cards: bool = False

    @field_validator("max_workers")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"engine.max_workers must be >= 1, got {v}.")
        return v


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: Optional[str] = "data/logs/card_recommender.log"
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()

    @field_validator("log_file", mode="before")
    @classmethod
    def empty_log_file_is_none(cls, v: Any) -> Optional[str]:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class AppConfig(BaseModel):
    """Complete application configuration, built by ``load_config()``."""

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    catalog: CatalogConfig = CatalogConfig()
    engine: EngineConfig = EngineConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

_PROJECT_ROOT = Path(__file__).parent.parent


def _find_project_root() -> Path:
    """Walk up from this file to the directory holding pyproject.toml."""
    candidate = Path(__file__).parent
    for _ in range(5):
        if (candidate / "pyproject.toml").exists():
            return candidate
        candidate = candidate.parent
    return _PROJECT_ROOT


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit TOML file. Defaults to
            ``<project_root>/config/default.toml``.

    Returns:
        Validated ``AppConfig``.

    Raises:
        FileNotFoundError: ``config_path`` does not exist.
        pydantic.ValidationError: Merged values fail validation.
    """
    root = _find_project_root()

    load_dotenv(dotenv_path=root / ".env", override=False)

    if config_path is None:
        config_path = root / "config" / "default.toml"

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {config_path}\n"
            "Create config/default.toml or pass --config."
        )

    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)

    raw = _apply_env_overrides(raw)

    return _build_app_config(raw)


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply CARD_RECOMMENDER_* env vars to the raw config dict.

    Supported overrides:
      CARD_RECOMMENDER_DB_PATH          → raw["database"]["db_path"]
      CARD_RECOMMENDER_LOG_LEVEL        → raw["logging"]["level"]
      CARD_RECOMMENDER_DEBUG            → raw["debug"]
      CARD_RECOMMENDER_CATALOG_SOURCE   → raw["catalog"]["source"]
      CARD_RECOMMENDER_CATALOG_URL      → raw["catalog"]["url"]
      CARD_RECOMMENDER_CATALOG_API_KEY  → raw["catalog"]["api_key"]
      CARD_RECOMMENDER_MAX_WORKERS      → raw["engine"]["max_workers"]
    """
    env = os.environ

    if db_path := env.get(f"{ENV_PREFIX}DB_PATH"):
        raw.setdefault("database", {})["db_path"] = db_path

    if log_level := env.get(f"{ENV_PREFIX}LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := env.get(f"{ENV_PREFIX}DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    if source := env.get(f"{ENV_PREFIX}CATALOG_SOURCE"):
        raw.setdefault("catalog", {})["source"] = source

    if url := env.get(f"{ENV_PREFIX}CATALOG_URL"):
        raw.setdefault("catalog", {})["url"] = url

    if api_key := env.get(f"{ENV_PREFIX}CATALOG_API_KEY"):
        raw.setdefault("catalog", {})["api_key"] = api_key

    if workers := env.get(f"{ENV_PREFIX}MAX_WORKERS"):
        raw.setdefault("engine", {})["max_workers"] = int(workers)

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map the raw TOML dict onto ``AppConfig``."""
    project = raw.pop("project", {})

    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        catalog=CatalogConfig(**raw.get("catalog", {})),
        engine=EngineConfig(**raw.get("engine", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", project.get("debug", False)),
    )
