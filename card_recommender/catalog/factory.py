"""
Gateway construction from configuration.
"""

from __future__ import annotations

import logging

from card_recommender.catalog.gateway import (
    CardCatalogGateway,
    JsonCardCatalog,
    SqliteCardCatalog,
)
from card_recommender.config import AppConfig

logger = logging.getLogger(__name__)


def build_catalog(config: AppConfig) -> CardCatalogGateway:
    """Return the gateway selected by ``config.catalog.source``.

    Raises:
        ValueError: ``http`` is selected but ``catalog.url`` is not set.
    """
    source = config.catalog.source
    logger.debug("Building %s card catalog", source)

    if source == "json":
        return JsonCardCatalog(config.catalog.json_path)

    if source == "http":
        from card_recommender.catalog.http_catalog import HttpCardCatalog

        if not config.catalog.url:
            raise ValueError(
                "catalog.source is 'http' but catalog.url is empty; "
                "set it in config or CARD_RECOMMENDER_CATALOG_URL."
            )
        return HttpCardCatalog(
            base_url=config.catalog.url,
            table=config.catalog.table,
            api_key=config.catalog.api_key,
            timeout_s=config.catalog.timeout_s,
        )

    return SqliteCardCatalog(
        config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    )
