"""
HTTP card catalog backed by a PostgREST endpoint (Supabase or plain PostgREST).

Request::

    GET {base_url}/{table}?select=*&is_active=eq.true&order=issuer.asc,name.asc
    apikey: <api_key>
    Authorization: Bearer <api_key>

The response body must be a JSON array of card rows. Rows are converted with
the same forgiving ``CardRecord`` coercion as every other gateway.

Any transport error, timeout, non-2xx status or non-JSON body becomes
``CatalogUnavailable``. ``timeout_s`` bounds the whole fetch.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from card_recommender.catalog.gateway import CatalogUnavailable, records_from_rows
from card_recommender.models.card import CardRecord

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)


class HttpCardCatalog:
    """Fetches active cards from a PostgREST table over HTTP.

    Args:
        base_url:  REST root, e.g. ``https://<project>.supabase.co/rest/v1``.
        table:     Table or view name (default ``credit_cards``).
        api_key:   Sent as ``apikey`` and bearer token when set.
        timeout_s: Request timeout in seconds.
        client:    Optional pre-built ``httpx.Client`` (tests pass one with a
                   ``MockTransport``). When omitted a client is created and
                   closed per fetch.
    """

    def __init__(
        self,
        base_url: str,
        table: str = "credit_cards",
        api_key: Optional[str] = None,
        timeout_s: float = 10.0,
        client: Optional["httpx.Client"] = None,
    ) -> None:
        if not base_url:
            raise ValueError("HttpCardCatalog requires a base_url (catalog.url).")
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.api_key = api_key
        self.timeout_s = timeout_s
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/{self.table}"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _get(self, client: "httpx.Client") -> Any:
        resp = client.get(
            self.endpoint,
            params={
                "select": "*",
                "is_active": "eq.true",
                "order": "issuer.asc,name.asc",
            },
            headers=self._headers(),
            timeout=self.timeout_s,
        )
        resp.raise_for_status()
        return resp.json()

    def fetch_active_cards(self) -> list[CardRecord]:
        """Fetch and convert active rows.

        Raises:
            CatalogUnavailable: On any HTTP failure or a malformed body.
        """
        import httpx

        try:
            if self._client is not None:
                payload = self._get(self._client)
            else:
                with httpx.Client() as client:
                    payload = self._get(client)
        except httpx.HTTPError as exc:
            raise CatalogUnavailable(self.endpoint, str(exc)) from exc
        except ValueError as exc:
            raise CatalogUnavailable(self.endpoint, f"response is not JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise CatalogUnavailable(self.endpoint, "expected a JSON array of card rows")

        cards = records_from_rows(payload, self.endpoint)
        logger.info("Fetched %d active cards from %s", len(cards), self.endpoint)
        return cards
