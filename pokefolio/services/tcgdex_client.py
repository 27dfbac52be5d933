"""TCGdex card catalog client."""
import logging
from typing import Any, Optional
from urllib.parse import quote
import httpx

from pokefolio.core.exceptions import CatalogUnavailableError
from pokefolio.core.telemetry import get_tracer

logger = logging.getLogger(__name__)


class TcgdexClient:
    """Client for the TCGdex REST API (https://tcgdex.dev)."""

    def __init__(self, base_url: str = "https://api.tcgdex.net/v2", timeout_seconds: int = 15):
        """
        Initialize the catalog client.

        Args:
            base_url: Base URL of the TCGdex API, without trailing slash
            timeout_seconds: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds

    async def search_cards_async(self, query: str, language: str) -> list[dict]:
        """
        Search cards by name in one language.

        Returns:
            Card summaries (``id``, ``localId``, ``name``, ``image``); empty when
            the catalog answers 404 or with a non-list payload

        Raises:
            CatalogUnavailableError: Any failure other than "not found"
        """
        url = f"{self.base_url}/{language}/cards"
        logger.info(f"Searching TCGdex ({language}) for '{query}'")

        data = await self._get_json_async(url, params={"name": query})
        return data if isinstance(data, list) else []

    async def get_card_by_id_async(self, card_id: str, language: str) -> Optional[dict]:
        """
        Fetch one card by ID.

        Returns:
            Card payload, or None when the catalog answers 404

        Raises:
            CatalogUnavailableError: Any failure other than "not found"
        """
        url = f"{self.base_url}/{language}/cards/{quote(card_id, safe='')}"
        logger.info(f"Fetching TCGdex card {card_id} ({language})")

        data = await self._get_json_async(url)
        return data if isinstance(data, dict) else None

    async def _get_json_async(self, url: str, params: Optional[dict] = None) -> Any:
        """GET a JSON document; None on 404."""
        try:
            with get_tracer().start_as_current_span("tcgdex.get") as span:
                span.set_attribute("tcgdex.url", url)
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, params=params)
                span.set_attribute("http.status_code", response.status_code)
        except httpx.HTTPError as ex:
            logger.error(f"TCGdex request to {url} failed: {ex}", exc_info=True)
            raise CatalogUnavailableError("Card catalog is unavailable") from ex

        if response.status_code == 404:
            logger.info(f"TCGdex returned 404 for {url}")
            return None

        if not response.is_success:
            logger.error(
                f"TCGdex error for {url}: {response.status_code} - {response.reason_phrase}"
            )
            raise CatalogUnavailableError(
                f"Card catalog error: {response.status_code}",
                errors=[response.reason_phrase]
            )

        try:
            return response.json()
        except ValueError as ex:
            logger.error(f"Invalid JSON from TCGdex for {url}: {ex}", exc_info=True)
            raise CatalogUnavailableError("Card catalog returned an invalid response") from ex
