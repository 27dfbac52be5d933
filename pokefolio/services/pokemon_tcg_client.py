"""Pokemon TCG API client, used for tcgplayer market prices."""
import logging
from typing import Any, Optional
from urllib.parse import quote
import httpx

from pokefolio.core.exceptions import CatalogUnavailableError
from pokefolio.core.telemetry import get_tracer

logger = logging.getLogger(__name__)


class PokemonTcgClient:
    """Client for the Pokemon TCG API (https://pokemontcg.io)."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.pokemontcg.io/v2",
        timeout_seconds: int = 15
    ):
        """
        Initialize the pricing client.

        Args:
            api_key: Pokemon TCG API key; without one requests are rate limited to 20/minute
            base_url: Base URL of the API, without trailing slash
            timeout_seconds: Request timeout in seconds
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds

    async def get_card_async(self, card_id: str) -> Optional[dict]:
        """
        Fetch one card, including its ``tcgplayer`` block.

        Returns:
            The card object (``data`` of the response), or None on 404

        Raises:
            CatalogUnavailableError: Any failure other than "not found"
        """
        url = f"{self.base_url}/cards/{quote(card_id, safe='')}"
        headers = {"X-Api-Key": self.api_key} if self.api_key else {}
        logger.info(f"Fetching pricing from Pokemon TCG: {url}")

        try:
            with get_tracer().start_as_current_span("pokemontcg.get") as span:
                span.set_attribute("pokemontcg.url", url)
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=headers)
                span.set_attribute("http.status_code", response.status_code)
        except httpx.HTTPError as ex:
            logger.error(f"Pokemon TCG request to {url} failed: {ex}", exc_info=True)
            raise CatalogUnavailableError("Pricing service is unavailable") from ex

        if response.status_code == 404:
            logger.info(f"Pokemon TCG returned 404 for {card_id}")
            return None

        if not response.is_success:
            logger.error(
                f"Pokemon TCG error for {url}: {response.status_code} - {response.reason_phrase}"
            )
            raise CatalogUnavailableError(
                f"Pricing service error: {response.status_code}",
                errors=[response.reason_phrase]
            )

        try:
            payload: Any = response.json()
        except ValueError as ex:
            logger.error(f"Invalid JSON from Pokemon TCG for {url}: {ex}", exc_info=True)
            raise CatalogUnavailableError("Pricing service returned an invalid response") from ex

        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else None
