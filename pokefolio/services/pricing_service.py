"""Card market prices from tcgplayer (through the Pokemon TCG API) and price history."""
import logging
import random
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.config import settings
from pokefolio.core.constants import PricingConstants
from pokefolio.repositories.card_cache_repository import CardCacheRepository
from pokefolio.services.metrics_service import get_metrics_service
from pokefolio.services.pokemon_tcg_client import PokemonTcgClient

logger = logging.getLogger(__name__)


def current_market_price(pricing: Optional[dict], variant: str) -> Optional[float]:
    """Market price of one print variant, falling back to the mid price."""
    if not pricing:
        return None
    prices = (pricing.get("prices") or {}).get(variant) or {}
    price = prices.get("market")
    if price is None:
        price = prices.get("mid")
    return float(price) if price else None


def simulate_history(
    card_id: str,
    current_price: float,
    period: str,
    variant: str,
    today: date
) -> list[dict]:
    """
    Daily points from ``period`` ago up to ``today`` around the current price.

    The API has no real history, so each point varies randomly around the
    current price; older points may drift further. Each day is seeded by card,
    variant and date, so a point stays the same from one request to the next.
    """
    days = PricingConstants.PERIOD_DAYS[period]
    points = []
    for offset in range(days, -1, -1):
        day = today - timedelta(days=offset)
        max_variation = PricingConstants.BASE_VARIATION + (offset / days) * PricingConstants.EXTRA_VARIATION
        rng = random.Random(f"{card_id}:{variant}:{day.isoformat()}")
        variation = (rng.random() - 0.5) * 2 * max_variation
        points.append({
            "date": day.isoformat(),
            "price": round(current_price * (1 + variation), 2),
            "type": "market",
        })
    return points


class PricingService:
    """Current tcgplayer prices with a short-lived database cache."""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[PokemonTcgClient] = None,
        cache: Optional[CardCacheRepository] = None
    ):
        self.db = db
        self.client = client or PokemonTcgClient(
            api_key=settings.pokemon_tcg_api_key,
            base_url=settings.pokemon_tcg_base_url,
            timeout_seconds=settings.pokemon_tcg_timeout_seconds
        )
        self.cache = cache or CardCacheRepository(db)
        self.metrics = get_metrics_service()

    async def get_card_pricing_async(self, card_id: str) -> Optional[dict]:
        """
        Current prices per print variant (normal, holofoil, ...).

        Returns:
            ``{"card_id", "updated_at", "prices"}``, or None when the card is
            unknown or has no tcgplayer prices

        Raises:
            CatalogUnavailableError: The pricing API failed for a reason other than "not found"
        """
        cache_key = f"pricing:{card_id}"
        cached = await self.cache.get_fresh_async(cache_key)
        if cached:
            logger.info(f"Cache HIT: {cache_key}")
            self.metrics.increment_catalog_requests("pricing", source="cache")
            return cached

        self.metrics.increment_catalog_requests("pricing", source="catalog")
        card = await self.client.get_card_async(card_id)
        tcgplayer = (card or {}).get("tcgplayer") or {}
        if not tcgplayer.get("prices"):
            logger.info(f"No tcgplayer prices for {card_id}")
            return None

        pricing = {
            "card_id": card_id,
            "updated_at": tcgplayer.get("updatedAt"),
            "prices": tcgplayer["prices"],
        }
        expires_at = datetime.now(timezone.utc) + timedelta(minutes=settings.pricing_cache_ttl_minutes)
        await self.cache.set_async(cache_key, pricing, expires_at)
        await self.db.commit()
        return pricing

    async def get_price_history_async(
        self,
        card_id: str,
        period: str = "30d",
        variant: str = "normal",
        today: Optional[date] = None
    ) -> Optional[dict]:
        """
        Daily price history for one print variant over ``period`` (7d, 30d, 90d, 1y).

        Returns:
            ``{"card_id", "period", "data"}``, or None when the variant has no price
        """
        pricing = await self.get_card_pricing_async(card_id)
        current_price = current_market_price(pricing, variant)
        if not current_price:
            return None

        today = today or datetime.now(timezone.utc).date()
        return {
            "card_id": card_id,
            "period": period,
            "data": simulate_history(card_id, current_price, period, variant, today),
        }
