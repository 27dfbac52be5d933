"""
Unit tests for PricingService and the Pokemon TCG client.

Tests cover:
- Fetching and caching tcgplayer prices (HTTP mocked with respx)
- Missing cards and missing prices
- Upstream failures
- Price history length, dates and bounds
"""
import httpx
import pytest
import respx
from datetime import date, timedelta
from unittest.mock import AsyncMock, MagicMock

from pokefolio.core.exceptions import CatalogUnavailableError
from pokefolio.repositories.card_cache_repository import CardCacheRepository
from pokefolio.services.pokemon_tcg_client import PokemonTcgClient
from pokefolio.services.pricing_service import PricingService, current_market_price, simulate_history

BASE_URL = "https://pokemontcg.test/v2"

CHARIZARD = {
    "id": "base1-4",
    "name": "Charizard",
    "tcgplayer": {
        "url": "https://prices.pokemontcg.io/tcgplayer/base1-4",
        "updatedAt": "2024/03/01",
        "prices": {"holofoil": {"low": 250.0, "mid": 300.0, "market": 350.5}},
    },
}

PRICING = {
    "card_id": "base1-4",
    "updated_at": "2024/03/01",
    "prices": {"normal": {"mid": 100.0}, "holofoil": {"market": 350.5}},
}


@pytest.fixture
def mock_cache():
    mock = MagicMock(spec=CardCacheRepository)
    mock.get_fresh_async = AsyncMock(return_value=None)
    mock.set_async = AsyncMock()
    return mock


@pytest.fixture
def pricing_service(mock_db_session, mock_cache):
    return PricingService(
        mock_db_session,
        client=PokemonTcgClient(api_key="secret", base_url=BASE_URL, timeout_seconds=5),
        cache=mock_cache
    )


class TestCardPricing:

    @pytest.mark.asyncio
    async def test_fetches_and_caches_prices(self, pricing_service, mock_cache, mock_db_session):
        with respx.mock:
            route = respx.get(f"{BASE_URL}/cards/base1-4").mock(
                return_value=httpx.Response(200, json={"data": CHARIZARD})
            )
            pricing = await pricing_service.get_card_pricing_async("base1-4")

        assert pricing == {
            "card_id": "base1-4",
            "updated_at": "2024/03/01",
            "prices": {"holofoil": {"low": 250.0, "mid": 300.0, "market": 350.5}},
        }
        assert route.calls.last.request.headers["X-Api-Key"] == "secret"
        assert mock_cache.set_async.call_args.args[0] == "pricing:base1-4"
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cache_hit_skips_api(self, pricing_service, mock_cache):
        mock_cache.get_fresh_async.return_value = PRICING

        with respx.mock:
            pricing = await pricing_service.get_card_pricing_async("base1-4")

        assert pricing == PRICING
        mock_cache.set_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_card_without_prices_is_none(self, pricing_service, mock_cache):
        with respx.mock:
            respx.get(f"{BASE_URL}/cards/base1-4").mock(
                return_value=httpx.Response(200, json={"data": {"id": "base1-4", "name": "Charizard"}})
            )
            pricing = await pricing_service.get_card_pricing_async("base1-4")

        assert pricing is None
        mock_cache.set_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_card_is_none(self, pricing_service):
        with respx.mock:
            respx.get(f"{BASE_URL}/cards/nope").mock(return_value=httpx.Response(404))
            assert await pricing_service.get_card_pricing_async("nope") is None

    @pytest.mark.asyncio
    async def test_upstream_error_raises(self, pricing_service):
        with respx.mock:
            respx.get(f"{BASE_URL}/cards/base1-4").mock(return_value=httpx.Response(503))
            with pytest.raises(CatalogUnavailableError) as exc_info:
                await pricing_service.get_card_pricing_async("base1-4")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_no_key_sends_no_header(self, mock_db_session, mock_cache):
        service = PricingService(
            mock_db_session,
            client=PokemonTcgClient(base_url=BASE_URL, timeout_seconds=5),
            cache=mock_cache
        )

        with respx.mock:
            route = respx.get(f"{BASE_URL}/cards/base1-4").mock(
                return_value=httpx.Response(200, json={"data": CHARIZARD})
            )
            await service.get_card_pricing_async("base1-4")

        assert "X-Api-Key" not in route.calls.last.request.headers


class TestPriceHistory:

    @pytest.mark.unit
    def test_market_price_falls_back_to_mid(self):
        assert current_market_price(PRICING, "holofoil") == 350.5
        assert current_market_price(PRICING, "normal") == 100.0
        assert current_market_price(PRICING, "reverseHolofoil") is None
        assert current_market_price(None, "normal") is None

    @pytest.mark.unit
    def test_points_cover_period_up_to_today(self):
        today = date(2024, 3, 10)

        points = simulate_history("base1-4", 100.0, "7d", "normal", today)

        assert len(points) == 8
        assert points[0]["date"] == (today - timedelta(days=7)).isoformat()
        assert points[-1]["date"] == "2024-03-10"
        assert all(p["type"] == "market" for p in points)

    @pytest.mark.unit
    def test_prices_stay_within_variation_bounds(self):
        points = simulate_history("base1-4", 100.0, "1y", "holofoil", date(2024, 3, 10))

        assert len(points) == 366
        assert all(75.0 <= p["price"] <= 125.0 for p in points)
        assert 85.0 <= points[-1]["price"] <= 115.0

    @pytest.mark.unit
    def test_same_day_gives_same_points(self):
        first = simulate_history("base1-4", 100.0, "30d", "normal", date(2024, 3, 10))
        second = simulate_history("base1-4", 100.0, "30d", "normal", date(2024, 3, 10))

        assert first == second

    @pytest.mark.asyncio
    async def test_history_from_cached_pricing(self, pricing_service, mock_cache):
        mock_cache.get_fresh_async.return_value = PRICING

        history = await pricing_service.get_price_history_async(
            "base1-4", period="30d", variant="holofoil", today=date(2024, 3, 10)
        )

        assert history["card_id"] == "base1-4"
        assert history["period"] == "30d"
        assert len(history["data"]) == 31

    @pytest.mark.asyncio
    async def test_history_without_variant_price_is_none(self, pricing_service, mock_cache):
        mock_cache.get_fresh_async.return_value = PRICING

        assert await pricing_service.get_price_history_async("base1-4", variant="reverseHolofoil") is None
