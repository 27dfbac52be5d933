"""
Unit tests for CardService and the TCGdex client.

Tests cover:
- Query parsing (number tokens, markers)
- Fuzzy ranking and number filtering
- Pagination
- Cache hits, language fallback and upstream failures (HTTP mocked with respx)
"""
import httpx
import pytest
import respx
from unittest.mock import AsyncMock, MagicMock

from pokefolio.core.exceptions import CatalogUnavailableError
from pokefolio.repositories.card_cache_repository import CardCacheRepository
from pokefolio.services.card_service import (
    CardService,
    normalize_text,
    paginate,
    parse_search_query,
    rank_cards
)
from pokefolio.services.tcgdex_client import TcgdexClient

BASE_URL = "https://tcgdex.test/v2"

CATALOG = [
    {"id": "base1-4", "localId": "4", "name": "Dracaufeu"},
    {"id": "swsh3-20", "localId": "020", "name": "Dracaufeu V"},
    {"id": "base1-58", "localId": "58", "name": "Pikachu"},
    {"id": "xy-4"},
]


@pytest.fixture
def mock_cache():
    mock = MagicMock(spec=CardCacheRepository)
    mock.get_fresh_async = AsyncMock(return_value=None)
    mock.set_async = AsyncMock()
    return mock


@pytest.fixture
def card_service(mock_db_session, mock_cache):
    return CardService(
        mock_db_session,
        client=TcgdexClient(base_url=BASE_URL, timeout_seconds=5),
        cache=mock_cache
    )


class TestParseSearchQuery:

    @pytest.mark.unit
    @pytest.mark.parametrize("query,expected", [
        ("Dracaufeu", (None, "Dracaufeu")),
        ("pikachu 25", ("25", "pikachu")),
        ("#25 dracaufeu", ("25", "dracaufeu")),
        ("dracaufeu no. 4", ("4", "dracaufeu")),
        ("dracaufeu 025/165", ("025", "dracaufeu")),
        ("25/102", ("25", "25/102")),
        ("dracaufeu SV045", ("SV045", "dracaufeu")),
        ("Pikachu 025/165", ("025", "Pikachu")),
    ])
    def test_parse(self, query, expected):
        assert parse_search_query(query) == expected

    @pytest.mark.unit
    def test_normalize_strips_accents_and_spaces(self):
        assert normalize_text("  Électhor   de  Galar ") == "electhor de galar"


class TestRankCards:

    @pytest.mark.unit
    def test_name_filter_drops_weak_matches(self):
        ranked = rank_cards(CATALOG, "dracaufeu")
        assert [c["id"] for c in ranked] == ["base1-4", "swsh3-20"]

    @pytest.mark.unit
    def test_number_ignores_leading_zeros(self):
        ranked = rank_cards(CATALOG, "dracaufeu", "20")
        assert [c["id"] for c in ranked] == ["swsh3-20"]

    @pytest.mark.unit
    def test_number_only_falls_back_to_id_suffix(self):
        ranked = rank_cards(CATALOG, None, "004")
        assert [c["id"] for c in ranked] == ["base1-4", "xy-4"]

    @pytest.mark.unit
    def test_small_typos_still_match(self):
        ranked = rank_cards(CATALOG, "pikachou")
        assert [c["id"] for c in ranked] == ["base1-58"]

    @pytest.mark.unit
    def test_accents_do_not_matter(self):
        ranked = rank_cards([{"id": "a-1", "name": "Électhor"}], "electhor")
        assert len(ranked) == 1


class TestPaginate:

    @pytest.mark.unit
    def test_second_page(self):
        result = paginate(list(range(45)), page=2, limit=20)
        assert result["cards"] == list(range(20, 40))
        assert result["total"] == 45
        assert result["page"] == 2

    @pytest.mark.unit
    def test_zero_limit_returns_everything(self):
        result = paginate([1, 2, 3], page=3, limit=0)
        assert result == {"cards": [1, 2, 3], "total": 3, "page": 1, "limit": 0}


class TestCardServiceCatalog:

    @pytest.mark.asyncio
    async def test_cache_hit_skips_catalog(self, card_service, mock_cache):
        mock_cache.get_fresh_async.return_value = CATALOG

        with respx.mock:
            result = await card_service.search_cards_async("dracaufeu", language="fr")

        assert result["total"] == 2
        mock_cache.get_fresh_async.assert_awaited_once_with("search:fr:dracaufeu")
        mock_cache.set_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_search_fetches_and_caches(self, card_service, mock_cache, mock_db_session):
        with respx.mock:
            route = respx.get(f"{BASE_URL}/fr/cards", params={"name": "dracaufeu"}).mock(
                return_value=httpx.Response(200, json=CATALOG)
            )
            result = await card_service.search_cards_async("dracaufeu 4", language="fr")

        assert route.called
        assert [c["id"] for c in result["cards"]] == ["base1-4"]
        assert mock_cache.set_async.call_args.args[0] == "search:fr:dracaufeu"
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_card_falls_back_to_secondary_language(self, card_service, mock_cache):
        english = {"id": "base1-4", "name": "Charizard"}

        with respx.mock:
            respx.get(f"{BASE_URL}/fr/cards/base1-4").mock(return_value=httpx.Response(404))
            respx.get(f"{BASE_URL}/en/cards/base1-4").mock(return_value=httpx.Response(200, json=english))
            card = await card_service.get_card_async("base1-4", "fr")

        assert card == english
        mock_cache.set_async.assert_awaited_once()
        assert mock_cache.set_async.call_args.args[0] == "card:fr:base1-4"

    @pytest.mark.asyncio
    async def test_unknown_card_returns_none_and_is_not_cached(self, card_service, mock_cache):
        with respx.mock:
            respx.get(f"{BASE_URL}/fr/cards/nope").mock(return_value=httpx.Response(404))
            respx.get(f"{BASE_URL}/en/cards/nope").mock(return_value=httpx.Response(404))
            card = await card_service.get_card_async("nope", "fr")

        assert card is None
        mock_cache.set_async.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_fallback_when_languages_match(self, card_service):
        with respx.mock:
            route = respx.get(f"{BASE_URL}/en/cards/nope").mock(return_value=httpx.Response(404))
            card = await card_service.get_card_async("nope", "en")

        assert card is None
        assert route.call_count == 1

    @pytest.mark.asyncio
    async def test_upstream_error_raises(self, card_service):
        with respx.mock:
            respx.get(f"{BASE_URL}/fr/cards/base1-4").mock(return_value=httpx.Response(500))
            with pytest.raises(CatalogUnavailableError) as exc_info:
                await card_service.get_card_async("base1-4", "fr")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_network_error_raises(self, card_service):
        with respx.mock:
            respx.get(f"{BASE_URL}/fr/cards", params={"name": "dracaufeu"}).mock(
                side_effect=httpx.ConnectError("connection refused")
            )
            with pytest.raises(CatalogUnavailableError):
                await card_service.search_cards_async("dracaufeu", language="fr")

    @pytest.mark.asyncio
    async def test_blank_query_returns_empty_page(self, card_service, mock_cache):
        result = await card_service.search_cards_async("   ")

        assert result["cards"] == []
        assert result["total"] == 0
        mock_cache.get_fresh_async.assert_not_awaited()
