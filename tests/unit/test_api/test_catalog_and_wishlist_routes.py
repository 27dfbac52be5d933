"""
Unit tests for the card catalog and wishlist endpoints.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock

from pokefolio.api.routes.cards import get_card_service, get_pricing_service
from pokefolio.api.routes.wishlist import get_wishlist_service
from pokefolio.core.exceptions import CatalogUnavailableError, DuplicateError
from pokefolio.services.card_service import CardService
from pokefolio.services.pricing_service import PricingService
from pokefolio.services.wishlist_service import WishlistService
from tests.factories import OWNER_ID


@pytest.fixture
def mock_card_service(test_app):
    service = MagicMock(spec=CardService)
    test_app.dependency_overrides[get_card_service] = lambda: service
    return service


@pytest.fixture
def mock_pricing_service(test_app):
    service = MagicMock(spec=PricingService)
    test_app.dependency_overrides[get_pricing_service] = lambda: service
    return service


@pytest.fixture
def mock_wishlist_service(test_app):
    service = MagicMock(spec=WishlistService)
    test_app.dependency_overrides[get_wishlist_service] = lambda: service
    return service


class TestCardRoutes:

    @pytest.mark.unit
    def test_search_passes_extra_catalog_fields(self, client, auth_headers, mock_card_service):
        mock_card_service.search_cards_async = AsyncMock(return_value={
            "cards": [{"id": "base1-4", "localId": 4, "name": "Dracaufeu", "image": "https://img", "rarity": "Rare"}],
            "total": 1,
            "page": 1,
            "limit": 20,
        })

        response = client.get("/api/cards/search?q=dracaufeu&language=fr", headers=auth_headers)

        assert response.status_code == 200
        card = response.json()["cards"][0]
        assert card["localId"] == "4"
        assert card["rarity"] == "Rare"
        mock_card_service.search_cards_async.assert_awaited_once_with("dracaufeu", language="fr", page=1, limit=20)

    @pytest.mark.unit
    def test_unsupported_language_is_422(self, client, auth_headers, mock_card_service):
        response = client.get("/api/cards/search?q=x&language=de", headers=auth_headers)

        assert response.status_code == 422

    @pytest.mark.unit
    def test_catalog_failure_is_502(self, client, auth_headers, mock_card_service):
        mock_card_service.search_cards_async = AsyncMock(
            side_effect=CatalogUnavailableError("Card catalog is unavailable")
        )

        response = client.get("/api/cards/search?q=pikachu", headers=auth_headers)

        assert response.status_code == 502
        assert response.json()["errorCode"] == "upstream_unavailable"

    @pytest.mark.unit
    def test_unknown_card_is_404(self, client, auth_headers, mock_card_service):
        mock_card_service.get_card_async = AsyncMock(return_value=None)

        response = client.get("/api/cards/nope", headers=auth_headers)

        assert response.status_code == 404


class TestWishlistRoutes:

    @pytest.mark.unit
    def test_duplicate_is_409(self, client, auth_headers, mock_wishlist_service):
        mock_wishlist_service.add_async = AsyncMock(side_effect=DuplicateError("already wished"))

        response = client.post("/api/wishlist", json={"cardId": "base1-4"}, headers=auth_headers)

        assert response.status_code == 409

    @pytest.mark.unit
    def test_check_multiple(self, client, auth_headers, mock_wishlist_service):
        mock_wishlist_service.check_multiple_async = AsyncMock(return_value={"a": True})

        response = client.post("/api/wishlist/check-multiple", json={"cardIds": ["a"]}, headers=auth_headers)

        assert response.json() == {"a": True}
        mock_wishlist_service.check_multiple_async.assert_awaited_once_with(OWNER_ID, ["a"])

    @pytest.mark.unit
    def test_remove_returns_204(self, client, auth_headers, mock_wishlist_service):
        mock_wishlist_service.remove_async = AsyncMock(return_value=None)

        response = client.delete("/api/wishlist/base1-4", headers=auth_headers)

        assert response.status_code == 204

    @pytest.mark.unit
    def test_invalid_priority_is_422(self, client, auth_headers, mock_wishlist_service):
        response = client.patch("/api/wishlist/base1-4", json={"priority": "urgent"}, headers=auth_headers)

        assert response.status_code == 422


class TestPricingRoutes:

    @pytest.mark.unit
    def test_pricing_is_camel_case(self, client, auth_headers, mock_pricing_service):
        mock_pricing_service.get_card_pricing_async = AsyncMock(return_value={
            "card_id": "base1-4",
            "updated_at": "2024/03/01",
            "prices": {"1stEditionHolofoil": {"market": 900.0, "directLow": 850.0}},
        })

        response = client.get("/api/cards/base1-4/pricing", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["cardId"] == "base1-4"
        assert body["updatedAt"] == "2024/03/01"
        assert body["prices"]["1stEditionHolofoil"]["market"] == 900.0
        assert body["prices"]["1stEditionHolofoil"]["directLow"] == 850.0

    @pytest.mark.unit
    def test_no_pricing_is_404(self, client, auth_headers, mock_pricing_service):
        mock_pricing_service.get_card_pricing_async = AsyncMock(return_value=None)

        response = client.get("/api/cards/base1-4/pricing", headers=auth_headers)

        assert response.status_code == 404

    @pytest.mark.unit
    def test_price_history_defaults(self, client, auth_headers, mock_pricing_service):
        mock_pricing_service.get_price_history_async = AsyncMock(return_value={
            "card_id": "base1-4",
            "period": "30d",
            "data": [{"date": "2024-03-10", "price": 12.5, "type": "market"}],
        })

        response = client.get("/api/cards/base1-4/price-history", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"][0]["price"] == 12.5
        mock_pricing_service.get_price_history_async.assert_awaited_once_with(
            "base1-4", period="30d", variant="normal"
        )

    @pytest.mark.unit
    def test_unknown_period_is_422(self, client, auth_headers, mock_pricing_service):
        response = client.get("/api/cards/base1-4/price-history?period=2y", headers=auth_headers)

        assert response.status_code == 422
