import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.auth import get_current_owner_id
from pokefolio.core.constants import CatalogConstants
from pokefolio.db.session import get_db
from pokefolio.services.card_service import CardService
from pokefolio.services.pricing_service import PricingService
from pokefolio.schemas.card import CardSearchResponse
from pokefolio.schemas.pricing import CardPricingResponse, PriceHistoryResponse, PricePeriod, PriceVariant

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cards", tags=["cards"])

LANGUAGE_PATTERN = "^(" + "|".join(CatalogConstants.LANGUAGES) + ")$"


def get_card_service(db: AsyncSession = Depends(get_db)) -> CardService:
    """Dependency to get CardService instance."""
    return CardService(db)


def get_pricing_service(db: AsyncSession = Depends(get_db)) -> PricingService:
    """Dependency to get PricingService instance."""
    return PricingService(db)


@router.get("/search", response_model=CardSearchResponse)
async def search_cards(
    q: str = Query(..., min_length=1, max_length=100),
    language: Optional[str] = Query(None, pattern=LANGUAGE_PATTERN),
    page: int = Query(1, ge=1),
    limit: int = Query(CatalogConstants.DEFAULT_PAGE_SIZE, ge=1, le=100),
    owner_id: str = Depends(get_current_owner_id),
    service: CardService = Depends(get_card_service)
):
    """
    Search the card catalog.

    The query may carry a card number ("pikachu 25", "25/102", "#25");
    results are fuzzy-ranked by name and filtered by number.

    Responses:
        200: Ranked, paginated results
        502: Catalog unavailable
    """
    result = await service.search_cards_async(q, language=language, page=page, limit=limit)
    return CardSearchResponse(**result)


@router.get("/{card_id}")
async def get_card(
    card_id: str,
    language: Optional[str] = Query(None, pattern=LANGUAGE_PATTERN),
    owner_id: str = Depends(get_current_owner_id),
    service: CardService = Depends(get_card_service)
) -> dict[str, Any]:
    """Full catalog record of a card, falling back to the secondary language."""
    card = await service.get_card_async(card_id, language)
    if card is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Card {card_id} not found"
        )
    return card


@router.get("/{card_id}/pricing", response_model=CardPricingResponse)
async def get_card_pricing(
    card_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: PricingService = Depends(get_pricing_service)
):
    """
    Current tcgplayer market prices of a card.

    ``card_id`` is a Pokemon TCG API identifier (e.g. ``base1-4``).

    Responses:
        200: Prices per print variant
        404: Unknown card or no prices available
        502: Pricing service unavailable
    """
    pricing = await service.get_card_pricing_async(card_id)
    if pricing is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pricing available for card {card_id}"
        )
    return CardPricingResponse(**pricing)


@router.get("/{card_id}/price-history", response_model=PriceHistoryResponse)
async def get_price_history(
    card_id: str,
    period: PricePeriod = Query(PricePeriod.MONTH),
    variant: PriceVariant = Query(PriceVariant.NORMAL),
    owner_id: str = Depends(get_current_owner_id),
    service: PricingService = Depends(get_pricing_service)
):
    """Daily price history of one print variant, simulated around the current market price."""
    history = await service.get_price_history_async(card_id, period=period.value, variant=variant.value)
    if history is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No {variant.value} price history for card {card_id}"
        )
    return PriceHistoryResponse(**history)
