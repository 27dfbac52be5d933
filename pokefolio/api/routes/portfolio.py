import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.auth import get_current_owner_id
from pokefolio.db.session import get_db
from pokefolio.services.portfolio_service import PortfolioService, flatten_item
from pokefolio.services.result_objects import AddOutcome
from pokefolio.schemas.portfolio import (
    AddPortfolioItemRequest,
    CheckOwnershipRequest,
    CheckOwnershipResponse,
    ClearPortfolioResponse,
    DeleteItemResponse,
    DeleteVariantResponse,
    PortfolioItemResponse,
    PortfolioSetsResponse,
    PortfolioStatsResponse,
    UpdatePortfolioItemRequest
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


def get_portfolio_service(db: AsyncSession = Depends(get_db)) -> PortfolioService:
    """Dependency to get PortfolioService instance."""
    return PortfolioService(db)


@router.post(
    "/cards",
    response_model=PortfolioItemResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_card(
    request: AddPortfolioItemRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """
    Add copies of a card to the portfolio.

    Identical acquisition data is merged into the existing holding; differing
    data turns the holding into individually tracked variants.

    Responses:
        201: Holding created or updated
        400: Empty variant list or quantity below 1
    """
    result = await service.add_item_async(owner_id, request)
    if result.outcome != AddOutcome.CREATED:
        logger.info(f"Card {request.card_id} merged into item {result.item.id} ({result.outcome.value})")
    return PortfolioItemResponse(**flatten_item(result.item))


@router.get("/cards", response_model=list[PortfolioItemResponse])
async def list_cards(
    card_id: Optional[str] = Query(None, alias="cardId"),
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """List the caller's holdings, newest first."""
    items = await service.list_items_async(owner_id, card_id=card_id)
    return [PortfolioItemResponse(**flatten_item(item)) for item in items]


@router.delete("/cards", response_model=ClearPortfolioResponse)
async def clear_portfolio(
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Delete every holding of the caller."""
    deleted_count = await service.clear_portfolio_async(owner_id)
    return ClearPortfolioResponse(
        deleted_count=deleted_count,
        message=f"{deleted_count} card(s) removed from the portfolio"
    )


@router.get("/cards/{item_id}", response_model=PortfolioItemResponse)
async def get_card(
    item_id: int,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    item = await service.get_item_async(owner_id, item_id)
    return PortfolioItemResponse(**flatten_item(item))


@router.put("/cards/{item_id}", response_model=PortfolioItemResponse)
async def update_card(
    item_id: int,
    request: UpdatePortfolioItemRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """
    Partially update a holding.

    Omitted fields are left untouched and ``null`` clears a field.

    Responses:
        200: Holding updated
        400: Update would mix unitary and variant data
        404: Holding not found
        409: Language change collides with another holding
    """
    changes = request.model_dump(exclude_unset=True)
    item = await service.update_item_async(owner_id, item_id, changes)
    return PortfolioItemResponse(**flatten_item(item))


@router.delete("/cards/{item_id}", response_model=DeleteItemResponse)
async def delete_card(
    item_id: int,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    await service.delete_item_async(owner_id, item_id)
    return DeleteItemResponse(deleted=True, message=f"Portfolio item {item_id} deleted")


@router.delete("/cards/{item_id}/variants/{variant_index}", response_model=DeleteVariantResponse)
async def delete_variant(
    item_id: int,
    variant_index: int,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """
    Remove one variant (zero-based index).

    Removing the last variant deletes the holding and the response carries no item.
    """
    result = await service.delete_variant_async(owner_id, item_id, variant_index)
    if result.item_deleted:
        return DeleteVariantResponse(
            deleted=True,
            message=f"Last variant removed, portfolio item {item_id} deleted"
        )
    return DeleteVariantResponse(
        deleted=False,
        message=f"Variant {variant_index} removed",
        item=PortfolioItemResponse(**flatten_item(result.item))
    )


@router.patch("/cards/{item_id}/favorite", response_model=PortfolioItemResponse)
async def toggle_favorite(
    item_id: int,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    item = await service.toggle_favorite_async(owner_id, item_id)
    return PortfolioItemResponse(**flatten_item(item))


@router.post("/check-ownership", response_model=CheckOwnershipResponse)
async def check_ownership(
    request: CheckOwnershipRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Tell which of the given card IDs the caller holds."""
    ownership = await service.check_ownership_async(owner_id, request.card_ids)
    return CheckOwnershipResponse(ownership=ownership)


@router.get("/sets", response_model=PortfolioSetsResponse)
async def get_sets(
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    """Holdings grouped by set with completion figures."""
    sets = await service.get_sets_async(owner_id)
    return PortfolioSetsResponse(sets=sets, total_sets=len(sets))


@router.get("/stats", response_model=PortfolioStatsResponse)
async def get_stats(
    owner_id: str = Depends(get_current_owner_id),
    service: PortfolioService = Depends(get_portfolio_service)
):
    stats = await service.get_stats_async(owner_id)
    return PortfolioStatsResponse(**stats)
