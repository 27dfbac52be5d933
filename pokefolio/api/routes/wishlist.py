import logging
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.auth import get_current_owner_id
from pokefolio.db.session import get_db
from pokefolio.services.wishlist_service import WishlistService, flatten_wishlist_item
from pokefolio.schemas.wishlist import (
    AddWishlistItemRequest,
    CheckWishlistRequest,
    UpdateWishlistItemRequest,
    WishlistCheckResponse,
    WishlistItemResponse,
    WishlistResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


def get_wishlist_service(db: AsyncSession = Depends(get_db)) -> WishlistService:
    """Dependency to get WishlistService instance."""
    return WishlistService(db)


@router.get("", response_model=WishlistResponse)
async def list_wishlist(
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    items = await service.list_async(owner_id)
    return WishlistResponse(
        items=[WishlistItemResponse(**flatten_wishlist_item(item)) for item in items],
        total=len(items)
    )


@router.post("", response_model=WishlistItemResponse, status_code=status.HTTP_201_CREATED)
async def add_to_wishlist(
    request: AddWishlistItemRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    """
    Add a card to the wishlist.

    Responses:
        201: Card added
        409: Card already in the wishlist
    """
    item = await service.add_async(owner_id, request)
    return WishlistItemResponse(**flatten_wishlist_item(item))


@router.get("/check/{card_id}", response_model=WishlistCheckResponse)
async def check_wishlist(
    card_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    in_wishlist = await service.is_wished_async(owner_id, card_id)
    return WishlistCheckResponse(card_id=card_id, in_wishlist=in_wishlist)


@router.post("/check-multiple", response_model=dict[str, bool])
async def check_multiple(
    request: CheckWishlistRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    """Map of card ID to wishlist membership."""
    return await service.check_multiple_async(owner_id, request.card_ids)


@router.patch("/{card_id}", response_model=WishlistItemResponse)
async def update_wishlist_item(
    card_id: str,
    request: UpdateWishlistItemRequest,
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    item = await service.update_async(owner_id, card_id, request.model_dump(exclude_unset=True))
    return WishlistItemResponse(**flatten_wishlist_item(item))


@router.delete("/{card_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_from_wishlist(
    card_id: str,
    owner_id: str = Depends(get_current_owner_id),
    service: WishlistService = Depends(get_wishlist_service)
):
    await service.remove_async(owner_id, card_id)
