"""Business logic service for the wishlist."""
import logging
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.exceptions import DuplicateError, NotFoundError
from pokefolio.db.models.wishlist_item import WishlistItem
from pokefolio.repositories.wishlist_repository import WishlistRepository
from pokefolio.schemas.wishlist import AddWishlistItemRequest

logger = logging.getLogger(__name__)


def build_wishlist_snapshot(request: AddWishlistItemRequest) -> dict:
    snapshot = {
        key: value for key, value in {
            "name": request.name,
            "number": request.number,
            "rarity": request.rarity,
            "image_url": request.image_url,
            "image_url_hi_res": request.image_url_hi_res,
            "types": request.types,
            "category": request.category,
        }.items() if value
    }
    if request.set_id or request.set_name:
        snapshot["set"] = {
            "id": request.set_id,
            "name": request.set_name,
            "logo": request.set_logo,
            "symbol": request.set_symbol,
            "release_date": request.set_release_date,
        }
    return snapshot


def flatten_wishlist_item(item: WishlistItem) -> dict:
    snapshot = item.card_snapshot or {}
    set_info = snapshot.get("set") or {}
    return {
        "id": item.id,
        "card_id": item.card_id,
        "name": snapshot.get("name"),
        "set_id": set_info.get("id"),
        "set_name": set_info.get("name"),
        "set_logo": set_info.get("logo"),
        "set_symbol": set_info.get("symbol"),
        "release_date": set_info.get("release_date"),
        "number": snapshot.get("number"),
        "rarity": snapshot.get("rarity"),
        "image_url": snapshot.get("image_url"),
        "image_url_hi_res": snapshot.get("image_url_hi_res"),
        "types": snapshot.get("types"),
        "category": snapshot.get("category"),
        "priority": item.priority,
        "target_price": item.target_price,
        "notes": item.notes,
        "created_at": item.created_at,
    }


class WishlistService:
    """Service layer for wishlist entries, unique per owner and card."""

    def __init__(self, db: AsyncSession, repository: Optional[WishlistRepository] = None):
        self.db = db
        self.repository = repository or WishlistRepository(db)

    async def add_async(self, owner_id: str, request: AddWishlistItemRequest) -> WishlistItem:
        """
        Add a card to the wishlist.

        Raises:
            DuplicateError: Card already wished by this owner
        """
        if await self.repository.get_by_card_async(owner_id, request.card_id):
            raise DuplicateError(f"Card {request.card_id} is already in the wishlist")

        item = WishlistItem(
            owner_id=owner_id,
            card_id=request.card_id,
            card_snapshot=build_wishlist_snapshot(request),
            priority=request.priority.value,
            target_price=request.target_price,
            notes=request.notes,
        )
        try:
            item = await self.repository.create(item)
        except IntegrityError as ex:
            await self.db.rollback()
            raise DuplicateError(f"Card {request.card_id} is already in the wishlist") from ex

        await self.db.commit()
        logger.info(f"Added {request.card_id} to the wishlist of {owner_id}")
        return item

    async def remove_async(self, owner_id: str, card_id: str) -> None:
        if not await self.repository.delete_by_card_async(owner_id, card_id):
            raise NotFoundError(f"Card {card_id} is not in the wishlist")
        await self.db.commit()
        logger.info(f"Removed {card_id} from the wishlist of {owner_id}")

    async def list_async(self, owner_id: str) -> list[WishlistItem]:
        return await self.repository.list_by_owner_async(owner_id)

    async def is_wished_async(self, owner_id: str, card_id: str) -> bool:
        return await self.repository.get_by_card_async(owner_id, card_id) is not None

    async def check_multiple_async(self, owner_id: str, card_ids: list[str]) -> dict[str, bool]:
        wished = await self.repository.wished_card_ids_async(owner_id, card_ids)
        return {card_id: card_id in wished for card_id in card_ids}

    async def update_async(self, owner_id: str, card_id: str, changes: dict) -> WishlistItem:
        """Update priority, target price or notes; ``changes`` holds only the sent fields."""
        item = await self.repository.get_by_card_async(owner_id, card_id)
        if not item:
            raise NotFoundError(f"Card {card_id} is not in the wishlist")

        if changes.get("priority") is not None:
            priority = changes["priority"]
            item.priority = getattr(priority, "value", priority)
        if "target_price" in changes:
            item.target_price = changes["target_price"]
        if "notes" in changes:
            item.notes = changes["notes"]

        await self.db.commit()
        await self.db.refresh(item)
        return item
