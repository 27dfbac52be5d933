"""Repository for wishlist items data access."""
from typing import Iterable, List, Optional, Set
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.db.models.wishlist_item import WishlistItem
from pokefolio.repositories.base import BaseRepository


class WishlistRepository(BaseRepository[WishlistItem]):
    """Repository for wishlist entries."""

    def __init__(self, db: AsyncSession):
        super().__init__(WishlistItem, db)

    async def get_by_card_async(self, owner_id: str, card_id: str) -> Optional[WishlistItem]:
        result = await self.db.execute(
            select(WishlistItem).where(
                WishlistItem.owner_id == owner_id,
                WishlistItem.card_id == card_id
            )
        )
        return result.scalar_one_or_none()

    async def list_by_owner_async(self, owner_id: str) -> List[WishlistItem]:
        result = await self.db.execute(
            select(WishlistItem)
            .where(WishlistItem.owner_id == owner_id)
            .order_by(WishlistItem.created_at.desc())
        )
        return list(result.scalars().all())

    async def wished_card_ids_async(self, owner_id: str, card_ids: Iterable[str]) -> Set[str]:
        wanted = list(card_ids)
        if not wanted:
            return set()

        result = await self.db.execute(
            select(WishlistItem.card_id).where(
                WishlistItem.owner_id == owner_id,
                WishlistItem.card_id.in_(wanted)
            )
        )
        return {row[0] for row in result.all()}

    async def delete_by_card_async(self, owner_id: str, card_id: str) -> bool:
        result = await self.db.execute(
            delete(WishlistItem).where(
                WishlistItem.owner_id == owner_id,
                WishlistItem.card_id == card_id
            )
        )
        await self.db.flush()
        return result.rowcount > 0
