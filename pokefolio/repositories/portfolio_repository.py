"""Repository for portfolio items data access."""
from datetime import datetime, date
from typing import Iterable, List, Optional, Set
from sqlalchemy import select, delete, func, distinct, cast, Date
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.db.models.portfolio_item import PortfolioItem
from pokefolio.repositories.base import BaseRepository


class PortfolioRepository(BaseRepository[PortfolioItem]):
    """Repository for portfolio items, always scoped by owner except for admin queries."""

    def __init__(self, db: AsyncSession):
        super().__init__(PortfolioItem, db)

    async def get_by_identity_async(
        self,
        owner_id: str,
        card_id: str,
        language: str,
        for_update: bool = False
    ) -> Optional[PortfolioItem]:
        """Get the holding for an (owner, card, language) triple, optionally row-locked."""
        query = select(PortfolioItem).where(
            PortfolioItem.owner_id == owner_id,
            PortfolioItem.card_id == card_id,
            PortfolioItem.language == language
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_owned_async(self, owner_id: str, item_id: int) -> Optional[PortfolioItem]:
        """Get a holding by ID only if it belongs to the owner."""
        result = await self.db.execute(
            select(PortfolioItem).where(
                PortfolioItem.id == item_id,
                PortfolioItem.owner_id == owner_id
            )
        )
        return result.scalar_one_or_none()

    async def list_by_owner_async(
        self,
        owner_id: str,
        card_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None
    ) -> List[PortfolioItem]:
        """List an owner's holdings, newest first, with optional card and creation-date filters."""
        query = select(PortfolioItem).where(PortfolioItem.owner_id == owner_id)

        if card_id:
            query = query.where(PortfolioItem.card_id == card_id)
        if created_from is not None:
            query = query.where(PortfolioItem.created_at >= created_from)
        if created_to is not None:
            query = query.where(PortfolioItem.created_at <= created_to)

        result = await self.db.execute(query.order_by(PortfolioItem.created_at.desc()))
        return list(result.scalars().all())

    async def list_recently_updated_async(self, owner_id: str, limit: int) -> List[PortfolioItem]:
        """Most recently updated holdings of an owner."""
        result = await self.db.execute(
            select(PortfolioItem)
            .where(PortfolioItem.owner_id == owner_id)
            .order_by(PortfolioItem.updated_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def owned_card_ids_async(self, owner_id: str, card_ids: Iterable[str]) -> Set[str]:
        """Subset of ``card_ids`` present among the owner's holdings."""
        wanted = list(card_ids)
        if not wanted:
            return set()

        result = await self.db.execute(
            select(distinct(PortfolioItem.card_id)).where(
                PortfolioItem.owner_id == owner_id,
                PortfolioItem.card_id.in_(wanted)
            )
        )
        return {row[0] for row in result.all()}

    async def delete_by_owner_async(self, owner_id: str) -> int:
        """Delete every holding of an owner and return how many were removed."""
        result = await self.db.execute(
            delete(PortfolioItem).where(PortfolioItem.owner_id == owner_id)
        )
        await self.db.flush()
        return result.rowcount or 0

    # ==================== Cross-owner queries (admin) ====================

    async def list_all_async(self) -> List[PortfolioItem]:
        """Every holding, ordered by owner then ID."""
        result = await self.db.execute(
            select(PortfolioItem).order_by(PortfolioItem.owner_id, PortfolioItem.id)
        )
        return list(result.scalars().all())

    async def get_global_counts_async(self, since: datetime) -> dict:
        """Owner, holding and copy counts, overall and for holdings created since ``since``."""
        totals = (await self.db.execute(
            select(
                func.count(distinct(PortfolioItem.owner_id)).label("total_owners"),
                func.count(PortfolioItem.id).label("total_items"),
                func.sum(PortfolioItem.quantity).label("total_copies"),
            )
        )).one()

        recent = (await self.db.execute(
            select(
                func.count(distinct(PortfolioItem.owner_id)).label("active_owners"),
                func.count(PortfolioItem.id).label("new_items"),
            )
            .where(PortfolioItem.created_at >= since)
        )).one()

        return {
            "total_owners": totals.total_owners or 0,
            "total_items": totals.total_items or 0,
            "total_copies": totals.total_copies or 0,
            "active_owners": recent.active_owners or 0,
            "new_items": recent.new_items or 0,
        }

    async def count_created_per_day_async(self, since: datetime) -> List[tuple[date, int]]:
        """Number of holdings created per calendar day since ``since``, oldest first."""
        day = cast(PortfolioItem.created_at, Date)
        result = await self.db.execute(
            select(day.label("day"), func.count(PortfolioItem.id).label("count"))
            .where(PortfolioItem.created_at >= since)
            .group_by(day)
            .order_by(day)
        )
        return [(row.day, row.count) for row in result.all()]
