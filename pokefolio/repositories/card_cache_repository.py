"""Repository for cached catalog responses."""
from datetime import datetime, timezone
from typing import Any, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.db.models.card_cache import CardCache


class CardCacheRepository:
    """Read-through cache storage for TCGdex payloads."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_fresh_async(self, cache_key: str, now: Optional[datetime] = None) -> Optional[Any]:
        """Return cached data for ``cache_key`` unless it has expired."""
        now = now or datetime.now(timezone.utc)
        result = await self.db.execute(
            select(CardCache).where(
                CardCache.cache_key == cache_key,
                CardCache.expires_at > now
            )
        )
        entry = result.scalar_one_or_none()
        return entry.data if entry else None

    async def set_async(self, cache_key: str, data: Any, expires_at: datetime) -> None:
        """Insert or refresh a cache entry."""
        result = await self.db.execute(
            select(CardCache).where(CardCache.cache_key == cache_key)
        )
        entry = result.scalar_one_or_none()

        if entry:
            entry.data = data
            entry.expires_at = expires_at
        else:
            self.db.add(CardCache(cache_key=cache_key, data=data, expires_at=expires_at))

        await self.db.flush()
