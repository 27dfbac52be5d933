"""Repository for activity logs."""
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.db.models.activity_log import ActivityLog, ActivityType


class ActivityLogRepository:
    """Append-only store of portfolio activity."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def log_async(
        self,
        owner_id: str,
        activity_type: ActivityType,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ActivityLog:
        entry = ActivityLog(
            owner_id=owner_id,
            type=activity_type.value,
            event_metadata=metadata
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def find_async(
        self,
        owner_id: Optional[str] = None,
        activity_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[ActivityLog], int]:
        """Page through logs, newest first. Returns the page and the total match count."""
        conditions = []
        if owner_id:
            conditions.append(ActivityLog.owner_id == owner_id)
        if activity_type:
            conditions.append(ActivityLog.type == activity_type)

        logs_result = await self.db.execute(
            select(ActivityLog)
            .where(*conditions)
            .order_by(ActivityLog.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        total_result = await self.db.execute(
            select(func.count()).select_from(ActivityLog).where(*conditions)
        )
        return list(logs_result.scalars().all()), total_result.scalar_one()
