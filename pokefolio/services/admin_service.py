"""Cross-owner reporting and data repair for administrators."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.exceptions import NotFoundError
from pokefolio.db.models.activity_log import ActivityLog, ActivityType
from pokefolio.db.models.portfolio_item import PortfolioItem
from pokefolio.repositories.activity_log_repository import ActivityLogRepository
from pokefolio.repositories.portfolio_repository import PortfolioRepository
from pokefolio.services.portfolio_service import UNITARY_FIELDS, flatten_item
from pokefolio.services.result_objects import RepairReport
from pokefolio.services.utils.date_utilities import DateUtilities
from pokefolio.services.valuation import holding_cost

logger = logging.getLogger(__name__)


def repair_item(item: PortfolioItem) -> bool:
    """
    Restore the mode invariant of one holding. Returns True when something changed.

    Variant holdings get ``quantity = len(variants)`` and no unitary data;
    an empty variant list means unitary mode; quantity is at least 1.
    """
    changed = False

    if item.variants:
        if item.quantity != len(item.variants):
            item.quantity = len(item.variants)
            changed = True
        for field in UNITARY_FIELDS:
            if getattr(item, field) is not None:
                setattr(item, field, None)
                changed = True
        return changed

    if item.variants is not None:
        item.variants = None
        changed = True
    if item.quantity is None or item.quantity < 1:
        item.quantity = 1
        changed = True
    return changed


def summarize_owners(items: list[PortfolioItem]) -> list[dict]:
    """Per-owner copies, holdings, purchase value and last activity, by value descending."""
    owners: dict[str, dict] = {}
    for item in items:
        owner = owners.setdefault(item.owner_id, {
            "owner_id": item.owner_id,
            "cards_count": 0,
            "distinct_cards": 0,
            "total_value": 0.0,
            "last_activity": None,
        })
        owner["cards_count"] += item.quantity or 0
        owner["distinct_cards"] += 1
        owner["total_value"] += holding_cost(item)
        updated = DateUtilities.as_utc(item.updated_at)
        if updated and (owner["last_activity"] is None or updated > owner["last_activity"]):
            owner["last_activity"] = updated

    for owner in owners.values():
        owner["total_value"] = round(owner["total_value"], 2)
    return sorted(owners.values(), key=lambda o: o["total_value"], reverse=True)


class AdminService:
    """Service layer for the admin surface."""

    def __init__(
        self,
        db: AsyncSession,
        repository: Optional[PortfolioRepository] = None,
        activity_logs: Optional[ActivityLogRepository] = None
    ):
        self.db = db
        self.repository = repository or PortfolioRepository(db)
        self.activity_logs = activity_logs or ActivityLogRepository(db)

    # ==================== Reports ====================

    async def get_global_stats_async(self) -> dict:
        one_week_ago = datetime.now(timezone.utc) - timedelta(days=7)
        counts = await self.repository.get_global_counts_async(one_week_ago)
        items = await self.repository.list_all_async()

        return {
            "total_owners": counts["total_owners"],
            "active_owners_this_week": counts["active_owners"],
            "total_items": counts["total_items"],
            "total_copies": counts["total_copies"],
            "new_items_this_week": counts["new_items"],
            "total_value": round(sum(holding_cost(item) for item in items), 2),
        }

    async def get_top_cards_async(self, limit: int = 10) -> list[dict]:
        """Most held cards across owners, by copies."""
        cards: dict[str, dict] = {}
        for item in await self.repository.list_all_async():
            snapshot = item.card_snapshot or {}
            card = cards.setdefault(item.card_id, {
                "card_id": item.card_id,
                "name": snapshot.get("name"),
                "set_name": (snapshot.get("set") or {}).get("name"),
                "image_url": snapshot.get("image_url"),
                "total_quantity": 0,
                "owners": set(),
            })
            card["total_quantity"] += item.quantity or 0
            card["owners"].add(item.owner_id)

        ranked = sorted(cards.values(), key=lambda c: c["total_quantity"], reverse=True)[:limit]
        return [
            {**{k: v for k, v in card.items() if k != "owners"}, "owners_count": len(card["owners"])}
            for card in ranked
        ]

    async def get_top_owners_async(self, limit: int = 10) -> list[dict]:
        items = await self.repository.list_all_async()
        return [
            {"owner_id": o["owner_id"], "total_value": o["total_value"], "cards_count": o["cards_count"]}
            for o in summarize_owners(items)[:limit]
        ]

    async def get_charts_data_async(self, days: int = 30) -> dict:
        """Holdings created per day over the last ``days`` days."""
        since = datetime.now(timezone.utc) - timedelta(days=days)
        per_day = await self.repository.count_created_per_day_async(since)
        return {
            "new_items_by_day": [
                {"date": day.isoformat(), "count": count} for day, count in per_day
            ]
        }

    async def get_set_distribution_async(self, limit: int = 20) -> list[dict]:
        sets: dict[str, dict] = {}
        for item in await self.repository.list_all_async():
            set_name = ((item.card_snapshot or {}).get("set") or {}).get("name")
            if not set_name:
                continue
            entry = sets.setdefault(set_name, {"set_name": set_name, "cards_count": 0, "unique_cards": 0})
            entry["cards_count"] += item.quantity or 0
            entry["unique_cards"] += 1

        return sorted(sets.values(), key=lambda s: s["cards_count"], reverse=True)[:limit]

    async def list_owners_async(self) -> list[dict]:
        return summarize_owners(await self.repository.list_all_async())

    async def get_owner_details_async(self, owner_id: str) -> dict:
        items = await self.repository.list_by_owner_async(owner_id)
        if not items:
            raise NotFoundError(f"Owner {owner_id} has no portfolio")

        return {
            "owner_id": owner_id,
            "items": [flatten_item(item) for item in items],
            "stats": {
                "cards_count": sum(item.quantity or 0 for item in items),
                "distinct_cards": len(items),
                "total_value": round(sum(holding_cost(item) for item in items), 2),
            },
        }

    async def get_activity_logs_async(
        self,
        owner_id: Optional[str] = None,
        activity_type: Optional[ActivityType] = None,
        skip: int = 0,
        limit: int = 50
    ) -> tuple[list[ActivityLog], int]:
        return await self.activity_logs.find_async(
            owner_id=owner_id,
            activity_type=activity_type.value if activity_type else None,
            skip=skip,
            limit=limit
        )

    # ==================== Mutations ====================

    async def delete_owner_portfolio_async(self, owner_id: str) -> int:
        deleted_count = await self.repository.delete_by_owner_async(owner_id)
        if deleted_count == 0:
            raise NotFoundError(f"Owner {owner_id} has no portfolio")

        await self.activity_logs.log_async(
            owner_id, ActivityType.PORTFOLIO_CLEARED, {"deleted_count": deleted_count, "by": "admin"}
        )
        await self.db.commit()
        logger.info(f"Admin deleted the portfolio of {owner_id} ({deleted_count} items)")
        return deleted_count

    async def delete_owner_item_async(self, owner_id: str, item_id: int) -> None:
        item = await self.repository.get_owned_async(owner_id, item_id)
        if not item:
            raise NotFoundError(f"Portfolio item {item_id} not found for owner {owner_id}")

        await self.repository.delete(item)
        await self.activity_logs.log_async(owner_id, ActivityType.CARD_DELETED, {
            "item_id": item_id,
            "card_id": item.card_id,
            "by": "admin",
        })
        await self.db.commit()
        logger.info(f"Admin deleted portfolio item {item_id} of {owner_id}")

    async def repair_data_async(self) -> RepairReport:
        """Re-establish the unitary/variant invariant on every holding."""
        report = RepairReport()

        for item in await self.repository.list_all_async():
            report.inspected += 1
            if repair_item(item):
                report.repaired += 1
                report.repaired_ids.append(item.id)
                await self.activity_logs.log_async(item.owner_id, ActivityType.DATA_REPAIRED, {
                    "item_id": item.id,
                    "card_id": item.card_id,
                    "quantity": item.quantity,
                })

        await self.db.commit()
        logger.info(f"Data repair: {report.repaired} of {report.inspected} items repaired")
        return report
