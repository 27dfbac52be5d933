"""Dashboard statistics over an owner's holdings (read-only)."""
import logging
from dataclasses import dataclass
from datetime import datetime, date, timezone
from itertools import accumulate
from typing import Callable, Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.constants import DashboardConstants, SetConstants
from pokefolio.core.exceptions import BadRequestError
from pokefolio.db.models.portfolio_item import PortfolioItem
from pokefolio.repositories.portfolio_repository import PortfolioRepository
from pokefolio.schemas.dashboard import (
    ActivityKind,
    PeriodFilter,
    PeriodType,
    TimeSeriesBucket,
    TimeSeriesMetric
)
from pokefolio.services.metrics_service import get_metrics_service
from pokefolio.services.utils.date_utilities import DateUtilities
from pokefolio.services.valuation import effective_graded, effective_price, representative_price

logger = logging.getLogger(__name__)

CUSTOM_PERIOD = "custom"


@dataclass
class ResolvedPeriod:
    """Concrete date range of a period filter. ``start``/``end`` are None for "all"."""
    kind: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def resolve_period(period: Optional[PeriodFilter], today: Optional[date] = None) -> ResolvedPeriod:
    """
    Turn a period filter into a date range.

    Explicit start/end dates win over the type/year/month/week selector.
    Weeks are fixed 7-day blocks inside the month starting on day
    ``1 + (week - 1) * 7``, the last block ending on the month's last day.
    """
    if period is None:
        return ResolvedPeriod(PeriodType.ALL.value)

    if period.start_date or period.end_date:
        end = DateUtilities.as_utc(period.end_date)
        if end is not None and end.time() == datetime.min.time():
            end = DateUtilities.end_of_day(end.date())
        return ResolvedPeriod(CUSTOM_PERIOD, DateUtilities.as_utc(period.start_date), end)

    today = today or datetime.now(timezone.utc).date()
    year = period.year or today.year
    month = period.month or today.month

    if period.type == PeriodType.YEAR:
        return ResolvedPeriod(
            period.type.value,
            DateUtilities.start_of_day(date(year, 1, 1)),
            DateUtilities.end_of_day(date(year, 12, 31)),
        )

    if period.type == PeriodType.MONTH:
        return ResolvedPeriod(
            period.type.value,
            DateUtilities.start_of_day(date(year, month, 1)),
            DateUtilities.end_of_day(DateUtilities.last_day_of_month(year, month)),
        )

    if period.type == PeriodType.WEEK:
        week = period.week or 1
        month_end = DateUtilities.last_day_of_month(year, month)
        start_day = 1 + (week - 1) * DashboardConstants.WEEK_BLOCK_DAYS
        if start_day > month_end.day:
            raise BadRequestError(f"Week {week} does not exist in {year}-{month:02d}")
        end_day = min(start_day + DashboardConstants.WEEK_BLOCK_DAYS - 1, month_end.day)
        return ResolvedPeriod(
            period.type.value,
            DateUtilities.start_of_day(date(year, month, start_day)),
            DateUtilities.end_of_day(date(year, month, end_day)),
        )

    return ResolvedPeriod(PeriodType.ALL.value)


def effective_bucket(bucket: TimeSeriesBucket, period: ResolvedPeriod) -> TimeSeriesBucket:
    """Narrow the granularity to what the period can show."""
    if period.kind == PeriodType.WEEK.value:
        return TimeSeriesBucket.DAILY
    if period.kind == PeriodType.MONTH.value and bucket == TimeSeriesBucket.MONTHLY:
        return TimeSeriesBucket.WEEKLY
    return bucket


def acquisition_date(item: PortfolioItem) -> datetime:
    """Unitary purchase date, else the first variant's purchase date, else creation date."""
    if item.purchase_date:
        return DateUtilities.as_utc(item.purchase_date)
    if item.variants:
        first = DateUtilities.parse_date_time(item.variants[0].get("purchase_date"))
        if first:
            return first
    return DateUtilities.as_utc(item.created_at)


def creation_date(item: PortfolioItem) -> datetime:
    return DateUtilities.as_utc(item.created_at)


def bucket_label(moment: datetime, bucket: TimeSeriesBucket) -> str:
    if bucket == TimeSeriesBucket.DAILY:
        return moment.strftime("%Y-%m-%d")
    if bucket == TimeSeriesBucket.WEEKLY:
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return moment.strftime("%Y-%m")


def cumulative(points: Iterable[tuple[str, float]]) -> list[dict]:
    """Running totals over chronologically sorted ``(label, delta)`` pairs."""
    points = list(points)
    totals = accumulate(value for _, value in points)
    return [
        {"date": label, "value": round(total, 2)}
        for (label, _), total in zip(points, totals)
    ]


def _set_identity(item: PortfolioItem) -> tuple[str, str]:
    set_info = (item.card_snapshot or {}).get("set") or {}
    return (
        set_info.get("id") or SetConstants.UNKNOWN_SET_ID,
        set_info.get("name") or SetConstants.UNKNOWN_SET_DISPLAY_NAME,
    )


def _image_url(item: PortfolioItem) -> Optional[str]:
    snapshot = item.card_snapshot or {}
    return snapshot.get("image_url_hi_res") or snapshot.get("image_url")


def summarize(items: list[PortfolioItem]) -> dict:
    set_ids = {((item.card_snapshot or {}).get("set") or {}).get("id") for item in items}
    set_ids.discard(None)

    return {
        "total_cards": sum(item.quantity or 0 for item in items),
        "distinct_cards": len({item.card_id for item in items}),
        "total_sets": len(set_ids),
        "total_value": round(sum(effective_price(item) for item in items), 2),
        "graded_count": sum(item.quantity or 0 for item in items if effective_graded(item)),
    }


def build_time_series(
    items: list[PortfolioItem],
    metric: TimeSeriesMetric,
    bucket: TimeSeriesBucket,
    date_of: Callable[[PortfolioItem], datetime]
) -> list[dict]:
    per_bucket: dict[str, float] = {}
    for item in items:
        label = bucket_label(date_of(item), bucket)
        value = (item.quantity or 0) if metric == TimeSeriesMetric.COUNT else effective_price(item)
        per_bucket[label] = per_bucket.get(label, 0) + value

    return cumulative(sorted(per_bucket.items()))


def _grade_company(item: PortfolioItem) -> Optional[str]:
    """Holding's grading company, else the first graded variant's."""
    if item.grading and item.grading.get("company"):
        return item.grading["company"]
    for variant in item.variants or []:
        if variant.get("graded") is True:
            return (variant.get("grading") or {}).get("company")
    return None


def grade_distribution(items: list[PortfolioItem]) -> dict:
    graded = normal = 0
    companies: dict[str, int] = {}

    for item in items:
        quantity = item.quantity or 0
        if not effective_graded(item):
            normal += quantity
            continue
        graded += quantity
        company = _grade_company(item)
        if company:
            companies[company] = companies.get(company, 0) + quantity

    total = graded + normal
    by_company = [
        {
            "company": company,
            "count": count,
            "percentage": round(count / graded * 100, 2) if graded else 0,
        }
        for company, count in sorted(companies.items(), key=lambda c: c[1], reverse=True)
    ]

    return {
        "graded": graded,
        "normal": normal,
        "total": total,
        "graded_percentage": round(graded / total * 100) if total else 0,
        "by_company": by_company,
    }


def top_sets(items: list[PortfolioItem], limit: int) -> dict:
    groups: dict[str, dict] = {}
    for item in items:
        set_id, set_name = _set_identity(item)
        group = groups.setdefault(set_id, {
            "set_id": set_id, "set_name": set_name, "card_count": 0, "total_value": 0.0,
        })
        group["card_count"] += item.quantity or 0
        group["total_value"] += effective_price(item)

    ranked = sorted(groups.values(), key=lambda g: g["card_count"], reverse=True)[:limit]
    for group in ranked:
        group["total_value"] = round(group["total_value"], 2)

    return {"sets": ranked, "total_sets": len(groups)}


def activity_kind(item: PortfolioItem) -> ActivityKind:
    """``updated`` when the last update is more than a second after creation."""
    created = DateUtilities.as_utc(item.created_at)
    updated = DateUtilities.as_utc(item.updated_at)
    if created and updated and (updated - created).total_seconds() * 1000 > DashboardConstants.UPDATED_THRESHOLD_MS:
        return ActivityKind.UPDATED
    return ActivityKind.ADDED


def recent_activity(items: list[PortfolioItem]) -> list[dict]:
    return [
        {
            "item_id": item.id,
            "card_id": item.card_id,
            "card_name": (item.card_snapshot or {}).get("name"),
            "image_url": _image_url(item),
            "type": activity_kind(item),
            "date": item.updated_at,
            "quantity": item.quantity,
            "is_graded": effective_graded(item),
        }
        for item in items
    ]


def expensive_cards(items: list[PortfolioItem], limit: int) -> list[dict]:
    priced = []
    for item in items:
        price, variant = representative_price(item)
        if not price or price <= 0:
            continue

        source_graded = variant.get("graded") is True if variant else item.graded is True
        grading = (variant.get("grading") if variant else item.grading) or {}
        priced.append({
            "item_id": item.id,
            "card_id": item.card_id,
            "card_name": (item.card_snapshot or {}).get("name"),
            "image_url": _image_url(item),
            "set_name": ((item.card_snapshot or {}).get("set") or {}).get("name"),
            "price": price,
            "is_graded": source_graded,
            "grade_company": grading.get("company"),
            "grade_score": grading.get("grade"),
        })

    priced.sort(key=lambda card: card["price"], reverse=True)
    return priced[:limit]


class DashboardService:
    """Service layer for dashboard statistics."""

    def __init__(self, db: AsyncSession, repository: Optional[PortfolioRepository] = None):
        self.db = db
        self.repository = repository or PortfolioRepository(db)
        self.metrics = get_metrics_service()

    async def _load_items(self, owner_id: str, period: ResolvedPeriod) -> list[PortfolioItem]:
        return await self.repository.list_by_owner_async(
            owner_id, created_from=period.start, created_to=period.end
        )

    async def get_summary_async(self, owner_id: str, period_filter: Optional[PeriodFilter] = None) -> dict:
        """Totals over the owner's holdings created in the period."""
        with self.metrics.track_dashboard_request("summary"):
            period = resolve_period(period_filter)
            items = await self._load_items(owner_id, period)
            summary = summarize(items)

        summary["calculated_at"] = datetime.now(timezone.utc)
        return summary

    async def get_time_series_async(
        self,
        owner_id: str,
        metric: TimeSeriesMetric = TimeSeriesMetric.COUNT,
        bucket: TimeSeriesBucket = TimeSeriesBucket.MONTHLY,
        period_filter: Optional[PeriodFilter] = None
    ) -> dict:
        """
        Cumulative time series of copies or value.

        With period "all" holdings are dated by acquisition (purchase date
        chain); otherwise by creation date.
        """
        with self.metrics.track_dashboard_request("timeseries"):
            period = resolve_period(period_filter)
            bucket = effective_bucket(bucket, period)
            items = await self._load_items(owner_id, period)

            date_of = acquisition_date if period.kind == PeriodType.ALL.value else creation_date

            data = build_time_series(items, metric, bucket, date_of)

        logger.info(f"Time series for {owner_id}: {metric.value}/{bucket.value}, {len(data)} points")
        return {
            "metric": metric,
            "bucket": bucket,
            "period": period_filter.type if period_filter else PeriodType.ALL,
            "data": data,
        }

    async def get_grade_distribution_async(self, owner_id: str) -> dict:
        with self.metrics.track_dashboard_request("grade_distribution"):
            items = await self.repository.list_by_owner_async(owner_id)
            return grade_distribution(items)

    async def get_top_sets_async(self, owner_id: str, limit: int = DashboardConstants.DEFAULT_TOP_SETS) -> dict:
        with self.metrics.track_dashboard_request("top_sets"):
            items = await self.repository.list_by_owner_async(owner_id)
            return top_sets(items, limit)

    async def get_recent_activity_async(
        self,
        owner_id: str,
        limit: int = DashboardConstants.DEFAULT_RECENT_ACTIVITY
    ) -> list[dict]:
        with self.metrics.track_dashboard_request("recent_activity"):
            items = await self.repository.list_recently_updated_async(owner_id, limit)
            return recent_activity(items)

    async def get_expensive_cards_async(
        self,
        owner_id: str,
        limit: int = DashboardConstants.DEFAULT_EXPENSIVE_CARDS
    ) -> list[dict]:
        with self.metrics.track_dashboard_request("expensive_cards"):
            items = await self.repository.list_by_owner_async(owner_id)
            return expensive_cards(items, limit)
