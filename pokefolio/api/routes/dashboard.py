import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.auth import get_current_owner_id
from pokefolio.core.constants import DashboardConstants
from pokefolio.db.session import get_db
from pokefolio.services.dashboard_service import DashboardService
from pokefolio.schemas.dashboard import (
    DashboardSummaryResponse,
    ExpensiveCardsResponse,
    GradeDistributionResponse,
    PeriodFilter,
    PeriodType,
    RecentActivityResponse,
    TimeSeriesBucket,
    TimeSeriesMetric,
    TimeSeriesResponse,
    TopSetsResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


def get_dashboard_service(db: AsyncSession = Depends(get_db)) -> DashboardService:
    """Dependency to get DashboardService instance."""
    return DashboardService(db)


def get_period_filter(
    type: PeriodType = Query(PeriodType.ALL),
    year: Optional[int] = Query(None, ge=1970, le=9999),
    month: Optional[int] = Query(None, ge=1, le=12),
    week: Optional[int] = Query(None, ge=1, le=5),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate")
) -> PeriodFilter:
    """Build the period filter from query parameters."""
    return PeriodFilter(
        type=type,
        year=year,
        month=month,
        week=week,
        start_date=start_date,
        end_date=end_date
    )


@router.get("/summary", response_model=DashboardSummaryResponse)
async def get_summary(
    period: PeriodFilter = Depends(get_period_filter),
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Portfolio totals over the selected period.

    Query Parameters:
        type: all, year, month or week
        year, month, week: Period selector (week is a 7-day block of the month, 1-5)
        startDate, endDate: Explicit range, takes precedence over the selector
    """
    summary = await service.get_summary_async(owner_id, period)
    return DashboardSummaryResponse(**summary)


@router.get("/timeseries", response_model=TimeSeriesResponse)
async def get_time_series(
    metric: TimeSeriesMetric = Query(TimeSeriesMetric.COUNT),
    bucket: TimeSeriesBucket = Query(TimeSeriesBucket.MONTHLY),
    period: PeriodFilter = Depends(get_period_filter),
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    """
    Cumulative count or value over time.

    Each point carries the bucket total and the running total.
    """
    series = await service.get_time_series_async(owner_id, metric, bucket, period)
    return TimeSeriesResponse(**series)


@router.get("/grade-distribution", response_model=GradeDistributionResponse)
async def get_grade_distribution(
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    distribution = await service.get_grade_distribution_async(owner_id)
    return GradeDistributionResponse(**distribution)


@router.get("/top-sets", response_model=TopSetsResponse)
async def get_top_sets(
    limit: int = Query(DashboardConstants.DEFAULT_TOP_SETS, ge=1, le=20),
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    result = await service.get_top_sets_async(owner_id, limit)
    return TopSetsResponse(**result)


@router.get("/recent-activity", response_model=RecentActivityResponse)
async def get_recent_activity(
    limit: int = Query(DashboardConstants.DEFAULT_RECENT_ACTIVITY, ge=1, le=50),
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Most recently touched holdings, flagged as added or updated."""
    activities = await service.get_recent_activity_async(owner_id, limit)
    return RecentActivityResponse(activities=activities)


@router.get("/expensive-cards", response_model=ExpensiveCardsResponse)
async def get_expensive_cards(
    limit: int = Query(DashboardConstants.DEFAULT_EXPENSIVE_CARDS, ge=1, le=20),
    owner_id: str = Depends(get_current_owner_id),
    service: DashboardService = Depends(get_dashboard_service)
):
    cards = await service.get_expensive_cards_async(owner_id, limit)
    return ExpensiveCardsResponse(cards=cards)
