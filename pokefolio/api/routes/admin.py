import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.auth import CurrentUser, require_admin
from pokefolio.db.models.activity_log import ActivityType
from pokefolio.db.session import get_db
from pokefolio.services.admin_service import AdminService
from pokefolio.schemas.admin import (
    ActivityLogEntry,
    ActivityLogsResponse,
    AdminDeleteResponse,
    ChartsDataResponse,
    GlobalStatsResponse,
    OwnerDetailsResponse,
    OwnerSummary,
    RepairReportResponse,
    SetDistributionItem,
    TopCard,
    TopOwner
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    """Dependency to get AdminService instance."""
    return AdminService(db)


# ==================== Reports ====================

@router.get("/stats", response_model=GlobalStatsResponse)
async def get_global_stats(
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Platform-wide counts and purchase value."""
    stats = await service.get_global_stats_async()
    return GlobalStatsResponse(**stats)


@router.get("/stats/top-cards", response_model=list[TopCard])
async def get_top_cards(
    limit: int = Query(10, ge=1, le=100),
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    cards = await service.get_top_cards_async(limit)
    return [TopCard(**card) for card in cards]


@router.get("/stats/top-owners", response_model=list[TopOwner])
async def get_top_owners(
    limit: int = Query(10, ge=1, le=100),
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    owners = await service.get_top_owners_async(limit)
    return [TopOwner(**owner) for owner in owners]


@router.get("/stats/charts", response_model=ChartsDataResponse)
async def get_charts_data(
    days: int = Query(30, ge=1, le=365),
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    data = await service.get_charts_data_async(days)
    return ChartsDataResponse(**data)


@router.get("/stats/sets", response_model=list[SetDistributionItem])
async def get_set_distribution(
    limit: int = Query(20, ge=1, le=100),
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    sets = await service.get_set_distribution_async(limit)
    return [SetDistributionItem(**entry) for entry in sets]


@router.get("/owners", response_model=list[OwnerSummary])
async def list_owners(
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Every owner with a portfolio, by purchase value descending."""
    owners = await service.list_owners_async()
    return [OwnerSummary(**owner) for owner in owners]


@router.get("/owners/{owner_id}", response_model=OwnerDetailsResponse)
async def get_owner_details(
    owner_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    details = await service.get_owner_details_async(owner_id)
    return OwnerDetailsResponse(**details)


@router.get("/logs", response_model=ActivityLogsResponse)
async def get_activity_logs(
    owner_id: Optional[str] = Query(None, alias="ownerId"),
    activity_type: Optional[ActivityType] = Query(None, alias="type"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """
    Activity journal, newest first.

    Query Parameters:
        ownerId: Only this owner's entries
        type: Only this activity type
        skip, limit: Pagination
    """
    logs, total = await service.get_activity_logs_async(owner_id, activity_type, skip, limit)
    return ActivityLogsResponse(
        logs=[
            ActivityLogEntry(
                id=log.id,
                owner_id=log.owner_id,
                type=log.type,
                metadata=log.event_metadata,
                created_at=log.created_at
            )
            for log in logs
        ],
        total=total
    )


# ==================== Mutations ====================

@router.delete("/owners/{owner_id}", response_model=AdminDeleteResponse)
async def delete_owner_portfolio(
    owner_id: str,
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    deleted_count = await service.delete_owner_portfolio_async(owner_id)
    logger.info(f"{admin.owner_id} cleared the portfolio of {owner_id}")
    return AdminDeleteResponse(
        deleted=True,
        deleted_count=deleted_count,
        message=f"{deleted_count} item(s) deleted for owner {owner_id}"
    )


@router.delete("/owners/{owner_id}/cards/{item_id}", response_model=AdminDeleteResponse)
async def delete_owner_item(
    owner_id: str,
    item_id: int,
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    await service.delete_owner_item_async(owner_id, item_id)
    logger.info(f"{admin.owner_id} deleted item {item_id} of {owner_id}")
    return AdminDeleteResponse(
        deleted=True,
        deleted_count=1,
        message=f"Portfolio item {item_id} deleted"
    )


@router.post("/repair", response_model=RepairReportResponse)
async def repair_data(
    admin: CurrentUser = Depends(require_admin),
    service: AdminService = Depends(get_admin_service)
):
    """Restore the unitary/variant invariant on every holding."""
    report = await service.repair_data_async()
    return RepairReportResponse(
        inspected=report.inspected,
        repaired=report.repaired,
        repaired_ids=report.repaired_ids
    )
