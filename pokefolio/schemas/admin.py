"""Pydantic schemas for Admin API responses."""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Any, Optional

from pokefolio.schemas.portfolio import PortfolioItemResponse


class GlobalStatsResponse(BaseModel):
    total_owners: int = Field(alias="totalOwners")
    active_owners_this_week: int = Field(alias="activeOwnersThisWeek")
    total_items: int = Field(alias="totalItems")
    total_copies: int = Field(alias="totalCopies")
    new_items_this_week: int = Field(alias="newItemsThisWeek")
    total_value: float = Field(alias="totalValue")

    model_config = ConfigDict(populate_by_name=True)


class TopCard(BaseModel):
    card_id: str = Field(alias="cardId")
    name: Optional[str] = None
    set_name: Optional[str] = Field(None, alias="setName")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    total_quantity: int = Field(alias="totalQuantity")
    owners_count: int = Field(alias="ownersCount")

    model_config = ConfigDict(populate_by_name=True)


class TopOwner(BaseModel):
    owner_id: str = Field(alias="ownerId")
    total_value: float = Field(alias="totalValue")
    cards_count: int = Field(alias="cardsCount")

    model_config = ConfigDict(populate_by_name=True)


class DailyCount(BaseModel):
    date: str
    count: int


class ChartsDataResponse(BaseModel):
    new_items_by_day: list[DailyCount] = Field(alias="newItemsByDay")

    model_config = ConfigDict(populate_by_name=True)


class SetDistributionItem(BaseModel):
    set_name: str = Field(alias="setName")
    cards_count: int = Field(alias="cardsCount")
    unique_cards: int = Field(alias="uniqueCards")

    model_config = ConfigDict(populate_by_name=True)


class OwnerSummary(BaseModel):
    owner_id: str = Field(alias="ownerId")
    cards_count: int = Field(alias="cardsCount")
    distinct_cards: int = Field(alias="distinctCards")
    total_value: float = Field(alias="totalValue")
    last_activity: Optional[datetime] = Field(None, alias="lastActivity")

    model_config = ConfigDict(populate_by_name=True)


class OwnerStats(BaseModel):
    cards_count: int = Field(alias="cardsCount")
    distinct_cards: int = Field(alias="distinctCards")
    total_value: float = Field(alias="totalValue")

    model_config = ConfigDict(populate_by_name=True)


class OwnerDetailsResponse(BaseModel):
    owner_id: str = Field(alias="ownerId")
    items: list[PortfolioItemResponse]
    stats: OwnerStats

    model_config = ConfigDict(populate_by_name=True)


class AdminDeleteResponse(BaseModel):
    deleted: bool
    deleted_count: int = Field(alias="deletedCount")
    message: str

    model_config = ConfigDict(populate_by_name=True)


class RepairReportResponse(BaseModel):
    inspected: int
    repaired: int
    repaired_ids: list[int] = Field(alias="repairedIds")

    model_config = ConfigDict(populate_by_name=True)


class ActivityLogEntry(BaseModel):
    id: int
    owner_id: str = Field(alias="ownerId")
    type: str
    metadata: Optional[dict[str, Any]] = None
    created_at: datetime = Field(alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class ActivityLogsResponse(BaseModel):
    logs: list[ActivityLogEntry]
    total: int
