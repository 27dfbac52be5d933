"""Pydantic schemas for Dashboard API responses."""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from enum import Enum
from typing import Optional


class PeriodType(str, Enum):
    ALL = "all"
    YEAR = "year"
    MONTH = "month"
    WEEK = "week"


class TimeSeriesMetric(str, Enum):
    COUNT = "count"
    VALUE = "value"


class TimeSeriesBucket(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class ActivityKind(str, Enum):
    ADDED = "added"
    UPDATED = "updated"


class PeriodFilter(BaseModel):
    """
    Period selection.

    Explicit ``start_date``/``end_date`` take precedence over the
    ``type``/``year``/``month``/``week`` selector.
    """
    type: PeriodType = PeriodType.ALL
    year: Optional[int] = Field(None, ge=1970, le=9999)
    month: Optional[int] = Field(None, ge=1, le=12)
    week: Optional[int] = Field(None, ge=1, le=5)
    start_date: Optional[datetime] = Field(None, alias="startDate")
    end_date: Optional[datetime] = Field(None, alias="endDate")

    model_config = ConfigDict(populate_by_name=True)


class DashboardSummaryResponse(BaseModel):
    total_cards: int = Field(alias="totalCards")
    distinct_cards: int = Field(alias="distinctCards")
    total_sets: int = Field(alias="totalSets")
    total_value: float = Field(alias="totalValue")
    graded_count: int = Field(alias="gradedCount")
    calculated_at: datetime = Field(alias="calculatedAt")

    model_config = ConfigDict(populate_by_name=True)


class TimeSeriesPoint(BaseModel):
    date: str
    value: float


class TimeSeriesResponse(BaseModel):
    metric: TimeSeriesMetric
    bucket: TimeSeriesBucket
    period: PeriodType
    data: list[TimeSeriesPoint]


class GradeCompanyShare(BaseModel):
    company: str
    count: int
    percentage: float


class GradeDistributionResponse(BaseModel):
    graded: int
    normal: int
    total: int
    graded_percentage: int = Field(alias="gradedPercentage")
    by_company: list[GradeCompanyShare] = Field(alias="byCompany")

    model_config = ConfigDict(populate_by_name=True)


class TopSetItem(BaseModel):
    set_id: str = Field(alias="setId")
    set_name: str = Field(alias="setName")
    card_count: int = Field(alias="cardCount")
    total_value: float = Field(alias="totalValue")

    model_config = ConfigDict(populate_by_name=True)


class TopSetsResponse(BaseModel):
    sets: list[TopSetItem]
    total_sets: int = Field(alias="totalSets")

    model_config = ConfigDict(populate_by_name=True)


class RecentActivityItem(BaseModel):
    item_id: int = Field(alias="itemId")
    card_id: str = Field(alias="cardId")
    card_name: Optional[str] = Field(None, alias="cardName")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    type: ActivityKind
    date: datetime
    quantity: int
    is_graded: bool = Field(alias="isGraded")

    model_config = ConfigDict(populate_by_name=True)


class RecentActivityResponse(BaseModel):
    activities: list[RecentActivityItem]


class ExpensiveCardItem(BaseModel):
    item_id: int = Field(alias="itemId")
    card_id: str = Field(alias="cardId")
    card_name: Optional[str] = Field(None, alias="cardName")
    image_url: Optional[str] = Field(None, alias="imageUrl")
    set_name: Optional[str] = Field(None, alias="setName")
    price: float
    is_graded: bool = Field(alias="isGraded")
    grade_company: Optional[str] = Field(None, alias="gradeCompany")
    grade_score: Optional[str] = Field(None, alias="gradeScore")

    model_config = ConfigDict(populate_by_name=True)


class ExpensiveCardsResponse(BaseModel):
    cards: list[ExpensiveCardItem]
