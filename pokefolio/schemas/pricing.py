"""Pydantic schemas for card pricing."""
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class PricePeriod(str, Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"


class PriceVariant(str, Enum):
    NORMAL = "normal"
    HOLOFOIL = "holofoil"
    REVERSE_HOLOFOIL = "reverseHolofoil"


class MarketPrice(BaseModel):
    low: Optional[float] = None
    mid: Optional[float] = None
    high: Optional[float] = None
    market: Optional[float] = None
    direct_low: Optional[float] = Field(None, alias="directLow")

    model_config = ConfigDict(populate_by_name=True)


class CardPricingResponse(BaseModel):
    """Current tcgplayer prices keyed by print variant (normal, holofoil, 1stEditionHolofoil, ...)."""
    card_id: str = Field(..., alias="cardId")
    updated_at: Optional[str] = Field(None, alias="updatedAt")
    prices: dict[str, MarketPrice]

    model_config = ConfigDict(populate_by_name=True)


class PriceHistoryPoint(BaseModel):
    date: str
    price: float
    type: str = "market"


class PriceHistoryResponse(BaseModel):
    card_id: str = Field(..., alias="cardId")
    period: PricePeriod
    data: list[PriceHistoryPoint]

    model_config = ConfigDict(populate_by_name=True)
