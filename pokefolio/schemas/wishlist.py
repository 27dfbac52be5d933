"""Pydantic schemas for Wishlist API requests and responses."""
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from enum import Enum
from typing import Optional


class WishlistPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AddWishlistItemRequest(BaseModel):
    card_id: str = Field(min_length=1, max_length=64, alias="cardId")
    name: Optional[str] = None
    set_id: Optional[str] = Field(None, alias="setId")
    set_name: Optional[str] = Field(None, alias="setName")
    set_logo: Optional[str] = Field(None, alias="setLogo")
    set_symbol: Optional[str] = Field(None, alias="setSymbol")
    set_release_date: Optional[str] = Field(None, alias="setReleaseDate")
    number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_url_hi_res: Optional[str] = Field(None, alias="imageUrlHiRes")
    types: Optional[list[str]] = None
    category: Optional[str] = None
    priority: WishlistPriority = WishlistPriority.MEDIUM
    target_price: Optional[float] = Field(None, ge=0, alias="targetPrice")
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class UpdateWishlistItemRequest(BaseModel):
    priority: Optional[WishlistPriority] = None
    target_price: Optional[float] = Field(None, ge=0, alias="targetPrice")
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class CheckWishlistRequest(BaseModel):
    card_ids: list[str] = Field(alias="cardIds")

    model_config = ConfigDict(populate_by_name=True)


class WishlistItemResponse(BaseModel):
    id: int
    card_id: str = Field(alias="cardId")
    name: Optional[str] = None
    set_id: Optional[str] = Field(None, alias="setId")
    set_name: Optional[str] = Field(None, alias="setName")
    set_logo: Optional[str] = Field(None, alias="setLogo")
    set_symbol: Optional[str] = Field(None, alias="setSymbol")
    release_date: Optional[str] = Field(None, alias="releaseDate")
    number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_url_hi_res: Optional[str] = Field(None, alias="imageUrlHiRes")
    types: Optional[list[str]] = None
    category: Optional[str] = None
    priority: WishlistPriority
    target_price: Optional[float] = Field(None, alias="targetPrice")
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = ConfigDict(populate_by_name=True)


class WishlistResponse(BaseModel):
    items: list[WishlistItemResponse]
    total: int


class WishlistCheckResponse(BaseModel):
    card_id: str = Field(alias="cardId")
    in_wishlist: bool = Field(alias="inWishlist")

    model_config = ConfigDict(populate_by_name=True)
