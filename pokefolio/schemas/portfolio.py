"""Pydantic schemas for Portfolio API requests and responses."""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from typing import Any, Optional

from pokefolio.services.utils.date_utilities import DateUtilities


def _parse_purchase_date(value: Any) -> Optional[datetime]:
    return DateUtilities.parse_date_time(value)


class VariantInput(BaseModel):
    """One individually tracked copy."""
    purchase_price: Optional[float] = Field(None, ge=0, alias="purchasePrice")
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")
    booster: Optional[bool] = None
    graded: Optional[bool] = None
    grading: Optional[dict[str, Any]] = None
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)

    _purchase_date = field_validator("purchase_date", mode="before")(_parse_purchase_date)


class AddPortfolioItemRequest(BaseModel):
    """
    Add copies of a card.

    Either unitary fields plus ``quantity`` (every copy identical) or a
    ``variants`` list (one entry per copy). Catalog fields are copied into the
    holding's snapshot on creation.
    """
    card_id: str = Field(min_length=1, max_length=64, alias="cardId")
    language: str = Field(min_length=1, max_length=8)

    # Catalog metadata
    name: Optional[str] = None
    set_id: Optional[str] = Field(None, alias="setId")
    set_name: Optional[str] = Field(None, alias="setName")
    set_logo: Optional[str] = Field(None, alias="setLogo")
    set_symbol: Optional[str] = Field(None, alias="setSymbol")
    set_release_date: Optional[str] = Field(None, alias="setReleaseDate")
    set_card_count: Optional[int] = Field(None, alias="setCardCount")
    number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_url_hi_res: Optional[str] = Field(None, alias="imageUrlHiRes")
    types: Optional[list[str]] = None
    supertype: Optional[str] = None
    subtypes: Optional[list[str]] = None

    # Unitary mode
    quantity: Optional[int] = None
    purchase_price: Optional[float] = Field(None, ge=0, alias="purchasePrice")
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")
    booster: Optional[bool] = None
    graded: Optional[bool] = None
    grading: Optional[dict[str, Any]] = None
    notes: Optional[str] = None

    # Variant mode
    variants: Optional[list[VariantInput]] = None

    model_config = ConfigDict(populate_by_name=True)

    _purchase_date = field_validator("purchase_date", mode="before")(_parse_purchase_date)


class UpdatePortfolioItemRequest(BaseModel):
    """Partial update. Omitted fields are left untouched, ``null`` clears a field."""
    language: Optional[str] = Field(None, min_length=1, max_length=8)
    quantity: Optional[int] = None
    purchase_price: Optional[float] = Field(None, ge=0, alias="purchasePrice")
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")
    booster: Optional[bool] = None
    graded: Optional[bool] = None
    grading: Optional[dict[str, Any]] = None
    notes: Optional[str] = None
    variants: Optional[list[VariantInput]] = None

    model_config = ConfigDict(populate_by_name=True)

    _purchase_date = field_validator("purchase_date", mode="before")(_parse_purchase_date)


class CheckOwnershipRequest(BaseModel):
    card_ids: list[str] = Field(alias="cardIds")

    model_config = ConfigDict(populate_by_name=True)


class VariantResponse(BaseModel):
    purchase_price: Optional[float] = Field(None, alias="purchasePrice")
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")
    booster: bool = False
    is_graded: bool = Field(False, alias="isGraded")
    grade_company: Optional[str] = Field(None, alias="gradeCompany")
    grade_score: Optional[str] = Field(None, alias="gradeScore")
    certification_number: Optional[str] = Field(None, alias="certificationNumber")
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class PortfolioItemResponse(BaseModel):
    """Holding flattened for display: snapshot fields lifted to the top level."""
    id: int
    owner_id: str = Field(alias="ownerId")
    card_id: str = Field(alias="cardId")
    language: str
    quantity: int

    # Unitary fields
    purchase_price: Optional[float] = Field(None, alias="purchasePrice")
    purchase_date: Optional[datetime] = Field(None, alias="purchaseDate")
    booster: Optional[bool] = None
    graded: Optional[bool] = None
    notes: Optional[str] = None

    # Computed grading
    is_graded: bool = Field(False, alias="isGraded")
    grade_company: Optional[str] = Field(None, alias="gradeCompany")
    grade_score: Optional[str] = Field(None, alias="gradeScore")
    certification_number: Optional[str] = Field(None, alias="certificationNumber")

    variants: Optional[list[VariantResponse]] = None

    # Snapshot
    name: Optional[str] = None
    set_id: Optional[str] = Field(None, alias="setId")
    set_name: Optional[str] = Field(None, alias="setName")
    set_logo: Optional[str] = Field(None, alias="setLogo")
    set_symbol: Optional[str] = Field(None, alias="setSymbol")
    set_release_date: Optional[str] = Field(None, alias="setReleaseDate")
    set_card_count: Optional[int] = Field(None, alias="setCardCount")
    number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_url_hi_res: Optional[str] = Field(None, alias="imageUrlHiRes")
    types: Optional[list[str]] = None
    supertype: Optional[str] = None
    subtypes: Optional[list[str]] = None

    is_favorite: bool = Field(False, alias="isFavorite")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class DeleteItemResponse(BaseModel):
    deleted: bool
    message: str


class DeleteVariantResponse(BaseModel):
    """``item`` is absent when removing the last variant deleted the holding."""
    deleted: bool
    message: str
    item: Optional[PortfolioItemResponse] = None


class ClearPortfolioResponse(BaseModel):
    deleted_count: int = Field(alias="deletedCount")
    message: str

    model_config = ConfigDict(populate_by_name=True)


class CheckOwnershipResponse(BaseModel):
    ownership: dict[str, bool]


class SetCard(BaseModel):
    item_id: int = Field(alias="itemId")
    card_id: str = Field(alias="cardId")
    name: Optional[str] = None
    number: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    rarity: Optional[str] = None
    quantity: int
    is_graded: bool = Field(False, alias="isGraded")
    purchase_price: float = Field(0.0, alias="purchasePrice")

    model_config = ConfigDict(populate_by_name=True)


class SetCompletion(BaseModel):
    owned: int
    total: Optional[int] = None
    percentage: Optional[int] = None


class PortfolioSet(BaseModel):
    set_id: str = Field(alias="setId")
    set_name: Optional[str] = Field(None, alias="setName")
    set_logo: Optional[str] = Field(None, alias="setLogo")
    cards: list[SetCard]
    completion: SetCompletion
    total_value: float = Field(alias="totalValue")
    total_quantity: int = Field(alias="totalQuantity")

    model_config = ConfigDict(populate_by_name=True)


class PortfolioSetsResponse(BaseModel):
    sets: list[PortfolioSet]
    total_sets: int = Field(alias="totalSets")

    model_config = ConfigDict(populate_by_name=True)


class PortfolioStatsResponse(BaseModel):
    total_cards: int = Field(alias="totalCards")
    distinct_cards: int = Field(alias="distinctCards")
    total_purchase_cost: float = Field(alias="totalPurchaseCost")
    total_sets: int = Field(alias="totalSets")
    graded_cards: int = Field(alias="gradedCards")

    model_config = ConfigDict(populate_by_name=True)
