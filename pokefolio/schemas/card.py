"""Pydantic schemas for catalog search responses."""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional


class CardSummary(BaseModel):
    """Card as listed by TCGdex search; unknown catalog fields are passed through."""
    id: str
    local_id: Optional[str] = Field(None, alias="localId")
    name: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow", coerce_numbers_to_str=True)


class CardSearchResponse(BaseModel):
    cards: list[CardSummary]
    total: int
    page: int
    limit: int
