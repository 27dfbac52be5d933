"""Result objects for service layer operations."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any


class ErrorCode(str, Enum):
    """Standardized error codes for service operations."""
    NONE = "none"
    NOT_FOUND = "not_found"
    DUPLICATE = "duplicate"
    VALIDATION_ERROR = "validation_error"
    UPSTREAM_UNAVAILABLE = "upstream_unavailable"
    INTERNAL_ERROR = "internal_error"


class AddOutcome(str, Enum):
    """How an addition was applied to the portfolio."""
    CREATED = "created"
    MERGED = "merged"
    CONVERTED_TO_VARIANTS = "converted_to_variants"
    VARIANTS_APPENDED = "variants_appended"


@dataclass
class AddItemResult:
    """Result for add_item_async."""
    item: Any  # PortfolioItem model
    outcome: AddOutcome
    added_quantity: int = 0


@dataclass
class DeleteVariantResult:
    """Result for delete_variant_async.

    ``item`` is None when the last variant was removed and the holding deleted.
    """
    item: Optional[Any] = None
    item_deleted: bool = False
    remaining_variants: int = 0


@dataclass
class RepairReport:
    """Result of the admin invariant repair pass."""
    inspected: int = 0
    repaired: int = 0
    repaired_ids: list[int] = field(default_factory=list)
