"""Business logic service for the card portfolio."""
import logging
import re
from typing import Any, Mapping, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.constants import SetConstants
from pokefolio.core.exceptions import BadRequestError, DuplicateError, NotFoundError
from pokefolio.db.models.activity_log import ActivityType
from pokefolio.db.models.portfolio_item import PortfolioItem
from pokefolio.repositories.activity_log_repository import ActivityLogRepository
from pokefolio.repositories.portfolio_repository import PortfolioRepository
from pokefolio.schemas.portfolio import AddPortfolioItemRequest
from pokefolio.services.grading import best_graded_variant, normalize_grading
from pokefolio.services.metrics_service import get_metrics_service
from pokefolio.services.result_objects import (
    AddItemResult,
    AddOutcome,
    DeleteVariantResult
)
from pokefolio.services.utils.date_utilities import DateUtilities
from pokefolio.services.valuation import effective_graded, graded_copies, holding_cost

logger = logging.getLogger(__name__)

UNITARY_FIELDS = ("purchase_price", "purchase_date", "booster", "graded", "grading", "notes")

_NUMBER_PREFIX = re.compile(r"\d+")


def _present(value: Any) -> bool:
    return value is not None and value != "" and value != []


def _round_price(value: Any) -> Optional[float]:
    return round(float(value), 2) if value is not None else None


def build_variant(data: Mapping[str, Any]) -> dict:
    """Canonical stored form of one copy's acquisition data."""
    return {
        "purchase_price": _round_price(data.get("purchase_price")),
        "purchase_date": DateUtilities.to_iso(DateUtilities.parse_date_time(data.get("purchase_date"))),
        "booster": bool(data.get("booster")),
        "graded": bool(data.get("graded")),
        "grading": normalize_grading(data.get("grading")),
        "notes": data.get("notes"),
    }


def unitary_variant(item: PortfolioItem) -> dict:
    """The unitary fields of a holding expressed as a variant."""
    return build_variant({field: getattr(item, field) for field in UNITARY_FIELDS})


def acquisition_key(variant: Mapping[str, Any]) -> tuple:
    """Fields deciding whether two additions describe identical stock."""
    grading = variant.get("grading") or {}
    return (
        variant.get("purchase_price"),
        variant.get("purchase_date"),
        variant.get("booster"),
        variant.get("graded"),
        grading.get("company"),
        grading.get("grade"),
    )


def set_unitary_fields(item: PortfolioItem, variant: Optional[Mapping[str, Any]]) -> None:
    """Copy a variant onto the unitary columns; None clears them all."""
    variant = variant or {}
    item.purchase_price = variant.get("purchase_price")
    item.purchase_date = DateUtilities.parse_date_time(variant.get("purchase_date"))
    item.booster = variant.get("booster")
    item.graded = variant.get("graded")
    item.grading = variant.get("grading")
    item.notes = variant.get("notes")


def build_card_snapshot(request: AddPortfolioItemRequest) -> Optional[dict]:
    """Catalog metadata from the request; only non-empty fields are kept."""
    set_info = {
        key: value for key, value in {
            "id": request.set_id,
            "name": request.set_name,
            "logo": request.set_logo,
            "symbol": request.set_symbol,
            "release_date": request.set_release_date,
            "card_count": request.set_card_count,
        }.items() if _present(value)
    }
    snapshot = {
        key: value for key, value in {
            "name": request.name,
            "number": request.number,
            "rarity": request.rarity,
            "image_url": request.image_url,
            "image_url_hi_res": request.image_url_hi_res,
            "types": request.types,
            "supertype": request.supertype,
            "subtypes": request.subtypes,
        }.items() if _present(value)
    }
    if set_info:
        snapshot["set"] = set_info
    return snapshot or None


def _variant_view(variant: Mapping[str, Any]) -> dict:
    grading = variant.get("grading") or {}
    return {
        "purchase_price": variant.get("purchase_price"),
        "purchase_date": DateUtilities.parse_date_time(variant.get("purchase_date")),
        "booster": bool(variant.get("booster")),
        "is_graded": bool(variant.get("graded")),
        "grade_company": grading.get("company"),
        "grade_score": grading.get("grade"),
        "certification_number": grading.get("certification_number"),
        "notes": variant.get("notes"),
    }


def flatten_item(item: PortfolioItem) -> dict:
    """
    Display shape of a holding.

    Snapshot fields are lifted to the top level. In variant mode the top-level
    grade comes from the best-graded variant and ``is_graded`` is true when any
    variant is graded.
    """
    snapshot = item.card_snapshot or {}
    set_info = snapshot.get("set") or {}
    variants = item.variants or []

    if variants:
        best = best_graded_variant(variants)
        grading = (best or {}).get("grading") or item.grading or {}
        is_graded = any(v.get("graded") for v in variants)
    else:
        grading = item.grading or {}
        is_graded = bool(item.graded)

    return {
        "id": item.id,
        "owner_id": item.owner_id,
        "card_id": item.card_id,
        "language": item.language,
        "quantity": item.quantity,
        "purchase_price": item.purchase_price,
        "purchase_date": item.purchase_date,
        "booster": item.booster,
        "graded": item.graded,
        "notes": item.notes,
        "is_graded": is_graded,
        "grade_company": grading.get("company"),
        "grade_score": grading.get("grade"),
        "certification_number": grading.get("certification_number"),
        "variants": [_variant_view(v) for v in variants] if variants else None,
        "name": snapshot.get("name"),
        "set_id": set_info.get("id"),
        "set_name": set_info.get("name"),
        "set_logo": set_info.get("logo"),
        "set_symbol": set_info.get("symbol"),
        "set_release_date": set_info.get("release_date"),
        "set_card_count": set_info.get("card_count"),
        "number": snapshot.get("number"),
        "rarity": snapshot.get("rarity"),
        "image_url": snapshot.get("image_url"),
        "image_url_hi_res": snapshot.get("image_url_hi_res"),
        "types": snapshot.get("types"),
        "supertype": snapshot.get("supertype"),
        "subtypes": snapshot.get("subtypes"),
        "is_favorite": bool(item.is_favorite),
        "created_at": item.created_at,
        "updated_at": item.updated_at,
    }


def _card_number_key(number: Optional[str]) -> tuple:
    match = _NUMBER_PREFIX.match(number or "")
    return (0, int(match.group(0))) if match else (1, 0)


def group_by_set(items: list[PortfolioItem]) -> list[dict]:
    """
    Group holdings by catalog set with per-set completion.

    Holdings of the same card in one set (different languages) collapse into a
    single card entry. Sets are ordered by distinct cards owned, descending.
    """
    groups: dict[str, dict] = {}

    for item in items:
        snapshot = item.card_snapshot or {}
        set_info = snapshot.get("set") or {}
        set_id = set_info.get("id") or SetConstants.UNKNOWN_SET_ID

        group = groups.get(set_id)
        if group is None:
            group = groups[set_id] = {
                "set_id": set_id,
                "set_name": set_info.get("name") or (
                    SetConstants.UNKNOWN_SET_NAME if set_id == SetConstants.UNKNOWN_SET_ID else None
                ),
                "set_logo": set_info.get("logo"),
                "card_count": set_info.get("card_count"),
                "cards": {},
            }
        elif not group["card_count"] and set_info.get("card_count"):
            group["card_count"] = set_info.get("card_count")

        cost = holding_cost(item)
        card = group["cards"].get(item.card_id)
        if card is None:
            group["cards"][item.card_id] = {
                "item_id": item.id,
                "card_id": item.card_id,
                "name": snapshot.get("name"),
                "number": snapshot.get("number"),
                "image_url": snapshot.get("image_url"),
                "rarity": snapshot.get("rarity"),
                "quantity": item.quantity,
                "is_graded": effective_graded(item),
                "purchase_price": cost,
            }
        else:
            card["quantity"] += item.quantity
            card["purchase_price"] += cost
            card["is_graded"] = card["is_graded"] or effective_graded(item)

    sets = []
    for group in groups.values():
        cards = sorted(group["cards"].values(), key=lambda c: _card_number_key(c["number"]))
        for card in cards:
            card["purchase_price"] = round(card["purchase_price"], 2)

        owned = len(cards)
        total = group["card_count"] or None
        sets.append({
            "set_id": group["set_id"],
            "set_name": group["set_name"],
            "set_logo": group["set_logo"],
            "cards": cards,
            "completion": {
                "owned": owned,
                "total": total,
                "percentage": round(owned / total * 100) if total else None,
            },
            "total_value": round(sum(c["purchase_price"] for c in cards), 2),
            "total_quantity": sum(c["quantity"] for c in cards),
        })

    sets.sort(key=lambda s: s["completion"]["owned"], reverse=True)
    return sets


class PortfolioService:
    """Service layer for portfolio holdings: merge/variant logic and views."""

    def __init__(
        self,
        db: AsyncSession,
        repository: Optional[PortfolioRepository] = None,
        activity_logs: Optional[ActivityLogRepository] = None
    ):
        self.db = db
        self.repository = repository or PortfolioRepository(db)
        self.activity_logs = activity_logs or ActivityLogRepository(db)
        self.metrics = get_metrics_service()

    # ==================== Reads ====================

    async def list_items_async(self, owner_id: str, card_id: Optional[str] = None) -> list[PortfolioItem]:
        """List an owner's holdings, newest first, optionally for one card."""
        return await self.repository.list_by_owner_async(owner_id, card_id=card_id)

    async def get_item_async(self, owner_id: str, item_id: int) -> PortfolioItem:
        """Get a holding, raising NotFoundError when absent or owned by someone else."""
        item = await self.repository.get_owned_async(owner_id, item_id)
        if not item:
            raise NotFoundError(f"Portfolio item {item_id} not found")
        return item

    async def check_ownership_async(self, owner_id: str, card_ids: list[str]) -> dict[str, bool]:
        """Map every requested card ID to whether the owner holds it."""
        owned = await self.repository.owned_card_ids_async(owner_id, card_ids)
        return {card_id: card_id in owned for card_id in card_ids}

    async def get_sets_async(self, owner_id: str) -> list[dict]:
        items = await self.repository.list_by_owner_async(owner_id)
        return group_by_set(items)

    async def get_stats_async(self, owner_id: str) -> dict:
        """Portfolio totals: copies, holdings, purchase cost, sets and graded copies."""
        items = await self.repository.list_by_owner_async(owner_id)

        set_ids = {
            ((item.card_snapshot or {}).get("set") or {}).get("id")
            for item in items
        }
        set_ids.discard(None)

        return {
            "total_cards": sum(item.quantity or 0 for item in items),
            "distinct_cards": len(items),
            "total_purchase_cost": round(sum(holding_cost(item) for item in items), 2),
            "total_sets": len(set_ids),
            "graded_cards": sum(graded_copies(item) for item in items),
        }

    # ==================== Add ====================

    async def add_item_async(self, owner_id: str, request: AddPortfolioItemRequest) -> AddItemResult:
        """
        Add copies of a card to the owner's portfolio.

        A new (owner, card, language) triple creates a holding. An existing
        unitary holding is incremented when the acquisition data is identical,
        otherwise it is converted to variant mode: the existing data becomes
        the first variant and the new data follows. An existing variant
        holding gets the new variant appended.

        Raises:
            BadRequestError: Empty variant list, or missing quantity / quantity below 1
        """
        incoming, quantity, variant_mode = self._incoming_variants(request)

        with self.metrics.track_portfolio_mutation("add"):
            existing = await self.repository.get_by_identity_async(
                owner_id, request.card_id, request.language, for_update=True
            )

            if existing is None:
                try:
                    item = await self.repository.create(
                        self._new_item(owner_id, request, incoming, quantity, variant_mode)
                    )
                    outcome, added = AddOutcome.CREATED, quantity
                except IntegrityError:
                    # Concurrent first addition of the same triple won the insert
                    await self.db.rollback()
                    logger.warning(
                        f"Concurrent insert for {owner_id}/{request.card_id}/{request.language}, merging"
                    )
                    existing = await self.repository.get_by_identity_async(
                        owner_id, request.card_id, request.language, for_update=True
                    )
                    if existing is None:
                        raise
                    item = existing
                    outcome, added = self._merge_into(existing, incoming, quantity)
            else:
                item = existing
                outcome, added = self._merge_into(existing, incoming, quantity)

            await self.activity_logs.log_async(owner_id, ActivityType.CARD_ADDED, {
                "item_id": item.id,
                "card_id": item.card_id,
                "language": item.language,
                "added_quantity": added,
                "outcome": outcome.value,
            })
            await self.db.commit()
            await self.db.refresh(item)

        self.metrics.increment_add_outcome(outcome.value)
        logger.info(
            f"Added {added} x {item.card_id} ({item.language}) for {owner_id}: {outcome.value}"
        )
        return AddItemResult(item=item, outcome=outcome, added_quantity=added)

    @staticmethod
    def _incoming_variants(request: AddPortfolioItemRequest) -> tuple[list[dict], int, bool]:
        """
        Canonical variant dicts for the request, the number of copies they
        stand for, and whether variant mode was requested.

        Unitary input is a single descriptor shared by ``quantity`` copies.
        """
        if request.variants is not None:
            if not request.variants:
                raise BadRequestError("At least one variant is required")
            variants = [build_variant(v.model_dump()) for v in request.variants]
            return variants, len(variants), True

        if request.quantity is None:
            raise BadRequestError("Quantity is required when no variants are given")
        if request.quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        base = build_variant(request.model_dump(include=set(UNITARY_FIELDS)))
        return [base], request.quantity, False

    @staticmethod
    def _new_item(
        owner_id: str,
        request: AddPortfolioItemRequest,
        incoming: list[dict],
        quantity: int,
        variant_mode: bool
    ) -> PortfolioItem:
        item = PortfolioItem(
            owner_id=owner_id,
            card_id=request.card_id,
            language=request.language,
            card_snapshot=build_card_snapshot(request),
            is_favorite=False,
        )
        if variant_mode:
            set_unitary_fields(item, None)
            item.variants = incoming
            item.quantity = len(incoming)
        else:
            set_unitary_fields(item, incoming[0])
            item.variants = None
            item.quantity = quantity
        return item

    @staticmethod
    def _merge_into(item: PortfolioItem, incoming: list[dict], quantity: int) -> tuple[AddOutcome, int]:
        """Apply an addition to an existing holding; returns the outcome and the copies added."""
        if item.is_variant_mode:
            item.variants = list(item.variants) + incoming
            item.quantity = len(item.variants)
            return AddOutcome.VARIANTS_APPENDED, len(incoming)

        current = unitary_variant(item)
        if all(acquisition_key(variant) == acquisition_key(current) for variant in incoming):
            item.quantity = (item.quantity or 0) + quantity
            return AddOutcome.MERGED, quantity

        item.variants = [current] + incoming
        item.quantity = len(item.variants)
        set_unitary_fields(item, None)
        return AddOutcome.CONVERTED_TO_VARIANTS, len(incoming)

    # ==================== Update ====================

    async def update_item_async(self, owner_id: str, item_id: int, changes: dict) -> PortfolioItem:
        """
        Apply a partial update.

        ``changes`` holds only the fields the caller sent; a None value clears
        the field. A ``variants`` list replaces every variant. Setting
        ``quantity`` to 1 on a variant holding reverts it to unitary mode
        based on its first variant.

        Raises:
            NotFoundError: Holding absent or not owned
            DuplicateError: Language change collides with another holding
            BadRequestError: Change would mix unitary and variant data
        """
        item = await self.get_item_async(owner_id, item_id)

        with self.metrics.track_portfolio_mutation("update"):
            language = changes.get("language")
            if language and language != item.language:
                clash = await self.repository.get_by_identity_async(owner_id, item.card_id, language)
                if clash is not None and clash.id != item.id:
                    raise DuplicateError(
                        f"Card {item.card_id} is already in the portfolio in language '{language}'"
                    )
                item.language = language

            if changes.get("variants") is not None:
                self._replace_variants(item, changes["variants"])
            else:
                self._patch_fields(item, changes)

            await self.activity_logs.log_async(owner_id, ActivityType.CARD_UPDATED, {
                "item_id": item.id,
                "card_id": item.card_id,
                "fields": sorted(changes.keys()),
            })
            await self.db.commit()
            await self.db.refresh(item)

        logger.info(f"Updated portfolio item {item.id} for {owner_id}")
        return item

    @staticmethod
    def _replace_variants(item: PortfolioItem, variants: list[Mapping[str, Any]]) -> None:
        replacement = [build_variant(v) for v in variants]
        set_unitary_fields(item, None)
        item.variants = replacement or None
        item.quantity = max(1, len(replacement))

    @staticmethod
    def _patch_fields(item: PortfolioItem, changes: dict) -> None:
        unitary_changes = {field: changes[field] for field in UNITARY_FIELDS if field in changes}
        quantity = changes.get("quantity")

        if quantity is not None and quantity < 1:
            raise BadRequestError("Quantity must be at least 1")

        if item.is_variant_mode:
            if quantity == 1:
                first = item.variants[0]
                item.variants = None
                set_unitary_fields(item, first)
                item.quantity = 1
            else:
                if unitary_changes:
                    raise BadRequestError(
                        "Holding tracks individual variants; update the variants instead"
                    )
                if quantity is not None and quantity != len(item.variants):
                    raise BadRequestError(
                        f"Quantity must equal the number of variants ({len(item.variants)})"
                    )
                return
        elif quantity is not None:
            item.quantity = quantity

        for field, value in unitary_changes.items():
            if field == "purchase_price":
                value = _round_price(value)
            elif field == "grading":
                value = normalize_grading(value)
            elif field == "purchase_date":
                value = DateUtilities.parse_date_time(value)
            setattr(item, field, value)

    # ==================== Delete ====================

    async def delete_item_async(self, owner_id: str, item_id: int) -> None:
        item = await self.get_item_async(owner_id, item_id)

        with self.metrics.track_portfolio_mutation("delete"):
            await self.repository.delete(item)
            await self.activity_logs.log_async(owner_id, ActivityType.CARD_DELETED, {
                "item_id": item_id,
                "card_id": item.card_id,
                "quantity": item.quantity,
            })
            await self.db.commit()

        logger.info(f"Deleted portfolio item {item_id} for {owner_id}")

    async def delete_variant_async(self, owner_id: str, item_id: int, index: int) -> DeleteVariantResult:
        """
        Remove one variant by zero-based index.

        Removing the last variant deletes the holding; leaving a single variant
        reverts the holding to unitary mode.

        Raises:
            NotFoundError: Holding absent or not owned
            BadRequestError: Holding has no variants or index out of bounds
        """
        item = await self.get_item_async(owner_id, item_id)

        if not item.is_variant_mode:
            raise BadRequestError("This holding has no variants")
        if index < 0 or index >= len(item.variants):
            raise BadRequestError(f"Variant index {index} is out of bounds")

        with self.metrics.track_portfolio_mutation("delete_variant"):
            remaining = [v for i, v in enumerate(item.variants) if i != index]

            if not remaining:
                await self.repository.delete(item)
                result = DeleteVariantResult(item=None, item_deleted=True, remaining_variants=0)
            elif len(remaining) == 1:
                item.variants = None
                set_unitary_fields(item, remaining[0])
                item.quantity = 1
                result = DeleteVariantResult(item=item, remaining_variants=0)
            else:
                item.variants = remaining
                item.quantity = len(remaining)
                result = DeleteVariantResult(item=item, remaining_variants=len(remaining))

            await self.activity_logs.log_async(
                owner_id,
                ActivityType.CARD_DELETED if result.item_deleted else ActivityType.CARD_UPDATED,
                {"item_id": item_id, "card_id": item.card_id, "variant_index": index},
            )
            await self.db.commit()
            if result.item is not None:
                await self.db.refresh(item)

        logger.info(f"Removed variant {index} from portfolio item {item_id} for {owner_id}")
        return result

    async def clear_portfolio_async(self, owner_id: str) -> int:
        """Delete every holding of the owner; returns the number deleted."""
        with self.metrics.track_portfolio_mutation("clear"):
            deleted_count = await self.repository.delete_by_owner_async(owner_id)
            await self.activity_logs.log_async(
                owner_id, ActivityType.PORTFOLIO_CLEARED, {"deleted_count": deleted_count}
            )
            await self.db.commit()

        logger.info(f"Cleared portfolio of {owner_id}: {deleted_count} items deleted")
        return deleted_count

    async def toggle_favorite_async(self, owner_id: str, item_id: int) -> PortfolioItem:
        item = await self.get_item_async(owner_id, item_id)

        with self.metrics.track_portfolio_mutation("toggle_favorite"):
            item.is_favorite = not item.is_favorite
            await self.activity_logs.log_async(owner_id, ActivityType.CARD_UPDATED, {
                "item_id": item.id,
                "card_id": item.card_id,
                "is_favorite": item.is_favorite,
            })
            await self.db.commit()
            await self.db.refresh(item)

        return item
