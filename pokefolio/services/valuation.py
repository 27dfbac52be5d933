"""Price and grading figures that reconcile unitary and variant holdings."""
from typing import Optional

from pokefolio.db.models.portfolio_item import PortfolioItem


def effective_price(item: PortfolioItem) -> float:
    """Unitary purchase price when set and non-zero, else the sum of variant prices, else 0."""
    if item.purchase_price:
        return float(item.purchase_price)
    if item.variants:
        return float(sum(v.get("purchase_price") or 0 for v in item.variants))
    return 0.0


def effective_graded(item: PortfolioItem) -> bool:
    """Unitary ``graded`` flag, else whether any variant is graded."""
    if item.graded is True:
        return True
    return any(v.get("graded") is True for v in item.variants or [])


def holding_cost(item: PortfolioItem) -> float:
    """What every copy of the holding cost: price x quantity, or the sum over variants."""
    if item.variants:
        return float(sum(v.get("purchase_price") or 0 for v in item.variants))
    return float(item.purchase_price or 0) * (item.quantity or 0)


def graded_copies(item: PortfolioItem) -> int:
    if item.variants:
        return sum(1 for v in item.variants if v.get("graded"))
    return (item.quantity or 0) if item.graded else 0


def representative_price(item: PortfolioItem) -> tuple[Optional[float], Optional[dict]]:
    """
    Single price standing for the holding, with the variant it came from.

    The unitary price when positive; otherwise the highest-priced variant
    (first seen wins ties). ``(None, None)`` when nothing is priced.
    """
    if item.purchase_price and item.purchase_price > 0:
        return float(item.purchase_price), None

    best_price = None
    best_variant = None
    for variant in item.variants or []:
        price = variant.get("purchase_price")
        if price is not None and price > 0 and (best_price is None or price > best_price):
            best_price, best_variant = float(price), variant
    return best_price, best_variant
