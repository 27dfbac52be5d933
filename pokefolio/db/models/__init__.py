"""Models module initialization."""
from pokefolio.db.models.activity_log import ActivityLog, ActivityType
from pokefolio.db.models.card_cache import CardCache
from pokefolio.db.models.portfolio_item import PortfolioItem
from pokefolio.db.models.wishlist_item import WishlistItem

__all__ = [
    "ActivityLog",
    "ActivityType",
    "CardCache",
    "PortfolioItem",
    "WishlistItem",
]
