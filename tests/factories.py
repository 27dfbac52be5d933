"""Model builders shared by the unit tests."""
from datetime import datetime, timezone

from pokefolio.db.models.portfolio_item import PortfolioItem

OWNER_ID = "user-123"


def make_item(**overrides) -> PortfolioItem:
    """Build a detached PortfolioItem with sensible defaults."""
    values = {
        "id": 1,
        "owner_id": OWNER_ID,
        "card_id": "base1-4",
        "language": "fr",
        "quantity": 1,
        "purchase_price": None,
        "purchase_date": None,
        "booster": None,
        "graded": None,
        "grading": None,
        "notes": None,
        "variants": None,
        "card_snapshot": {
            "name": "Dracaufeu",
            "number": "4",
            "image_url": "https://assets.tcgdex.net/fr/base/base1/4",
            "set": {"id": "base1", "name": "Set de Base", "card_count": 102},
        },
        "is_favorite": False,
        "created_at": datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc),
        "updated_at": datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc),
    }
    values.update(overrides)
    return PortfolioItem(**values)
