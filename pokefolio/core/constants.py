"""
Constants for grading, catalog languages and set grouping.
"""

class GradingConstants:
    """Textual grade scores."""

    # Longest phrase first so "NEAR MINT" is never read as "MINT"
    TEXTUAL_GRADE_SCORES = (
        ("GEM MINT", 10.0),
        ("NEAR MINT", 8.0),
        ("VERY GOOD", 4.0),
        ("EXCELLENT", 6.0),
        ("MINT", 10.0),
        ("GOOD", 2.0),
        ("POOR", 1.0),
    )


class CatalogConstants:
    """Languages served by the TCGdex catalog."""

    LANGUAGES = ("fr", "en", "ja", "zh")

    # Minimum rapidfuzz score for a catalog name to match a query
    MATCH_THRESHOLD = 70.0

    DEFAULT_PAGE_SIZE = 20


class SetConstants:
    """Fallback values when a holding has no set metadata."""

    UNKNOWN_SET_ID = "unknown"

    # Portfolio set view (French UI label)
    UNKNOWN_SET_NAME = "Set inconnu"

    # Dashboard top sets
    UNKNOWN_SET_DISPLAY_NAME = "Unknown Set"


class DashboardConstants:
    """Dashboard defaults and limits."""

    # Gap between creation and last update above which an item counts as updated
    UPDATED_THRESHOLD_MS = 1000

    DEFAULT_TOP_SETS = 5
    DEFAULT_RECENT_ACTIVITY = 10
    DEFAULT_EXPENSIVE_CARDS = 5

    # Fixed-size week blocks inside a month
    WEEK_BLOCK_DAYS = 7


class PricingConstants:
    """Price history periods and the simulated variation around the current price."""

    PERIOD_DAYS = {"7d": 7, "30d": 30, "90d": 90, "1y": 365}

    # Variation grows linearly from the base (today) to base + extra (oldest point)
    BASE_VARIATION = 0.15
    EXTRA_VARIATION = 0.10
