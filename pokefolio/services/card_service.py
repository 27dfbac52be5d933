"""Card search over the TCGdex catalog: query parsing, fuzzy ranking, caching."""
import logging
import re
import unicodedata
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Optional
from rapidfuzz import fuzz
from sqlalchemy.ext.asyncio import AsyncSession

from pokefolio.core.config import settings
from pokefolio.core.constants import CatalogConstants
from pokefolio.repositories.card_cache_repository import CardCacheRepository
from pokefolio.services.metrics_service import get_metrics_service
from pokefolio.services.tcgdex_client import TcgdexClient

logger = logging.getLogger(__name__)

# 25, 025/165, SV045, TG12, SWSH001/SWSH100
_NUMBER_TOKEN = re.compile(r"^[a-z]{0,5}\d+[a-z]?(?:/[a-z]{0,5}\d+)?$", re.IGNORECASE)
_NUMBER_MARKERS = re.compile(r"#|\bno\.\s*", re.IGNORECASE)


def normalize_text(value: Optional[str]) -> str:
    """Accent- and case-insensitive form with collapsed whitespace."""
    if not value:
        return ""
    text = unicodedata.normalize("NFKD", value)
    text = "".join(char for char in text if not unicodedata.combining(char))
    return " ".join(text.lower().split())


def parse_search_query(text: str) -> tuple[Optional[str], str]:
    """
    Split a free-text query into ``(number_token, name_fragment)``.

    The last token that looks like a card number becomes the number token
    (only the part before ``/`` is kept). A query made only of a number keeps
    the original text as its name fragment.
    """
    original = (text or "").strip()
    tokens = _NUMBER_MARKERS.sub(" ", original).split()

    number_index = None
    for index in range(len(tokens) - 1, -1, -1):
        if _NUMBER_TOKEN.match(tokens[index]):
            number_index = index
            break

    if number_index is None:
        return None, " ".join(tokens)

    number = tokens[number_index].split("/")[0]
    name_fragment = " ".join(t for i, t in enumerate(tokens) if i != number_index)
    return number, name_fragment or original


def _clean_number(value: Optional[str]) -> str:
    text = (value or "").strip().lower()
    return text.lstrip("0") or ("0" if text else "")


def _card_number(card: dict) -> str:
    local_id = card.get("localId")
    if local_id is not None:
        return str(local_id)
    card_id = str(card.get("id") or "")
    return card_id.rsplit("-", 1)[-1] if "-" in card_id else ""


def score_name(query_norm: str, name: Optional[str]) -> float:
    """Typo tolerant similarity (0-100) between a normalized query and a card name."""
    name_norm = normalize_text(name)
    if not query_norm or not name_norm:
        return 0.0
    return max(
        float(fuzz.WRatio(query_norm, name_norm)),
        float(fuzz.partial_ratio(query_norm, name_norm)),
    )


def rank_cards(
    cards: list[dict],
    name_fragment: Optional[str],
    number_token: Optional[str] = None,
    threshold: float = CatalogConstants.MATCH_THRESHOLD
) -> list[dict]:
    """
    Filter and order catalog results for a parsed query.

    Cards whose name scores below ``threshold`` are dropped; with a number
    token only cards with that number are kept (leading zeros ignored).
    Higher scores come first, catalog order breaks ties.
    """
    query_norm = normalize_text(name_fragment)
    wanted_number = _clean_number(number_token) if number_token else None

    scored = []
    for position, card in enumerate(cards):
        if wanted_number is not None and _clean_number(_card_number(card)) != wanted_number:
            continue
        score = score_name(query_norm, card.get("name")) if query_norm else 100.0
        if score < threshold:
            continue
        scored.append((score, position, card))

    scored.sort(key=lambda entry: (-entry[0], entry[1]))
    return [card for _, _, card in scored]


def paginate(cards: list[Any], page: int = 1, limit: int = CatalogConstants.DEFAULT_PAGE_SIZE) -> dict:
    """Slice one page of results; ``limit=0`` returns everything."""
    page = max(page, 1)
    total = len(cards)
    if limit <= 0:
        return {"cards": list(cards), "total": total, "page": 1, "limit": 0}

    start = (page - 1) * limit
    return {"cards": cards[start:start + limit], "total": total, "page": page, "limit": limit}


class CardService:
    """Catalog lookups with a database cache and a one-shot language fallback."""

    def __init__(
        self,
        db: AsyncSession,
        client: Optional[TcgdexClient] = None,
        cache: Optional[CardCacheRepository] = None
    ):
        self.db = db
        self.client = client or TcgdexClient(
            base_url=settings.tcgdex_base_url,
            timeout_seconds=settings.tcgdex_timeout_seconds
        )
        self.cache = cache or CardCacheRepository(db)
        self.metrics = get_metrics_service()

    async def search_cards_async(
        self,
        query: str,
        language: Optional[str] = None,
        page: int = 1,
        limit: int = CatalogConstants.DEFAULT_PAGE_SIZE
    ) -> dict:
        """
        Search the catalog and rank the results against the parsed query.

        Raises:
            CatalogUnavailableError: The catalog failed for a reason other than "not found"
        """
        language = language or settings.catalog_default_language
        if not query or not query.strip():
            return paginate([], page, limit)

        number, name_fragment = parse_search_query(query)
        number_only = number is not None and name_fragment == query.strip()

        cache_key = f"search:{language}:{name_fragment.lower()}"
        cards = await self._cached_or_fetch_async(
            cache_key,
            language,
            "search",
            lambda lang: self.client.search_cards_async(name_fragment, lang)
        )

        ranked = rank_cards(cards or [], None if number_only else name_fragment, number)
        logger.info(
            f"Search '{query}' ({language}): {len(cards or [])} catalog results, {len(ranked)} matched"
        )
        return paginate(ranked, page, limit)

    async def get_card_async(self, card_id: str, language: Optional[str] = None) -> Optional[dict]:
        """Card details, or None when neither language knows the card."""
        language = language or settings.catalog_default_language
        return await self._cached_or_fetch_async(
            f"card:{language}:{card_id}",
            language,
            "get_card",
            lambda lang: self.client.get_card_by_id_async(card_id, lang)
        )

    async def _cached_or_fetch_async(
        self,
        cache_key: str,
        language: str,
        operation: str,
        fetch: Callable[[str], Awaitable[Any]]
    ) -> Any:
        cached = await self.cache.get_fresh_async(cache_key)
        if cached:
            logger.info(f"Cache HIT: {cache_key}")
            self.metrics.increment_catalog_requests(operation, language, "cache")
            return cached

        logger.info(f"Cache MISS: {cache_key}")
        self.metrics.increment_catalog_requests(operation, language, "catalog")
        data = await fetch(language)

        fallback = settings.catalog_fallback_language
        if not data and fallback and fallback != language:
            logger.info(f"No {operation} result in '{language}', retrying in '{fallback}'")
            self.metrics.increment_catalog_requests(operation, fallback, "fallback")
            data = await fetch(fallback)

        if data:
            expires_at = datetime.now(timezone.utc) + timedelta(days=settings.catalog_cache_ttl_days)
            await self.cache.set_async(cache_key, data, expires_at)
            await self.db.commit()

        return data
