"""
Date parsing and calendar helpers shared by the portfolio and dashboard services.
"""
from datetime import datetime, date, time, timezone
from typing import Any, Optional
from dateutil import parser
from dateutil.relativedelta import relativedelta
import logging

logger = logging.getLogger(__name__)


class DateUtilities:
    """
    Utility class for parsing dates from various formats and normalizing them to UTC.
    """

    @staticmethod
    def parse_date_time(value: Any) -> Optional[datetime]:
        """
        Parse a date string in various formats to a UTC-aware datetime.

        ISO 8601 strings are read as-is; other formats go through dateutil
        with day-first ordering (``05/03/2024`` is 5 March).

        Args:
            value: String, date or datetime (None passes through)

        Returns:
            UTC-aware datetime, or None

        Raises:
            ValueError: If the value cannot be parsed
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return DateUtilities.as_utc(value)
        if isinstance(value, date):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)

        text = str(value).strip()
        if not text:
            return None

        try:
            return DateUtilities.as_utc(parser.isoparse(text))
        except ValueError:
            pass

        try:
            return DateUtilities.as_utc(parser.parse(text, dayfirst=True))
        except (ValueError, OverflowError) as e:
            logger.error(f"Failed to parse datetime '{text}': {str(e)}")
            raise ValueError(f"Invalid date format: {text}")

    @staticmethod
    def as_utc(value: Optional[datetime]) -> Optional[datetime]:
        """Attach UTC to naive datetimes and convert aware ones to UTC."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def to_iso(value: Optional[datetime]) -> Optional[str]:
        """ISO 8601 representation in UTC, as stored in variant documents."""
        if value is None:
            return None
        return DateUtilities.as_utc(value).isoformat()

    @staticmethod
    def start_of_day(day: date) -> datetime:
        return datetime.combine(day, time.min, tzinfo=timezone.utc)

    @staticmethod
    def end_of_day(day: date) -> datetime:
        return datetime.combine(day, time.max, tzinfo=timezone.utc)

    @staticmethod
    def last_day_of_month(year: int, month: int) -> date:
        return date(year, month, 1) + relativedelta(months=1, days=-1)
