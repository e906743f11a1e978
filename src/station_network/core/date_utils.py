"""
Date and timezone utilities.

Centralizes timestamp creation and parsing so that snapshots and the
persisted registry always carry timezone-aware ISO timestamps.
"""

import logging
from datetime import datetime
from typing import Optional

import pytz
from pytz.tzinfo import BaseTzInfo


class DateUtils:
    """Utilities for date and timezone handling."""

    def __init__(self, timezone_str: str = "UTC", logger: Optional[logging.Logger] = None):
        """
        Initialize date utilities.

        Args:
            timezone_str: Timezone used for new timestamps (e.g., 'Asia/Singapore')
            logger: Logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.timezone = self.parse_timezone(timezone_str)

    @staticmethod
    def parse_timezone(timezone_str: str) -> BaseTzInfo:
        """
        Parse timezone string to pytz timezone object.

        Args:
            timezone_str: Timezone string (e.g., 'Asia/Singapore', 'UTC')

        Returns:
            pytz timezone object

        Raises:
            ValueError: If timezone is invalid
        """
        try:
            return pytz.timezone(timezone_str)
        except pytz.exceptions.UnknownTimeZoneError:
            raise ValueError(f"Invalid timezone: {timezone_str}")

    def now(self) -> datetime:
        """Current time in the configured timezone."""
        return datetime.now(pytz.UTC).astimezone(self.timezone)

    def localize(self, value: datetime) -> datetime:
        """
        Convert a datetime to the configured timezone.

        Naive datetimes are assumed to be UTC.
        """
        if value.tzinfo is None:
            value = pytz.UTC.localize(value)
        return value.astimezone(self.timezone)

    def to_iso(self, value: Optional[datetime] = None) -> str:
        """Format a datetime (default: now) as ISO 8601 in the configured timezone."""
        if value is None:
            return self.now().isoformat()
        return self.localize(value).isoformat()

    @staticmethod
    def parse_iso(value: Optional[str]) -> Optional[datetime]:
        """
        Parse an ISO 8601 timestamp.

        Args:
            value: ISO string, possibly ending in 'Z'

        Returns:
            Timezone-aware datetime (UTC when the string has no offset), or None
        """
        if not value:
            return None
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
        if parsed.tzinfo is None:
            parsed = pytz.UTC.localize(parsed)
        return parsed
