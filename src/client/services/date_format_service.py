"""
Date formatting service for keyshelf.

This module provides a centralized date formatting utility that can be
configured via settings and is used to render key creation dates in the
key list and the key detail view.
"""

import logging
from datetime import datetime
from enum import Enum
from typing import Optional

from common.config import get_settings

logger = logging.getLogger(__name__)


class DateFormat(Enum):
    """Supported date format options."""

    US = "MM/DD/YYYY"          # 01/13/2026
    EUROPEAN = "DD/MM/YYYY"    # 13/01/2026
    ISO = "YYYY-MM-DD"         # 2026-01-13
    DAY_MONTH_YEAR = "DD MMM YYYY"  # 13 Jan 2026
    MONTH_DAY_YEAR = "MMM DD, YYYY"  # Jan 13, 2026


# Format string mappings for strftime
DATE_FORMAT_PATTERNS = {
    DateFormat.US: "%m/%d/%Y",
    DateFormat.EUROPEAN: "%d/%m/%Y",
    DateFormat.ISO: "%Y-%m-%d",
    DateFormat.DAY_MONTH_YEAR: "%d %b %Y",
    DateFormat.MONTH_DAY_YEAR: "%b %d, %Y",
}


def get_date_format_from_string(format_str: str) -> DateFormat:
    """
    Convert a string representation to DateFormat enum.

    Args:
        format_str: String representation of the format.

    Returns:
        Corresponding DateFormat enum value, ISO if unknown.
    """
    for fmt in DateFormat:
        if fmt.value == format_str:
            return fmt
    return DateFormat.ISO


class DateFormatService:
    """Service for formatting dates consistently across the application."""

    def __init__(self, date_format: DateFormat | str = DateFormat.ISO) -> None:
        if isinstance(date_format, str):
            date_format = get_date_format_from_string(date_format)
        self._current_format = date_format

    @property
    def current_format(self) -> DateFormat:
        """Get the current date format."""
        return self._current_format

    def format_date(self, date: datetime) -> str:
        """
        Format the date part of a datetime in local time.

        Args:
            date: The datetime to format.

        Returns:
            Formatted date string.
        """
        return self._local(date).strftime(DATE_FORMAT_PATTERNS[self._current_format])

    def format_date_with_time(self, date: datetime) -> str:
        """
        Format a datetime with both date and time in local time.

        Args:
            date: The datetime to format.

        Returns:
            Formatted date and time string.
        """
        pattern = DATE_FORMAT_PATTERNS[self._current_format]
        return self._local(date).strftime(f"{pattern} %H:%M:%S")

    @staticmethod
    def _local(date: datetime) -> datetime:
        if date.tzinfo is None:
            return date
        return date.astimezone()


# Singleton instance
_date_format_service: Optional[DateFormatService] = None


def get_date_format_service() -> DateFormatService:
    """
    Get the global date format service instance.

    Returns:
        The singleton DateFormatService instance.
    """
    global _date_format_service

    if _date_format_service is None:
        _date_format_service = DateFormatService(get_settings().display.date_format)

    return _date_format_service
