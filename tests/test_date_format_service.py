"""
Tests for the date format service.
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

import client.services.date_format_service as date_format_module
from client.services.date_format_service import (
    DateFormat,
    DateFormatService,
    get_date_format_from_string,
    get_date_format_service,
)
from common.config import DisplaySettings, Settings

DATE = datetime(2026, 1, 13, 9, 5, 7)


@pytest.mark.parametrize(
    "fmt,expected",
    [
        (DateFormat.US, "01/13/2026"),
        (DateFormat.EUROPEAN, "13/01/2026"),
        (DateFormat.ISO, "2026-01-13"),
        (DateFormat.DAY_MONTH_YEAR, "13 Jan 2026"),
        (DateFormat.MONTH_DAY_YEAR, "Jan 13, 2026"),
    ],
)
def test_format_date(fmt, expected):
    assert DateFormatService(fmt).format_date(DATE) == expected


def test_format_date_with_time():
    service = DateFormatService("DD/MM/YYYY")

    assert service.format_date_with_time(DATE) == "13/01/2026 09:05:07"


def test_aware_dates_are_shown_in_local_time():
    aware = datetime(2026, 1, 13, 12, 0, tzinfo=timezone.utc)
    service = DateFormatService()

    assert service.format_date_with_time(aware) == aware.astimezone().strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def test_unknown_format_string_falls_back_to_iso():
    assert get_date_format_from_string("YY.MM.DD") is DateFormat.ISO


def test_global_service_uses_configured_format(monkeypatch):
    monkeypatch.setattr(date_format_module, "_date_format_service", None)
    settings = Settings(display=DisplaySettings(date_format="DD/MM/YYYY"))

    with patch.object(date_format_module, "get_settings", return_value=settings):
        service = get_date_format_service()

    assert service.current_format is DateFormat.EUROPEAN
    assert get_date_format_service() is service
