"""Unit tests for report window helpers."""
from datetime import date, datetime

from lumen.models.analytics_report import Granularity
from lumen.utils.periods import dashboard_window, day_end, day_start, trailing_window

NOW = datetime(2025, 8, 20, 15, 30, 0)


def test_day_bounds_cover_whole_day() -> None:
    """Test that day_start/day_end span the full calendar day."""
    assert day_start(date(2025, 3, 1)) == datetime(2025, 3, 1, 0, 0, 0)
    assert day_end(date(2025, 3, 1)) == datetime(2025, 3, 1, 23, 59, 59, 999999)


def test_trailing_window() -> None:
    """Test the rolling window ends at the reference time."""
    start, end = trailing_window(30, now=NOW)

    assert end == NOW
    assert start == datetime(2025, 7, 21, 15, 30, 0)


def test_dashboard_window_per_granularity() -> None:
    """Test default dashboard windows for each granularity."""
    assert dashboard_window(Granularity.DAILY, now=NOW)[0] == datetime(2025, 8, 19, 15, 30, 0)
    assert dashboard_window(Granularity.WEEKLY, now=NOW)[0] == datetime(2025, 8, 13, 15, 30, 0)
    assert dashboard_window(Granularity.MONTHLY, now=NOW)[0] == datetime(2025, 8, 1)
    assert dashboard_window(Granularity.QUARTERLY, now=NOW)[0] == datetime(2025, 7, 1)
    assert dashboard_window(Granularity.YEARLY, now=NOW)[0] == datetime(2025, 1, 1)
    assert dashboard_window(Granularity.MONTHLY, now=NOW)[1] == NOW
