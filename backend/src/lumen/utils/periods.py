"""Date window helpers shared by the API and the workers."""
from datetime import date, datetime, timedelta
from typing import Optional, Tuple

from lumen.models.analytics_report import Granularity


def day_start(day: date) -> datetime:
    """First instant of a calendar day."""
    return datetime.combine(day, datetime.min.time())


def day_end(day: date) -> datetime:
    """Last instant of a calendar day."""
    return datetime.combine(day, datetime.max.time())


def trailing_window(days: int, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Window covering the last `days` days up to now.

    Args:
        days: Window length in days
        now: Reference time (defaults to current UTC time)

    Returns:
        (start, end) tuple
    """
    if now is None:
        now = datetime.utcnow()
    return now - timedelta(days=days), now


def dashboard_window(granularity: Granularity, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Default dashboard window for a granularity, ending now.

    daily and weekly are rolling windows; monthly, quarterly and yearly
    start at the beginning of the current calendar month, quarter or year.

    Args:
        granularity: Requested dashboard granularity
        now: Reference time (defaults to current UTC time)

    Returns:
        (start, end) tuple
    """
    if now is None:
        now = datetime.utcnow()

    if granularity == Granularity.DAILY:
        start = now - timedelta(days=1)
    elif granularity == Granularity.WEEKLY:
        start = now - timedelta(days=7)
    elif granularity == Granularity.QUARTERLY:
        quarter_month = 3 * ((now.month - 1) // 3) + 1
        start = datetime(now.year, quarter_month, 1)
    elif granularity == Granularity.YEARLY:
        start = datetime(now.year, 1, 1)
    else:
        start = datetime(now.year, now.month, 1)

    return start, now
