"""
Aggregation period windows.

generate_periods(aggregation_type, now, count) returns the `count` most recent
windows for a granularity, most recent first:

    daily   : midnight of (now - i days)             -> +1 day
    weekly  : midnight of the Sunday on/before
              (now - 7i days)                          -> +7 days
    monthly : 1st of month (now.month - i)             -> 1st of the next month
    yearly  : Jan 1 of (now.year - i)                  -> Jan 1 of the next year

Weeks start on Sunday regardless of locale. `now` is always passed in so the
windows are deterministic; its tzinfo (if any) is carried onto every window.
"""

import logging
from datetime import date, datetime, time, timedelta

from soil_monitor.config import WINDOW_COUNT
from soil_monitor.models import AggregationWindow

log = logging.getLogger(__name__)


def _midnight(day: date, like: datetime) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=like.tzinfo)


def _month_start(year: int, month_index: int, like: datetime) -> datetime:
    """month_index is a month offset (may be <= 0 or > 11) from January of `year`."""
    y, m = divmod(year * 12 + month_index, 12)
    return datetime(y, m + 1, 1, tzinfo=like.tzinfo)


def _daily(now: datetime, i: int) -> AggregationWindow:
    start = _midnight((now - timedelta(days=i)).date(), now)
    return AggregationWindow(start, start + timedelta(days=1))


def _weekly(now: datetime, i: int) -> AggregationWindow:
    day = (now - timedelta(days=7 * i)).date()
    # date.weekday(): Monday=0 .. Sunday=6  ->  days since Sunday
    since_sunday = (day.weekday() + 1) % 7
    start = _midnight(day - timedelta(days=since_sunday), now)
    return AggregationWindow(start, start + timedelta(days=7))


def _monthly(now: datetime, i: int) -> AggregationWindow:
    offset = now.month - 1 - i
    return AggregationWindow(
        _month_start(now.year, offset, now),
        _month_start(now.year, offset + 1, now),
    )


def _yearly(now: datetime, i: int) -> AggregationWindow:
    year = now.year - i
    return AggregationWindow(
        datetime(year, 1, 1, tzinfo=now.tzinfo),
        datetime(year + 1, 1, 1, tzinfo=now.tzinfo),
    )


_GENERATORS = {
    "daily":   _daily,
    "weekly":  _weekly,
    "monthly": _monthly,
    "yearly":  _yearly,
}


def generate_periods(
    aggregation_type: str,
    now: datetime,
    count: int = WINDOW_COUNT,
) -> list[AggregationWindow]:
    """
    Return `count` contiguous, non-overlapping windows ending with the one that
    contains `now`, ordered most recent first.
    An unrecognised aggregation type yields an empty list.
    """
    make_window = _GENERATORS.get(aggregation_type)
    if make_window is None:
        log.warning("Unknown aggregation type %r; no periods generated.", aggregation_type)
        return []
    return [make_window(now, i) for i in range(max(0, count))]
