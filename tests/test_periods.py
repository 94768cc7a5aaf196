"""
Aggregation windows: boundaries, ordering and contiguity per granularity.
Run from project root: python -m pytest tests/test_periods.py -v
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.models import AggregationWindow
from soil_monitor.periods import generate_periods

NOW = datetime(2024, 3, 13, 15, 45)   # a Wednesday


@pytest.mark.parametrize("aggregation_type", ["daily", "weekly", "monthly", "yearly"])
def test_windows_are_contiguous_and_most_recent_first(aggregation_type):
    windows = generate_periods(aggregation_type, NOW)
    assert len(windows) == 12
    assert windows[0].period_start <= NOW < windows[0].period_end
    for newer, older in zip(windows, windows[1:]):
        assert older.period_end == newer.period_start


def test_daily_windows():
    windows = generate_periods("daily", NOW, 3)
    assert windows[0] == AggregationWindow(datetime(2024, 3, 13), datetime(2024, 3, 14))
    assert windows[2].period_start == datetime(2024, 3, 11)


def test_daily_windows_from_afternoon():
    windows = generate_periods("daily", datetime(2024, 3, 10, 15, 0), 3)
    assert windows == [
        AggregationWindow(datetime(2024, 3, 10), datetime(2024, 3, 11)),
        AggregationWindow(datetime(2024, 3, 9), datetime(2024, 3, 10)),
        AggregationWindow(datetime(2024, 3, 8), datetime(2024, 3, 9)),
    ]


def test_weekly_windows_start_on_sunday():
    windows = generate_periods("weekly", NOW, 2)
    assert windows[0].period_start == datetime(2024, 3, 10)
    assert windows[0].period_start.weekday() == 6
    assert windows[0].period_end - windows[0].period_start == timedelta(days=7)
    assert windows[1].period_start == datetime(2024, 3, 3)


def test_weekly_window_when_now_is_sunday():
    sunday = datetime(2024, 3, 10, 0, 0)
    assert generate_periods("weekly", sunday, 1)[0].period_start == sunday


def test_monthly_windows_cross_year_boundary():
    windows = generate_periods("monthly", NOW, 12)
    assert windows[0] == AggregationWindow(datetime(2024, 3, 1), datetime(2024, 4, 1))
    assert windows[2].period_start == datetime(2024, 1, 1)
    assert windows[3] == AggregationWindow(datetime(2023, 12, 1), datetime(2024, 1, 1))
    assert windows[-1].period_start == datetime(2023, 4, 1)


def test_monthly_windows_over_fourteen_months():
    windows = generate_periods("monthly", datetime(2024, 1, 15), 14)
    assert windows[0] == AggregationWindow(datetime(2024, 1, 1), datetime(2024, 2, 1))
    assert windows[1].period_start == datetime(2023, 12, 1)
    assert windows[-1] == AggregationWindow(datetime(2022, 12, 1), datetime(2023, 1, 1))
    for newer, older in zip(windows, windows[1:]):
        assert older.period_end == newer.period_start


def test_monthly_window_for_december():
    window = generate_periods("monthly", datetime(2023, 12, 31, 23, 59), 1)[0]
    assert window == AggregationWindow(datetime(2023, 12, 1), datetime(2024, 1, 1))


def test_yearly_windows():
    windows = generate_periods("yearly", NOW, 3)
    assert [w.period_start.year for w in windows] == [2024, 2023, 2022]
    assert windows[0].period_end == datetime(2025, 1, 1)


def test_timezone_is_carried_through():
    now = datetime(2024, 3, 13, 15, 45, tzinfo=timezone.utc)
    for aggregation_type in ("daily", "weekly", "monthly", "yearly"):
        assert generate_periods(aggregation_type, now, 1)[0].period_start.tzinfo is timezone.utc


def test_unknown_type_yields_no_windows():
    assert generate_periods("hourly", NOW) == []


def test_zero_count_yields_no_windows():
    assert generate_periods("daily", NOW, 0) == []


def test_window_rejects_empty_range():
    with pytest.raises(ValueError):
        AggregationWindow(NOW, NOW)


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
