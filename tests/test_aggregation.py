"""
Aggregation orchestrator: per-window trigger, failure isolation and read-back.
Run from project root: python -m pytest tests/test_aggregation.py -v
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.aggregation import fetch_aggregated, refresh_aggregates, trigger_aggregation
from soil_monitor.exceptions import StoreError
from soil_monitor.store import SoilStore

USER = "user-1"
NOW = datetime(2024, 3, 13, 15, 45)


class RecordingStore:
    """Minimal store double that records aggregation calls."""

    def __init__(self, fail_on=(), rows=None, read_error=None):
        self.calls = []
        self.fail_on = set(fail_on)
        self.rows = rows or []
        self.read_error = read_error

    def aggregate_soil_data(self, user_id, aggregation_type, period_start, period_end):
        self.calls.append((user_id, aggregation_type, period_start, period_end))
        if len(self.calls) in self.fail_on:
            raise StoreError("compute failed")

    def get_aggregated_rows(self, user_id, aggregation_type, limit):
        if self.read_error:
            raise self.read_error
        return self.rows[:limit]


def test_one_call_per_window_in_order():
    store = RecordingStore()
    result = trigger_aggregation(store, USER, "weekly", now=NOW)
    assert result == {"attempted": 12, "failed": []}
    starts = [c[2] for c in store.calls]
    assert starts == sorted(starts, reverse=True)
    assert all(c[0] == USER and c[1] == "weekly" for c in store.calls)


def test_failing_window_does_not_stop_the_rest():
    store = RecordingStore(fail_on={1, 5})
    result = trigger_aggregation(store, USER, "daily", now=NOW)
    assert len(store.calls) == 12
    assert len(result["failed"]) == 2
    assert result["failed"][0] == (datetime(2024, 3, 13), "compute failed")


def test_unknown_type_makes_no_calls():
    store = RecordingStore()
    assert trigger_aggregation(store, USER, "hourly", now=NOW) == {"attempted": 0, "failed": []}
    assert store.calls == []


def test_refresh_reads_back_even_when_all_windows_fail():
    store = RecordingStore(fail_on=set(range(1, 13)), rows=["row"])
    assert refresh_aggregates(store, USER, "monthly", now=NOW) == ["row"]


def test_read_back_error_propagates():
    store = RecordingStore(read_error=StoreError("offline"))
    with pytest.raises(StoreError):
        fetch_aggregated(store, USER, "daily")


def test_refresh_against_sqlite_store(tmp_path):
    store = SoilStore(tmp_path / "soil.db")
    field = store.create_location(USER, "Plot A")
    for days_ago in (0, 1, 1, 20):
        store.insert_reading(USER, field.id, 3.0, 6.5, 70,
                             reading_date=NOW - timedelta(days=days_ago))

    rows = refresh_aggregates(store, USER, "daily", now=NOW)
    assert [r.total_readings for r in rows] == [1, 2]
    assert rows[0].period_start == datetime(2024, 3, 13)

    rows = refresh_aggregates(store, USER, "monthly", now=NOW)
    assert [r.total_readings for r in rows] == [3, 1]


def test_command_line_job(tmp_path, capsys):
    import run_aggregation

    db = tmp_path / "soil.db"
    store = SoilStore(db)
    field = store.create_location(USER, "Plot A")
    store.insert_reading(USER, field.id, 3.0, 6.5, 70)

    assert run_aggregation.main(["--db", str(db), "--user", USER, "--type", "daily"]) == 0
    assert "daily    12 window(s), 0 failed" in capsys.readouterr().out
    assert len(store.get_aggregated_rows(USER, "daily")) == 1


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
