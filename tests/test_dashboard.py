"""
Dashboard analytics: averages, anomalies, chart series and the combined load.
Run from project root: python -m pytest tests/test_dashboard.py -v
"""

import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.dashboard import (
    chart_frame,
    compute_averages,
    detect_anomalies,
    load_dashboard,
    location_summary,
    readings_frame,
)
from soil_monitor.models import AggregatedRow, Reading
from soil_monitor.store import SoilStore

USER = "user-1"
NOW = datetime(2024, 3, 13, 15, 45)


def _reading(n, ph, m, temp=None, name="Plot", days_ago=0):
    return Reading(
        id=f"r{n}{ph}{m}{days_ago}", user_id=USER, location_id="loc", nitrogen=n, ph=ph,
        moisture=m, reading_date=NOW - timedelta(days=days_ago), temperature=temp,
        location_name=name,
    )


def test_empty_frame_has_zero_averages():
    df = readings_frame([])
    assert df.empty
    assert compute_averages(df)["nitrogen"] == 0.0
    assert detect_anomalies(df) == []


def test_temperature_average_ignores_missing_values():
    df = readings_frame([_reading(2, 6, 60, temp=20), _reading(4, 7, 80)])
    avg = compute_averages(df)
    assert avg["nitrogen"] == pytest.approx(3.0)
    assert avg["temperature"] == pytest.approx(20.0)
    assert avg["count"] == 2


def test_anomalies_flag_far_readings():
    readings = [_reading(10, 6.5, 60, name="Ridge")] + [_reading(3, 6.5, 60, days_ago=i) for i in range(1, 6)]
    messages = detect_anomalies(readings_frame(readings))
    assert messages == ["Unusual nitrogen level at Ridge"]


def test_anomalies_are_capped_at_three():
    readings = [_reading(20, 12, 95, name="Edge")] + [_reading(2, 5, 30, days_ago=i) for i in range(1, 9)]
    messages = detect_anomalies(readings_frame(readings))
    assert len(messages) == 3
    assert messages[:3] == [
        "Unusual nitrogen level at Edge",
        "pH anomaly detected at Edge",
        "Moisture anomaly at Edge",
    ]


def test_chart_frame_is_chronological_and_capped():
    rows = [
        AggregatedRow("daily", NOW - timedelta(days=i), NOW - timedelta(days=i - 1),
                      avg_nitrogen=float(i), avg_ph=6.5, avg_moisture=60.0,
                      avg_temperature=None, total_readings=1)
        for i in range(15)
    ]
    chart = chart_frame(rows)
    assert len(chart) == 12
    assert list(chart["nitrogen"]) == [float(i) for i in range(11, -1, -1)]
    assert (chart["temperature"] == 0.0).all()


def test_location_summary_orders_by_reading_count():
    df = readings_frame([_reading(2, 6, 60, name="A"), _reading(4, 6, 60, name="B"),
                         _reading(6, 6, 60, name="B", days_ago=1)])
    summary = location_summary(df)
    assert list(summary["location_name"]) == ["B", "A"]
    assert summary.loc[0, "nitrogen"] == pytest.approx(5.0)


def test_load_dashboard_refreshes_summaries(tmp_path):
    store = SoilStore(tmp_path / "soil.db")
    field = store.create_location(USER, "Plot A")
    store.insert_reading(USER, field.id, 3.0, 6.5, 70, temperature=18.0, reading_date=NOW)
    store.insert_reading(USER, field.id, 5.0, 6.5, 70, reading_date=NOW - timedelta(days=8))

    data = load_dashboard(store, USER, "weekly", now=NOW)
    assert [loc.name for loc in data["locations"]] == ["Plot A"]
    assert len(data["readings"]) == 2
    assert data["averages"]["nitrogen"] == pytest.approx(4.0)
    assert [r.total_readings for r in data["aggregated"]] == [1, 1]
    assert list(data["chart"]["nitrogen"]) == [5.0, 3.0]
    assert store.get_aggregated_rows(USER, "weekly")


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
