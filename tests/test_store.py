"""
SQLite store: locations, readings and aggregate upserts.
Run from project root: python -m pytest tests/test_store.py -v
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.exceptions import AuthError, StoreError, ValidationError
from soil_monitor.store import SoilStore, to_db_timestamp

USER = "user-1"
DAY = datetime(2024, 3, 13)


@pytest.fixture
def store(tmp_path):
    return SoilStore(tmp_path / "nested" / "soil.db")


@pytest.fixture
def field(store):
    return store.create_location(USER, "North field", 12.5, 77.6, "Clay loam")


def test_database_directory_is_created(tmp_path):
    SoilStore(tmp_path / "a" / "b" / "soil.db")
    assert (tmp_path / "a" / "b").is_dir()


def test_locations_newest_first_and_per_user(store):
    store.create_location(USER, "Old", created_at=DAY - timedelta(days=1))
    store.create_location(USER, "New", created_at=DAY)
    store.create_location("someone-else", "Theirs", created_at=DAY)
    assert [loc.name for loc in store.get_locations(USER)] == ["New", "Old"]


def test_update_location(store, field):
    assert store.update_location(USER, field.id, name="South field", latitude=1.0)
    updated = store.get_location(USER, field.id)
    assert updated.name == "South field"
    assert updated.latitude == 1.0
    assert not store.update_location(USER, "missing", name="x")
    with pytest.raises(ValueError):
        store.update_location(USER, field.id, colour="red")


def test_delete_location_cascades_to_readings(store, field):
    store.insert_reading(USER, field.id, 3.0, 6.5, 70, reading_date=DAY)
    assert store.delete_location(USER, field.id)
    assert store.get_readings(USER) == []
    assert not store.delete_location(USER, field.id)


def test_readings_newest_first_with_location_name(store, field):
    store.insert_reading(USER, field.id, 1.0, 6.0, 50, reading_date=DAY - timedelta(days=2))
    store.insert_reading(USER, field.id, 2.0, 6.5, 60, temperature=21.5, plant_type="corn",
                         reading_date=DAY)
    readings = store.get_readings(USER)
    assert [r.nitrogen for r in readings] == [2.0, 1.0]
    assert readings[0].location_name == "North field"
    assert readings[0].temperature == 21.5
    assert readings[0].plant_type == "corn"
    assert readings[1].temperature is None


def test_readings_filter_and_limit(store, field):
    other = store.create_location(USER, "Orchard")
    store.insert_reading(USER, field.id, 1.0, 6.0, 50, reading_date=DAY)
    store.insert_reading(USER, other.id, 2.0, 6.0, 50, reading_date=DAY)
    assert [r.location_name for r in store.get_readings(USER, location_id=other.id)] == ["Orchard"]
    assert len(store.get_readings(USER, limit=1)) == 1


def test_update_and_delete_reading(store, field):
    reading_id = store.insert_reading(USER, field.id, 1.0, 6.0, 50, reading_date=DAY)
    assert store.update_reading(USER, reading_id, nitrogen=2.5)
    assert store.get_readings(USER)[0].nitrogen == 2.5
    assert store.delete_reading(USER, reading_id)
    assert store.get_readings(USER) == []


def test_aggregate_computes_stats_over_half_open_window(store, field):
    start, end = DAY, DAY + timedelta(days=1)
    store.insert_reading(USER, field.id, 2.0, 6.0, 60, temperature=20.0, reading_date=start)
    store.insert_reading(USER, field.id, 4.0, 7.0, 80, reading_date=start + timedelta(hours=5))
    store.insert_reading(USER, field.id, 9.0, 9.0, 99, reading_date=end)   # next window

    row = store.aggregate_soil_data(USER, "daily", start, end)
    assert row.total_readings == 2
    assert row.avg_nitrogen == pytest.approx(3.0)
    assert row.avg_ph == pytest.approx(6.5)
    assert row.avg_moisture == pytest.approx(70.0)
    assert row.avg_temperature == pytest.approx(20.0)
    assert (row.min_nitrogen, row.max_nitrogen) == (2.0, 4.0)


def test_aggregate_twice_overwrites(store, field):
    start, end = DAY, DAY + timedelta(days=1)
    store.insert_reading(USER, field.id, 2.0, 6.0, 60, reading_date=start)
    store.aggregate_soil_data(USER, "daily", start, end)
    store.insert_reading(USER, field.id, 4.0, 6.0, 60, reading_date=start)
    store.aggregate_soil_data(USER, "daily", start, end)

    rows = store.get_aggregated_rows(USER, "daily")
    assert len(rows) == 1
    assert rows[0].total_readings == 2
    assert rows[0].avg_nitrogen == pytest.approx(3.0)


def test_empty_window_removes_stale_summary(store, field):
    start, end = DAY, DAY + timedelta(days=1)
    reading_id = store.insert_reading(USER, field.id, 2.0, 6.0, 60, reading_date=start)
    store.aggregate_soil_data(USER, "daily", start, end)
    store.delete_reading(USER, reading_id)
    assert store.aggregate_soil_data(USER, "daily", start, end) is None
    assert store.get_aggregated_rows(USER, "daily") == []


def test_aggregated_rows_newest_period_first(store, field):
    for offset in range(3):
        start = DAY - timedelta(days=offset)
        store.insert_reading(USER, field.id, 2.0, 6.0, 60, reading_date=start)
        store.aggregate_soil_data(USER, "daily", start, start + timedelta(days=1))
    rows = store.get_aggregated_rows(USER, "daily", limit=2)
    assert [r.period_start for r in rows] == [DAY, DAY - timedelta(days=1)]
    assert store.get_aggregated_rows(USER, "weekly") == []


def test_reading_cannot_use_another_users_location(store, field):
    with pytest.raises(StoreError, match="not found"):
        store.insert_reading("someone-else", field.id, 3.0, 6.5, 70, reading_date=DAY)
    assert store.get_readings("someone-else") == []
    assert store.get_readings(USER) == []


def test_update_reading_rejects_out_of_range_values(store, field):
    reading_id = store.insert_reading(USER, field.id, 1.0, 6.0, 50, reading_date=DAY)
    with pytest.raises(ValidationError):
        store.update_reading(USER, reading_id, ph=20)
    with pytest.raises(ValidationError):
        store.update_reading(USER, reading_id, moisture="wet")
    assert store.get_readings(USER)[0].ph == 6.0
    assert store.update_reading(USER, reading_id, moisture="55")
    assert store.get_readings(USER)[0].moisture == 55.0


def test_aware_and_naive_times_compare_in_local_time(store, field):
    local_noon = DAY.replace(hour=12)
    store.insert_reading(USER, field.id, 3.0, 6.5, 70, reading_date=local_noon)
    aware_start = DAY.astimezone().astimezone(timezone.utc)
    aware_end = (DAY + timedelta(days=1)).astimezone().astimezone(timezone.utc)

    assert to_db_timestamp(aware_start) == to_db_timestamp(DAY)
    row = store.aggregate_soil_data(USER, "daily", aware_start, aware_end)
    assert row.total_readings == 1
    assert row.period_start == DAY


def test_missing_user_is_rejected(store):
    with pytest.raises(AuthError):
        store.get_readings("")


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
