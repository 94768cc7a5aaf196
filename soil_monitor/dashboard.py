"""
Dashboard analytics on top of the store.

Turns readings and aggregated summaries into pandas frames for the Streamlit
dashboard and the report: overall averages, the latest readings, chart series
per period and simple anomaly messages.
"""

import logging
from datetime import datetime

import numpy as np
import pandas as pd

from soil_monitor.aggregation import refresh_aggregates
from soil_monitor.config import (
    ANOMALY_MAX_MESSAGES,
    ANOMALY_MOISTURE_REL,
    ANOMALY_NITROGEN_REL,
    ANOMALY_PH_ABS,
    ANOMALY_SCAN_COUNT,
    CHART_PERIODS,
    LATEST_READINGS_COUNT,
    READINGS_LIMIT,
)
from soil_monitor.models import AggregatedRow, Reading

log = logging.getLogger(__name__)

READING_COLUMNS = [
    "reading_date", "location_name", "plant_type",
    "nitrogen", "ph", "moisture", "temperature",
]

_PERIOD_FORMATS = {
    "daily":   "%b %d",
    "weekly":  "%b %d",
    "monthly": "%b %Y",
    "yearly":  "%Y",
}


def readings_frame(readings: list[Reading]) -> pd.DataFrame:
    """Readings as a DataFrame (newest first, as given) with numeric columns as float."""
    if not readings:
        return pd.DataFrame(columns=READING_COLUMNS)
    df = pd.DataFrame([r.to_dict() for r in readings])
    df["reading_date"] = pd.to_datetime(df["reading_date"])
    for col in ("nitrogen", "ph", "moisture", "temperature"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def compute_averages(df: pd.DataFrame) -> dict:
    """
    Mean nitrogen / pH / moisture / temperature over the frame.
    Temperature averages only readings that have one; 0.0 when none do
    or when the frame is empty.
    """
    if df.empty:
        return {"nitrogen": 0.0, "ph": 0.0, "moisture": 0.0, "temperature": 0.0, "count": 0}
    temp = df["temperature"].dropna()
    return {
        "nitrogen": float(df["nitrogen"].mean()),
        "ph": float(df["ph"].mean()),
        "moisture": float(df["moisture"].mean()),
        "temperature": float(temp.mean()) if not temp.empty else 0.0,
        "count": int(len(df)),
    }


def latest_readings(df: pd.DataFrame, n: int = LATEST_READINGS_COUNT) -> pd.DataFrame:
    return df.head(n)


def detect_anomalies(df: pd.DataFrame, averages: dict | None = None) -> list[str]:
    """
    Flag recent readings that sit far from the overall averages.

    Only the ANOMALY_SCAN_COUNT most recent readings are checked and at most
    ANOMALY_MAX_MESSAGES messages are returned. Each reading is checked for
    nitrogen, then pH, then moisture, and may produce several messages.
    """
    if df.empty:
        return []
    averages = averages or compute_averages(df)
    avg_n, avg_ph, avg_m = averages["nitrogen"], averages["ph"], averages["moisture"]

    messages = []
    for row in df.head(ANOMALY_SCAN_COUNT).itertuples(index=False):
        where = row.location_name or "unknown location"
        if abs(row.nitrogen - avg_n) > avg_n * ANOMALY_NITROGEN_REL:
            messages.append(f"Unusual nitrogen level at {where}")
        if abs(row.ph - avg_ph) > ANOMALY_PH_ABS:
            messages.append(f"pH anomaly detected at {where}")
        if abs(row.moisture - avg_m) > avg_m * ANOMALY_MOISTURE_REL:
            messages.append(f"Moisture anomaly at {where}")
    return messages[:ANOMALY_MAX_MESSAGES]


def period_label(period_start: datetime, aggregation_type: str) -> str:
    return period_start.strftime(_PERIOD_FORMATS.get(aggregation_type, "%Y-%m-%d"))


def chart_frame(rows: list[AggregatedRow], limit: int = CHART_PERIODS) -> pd.DataFrame:
    """
    Chart series from aggregated rows (given newest first): the `limit` most recent
    periods in chronological order, indexed by period label.
    A missing temperature average is plotted as 0.
    """
    columns = ["period", "nitrogen", "ph", "moisture", "temperature", "readings"]
    recent = list(reversed(rows[:limit]))
    if not recent:
        return pd.DataFrame(columns=columns).set_index("period")
    df = pd.DataFrame({
        "period": [period_label(r.period_start, r.aggregation_type) for r in recent],
        "nitrogen": [r.avg_nitrogen for r in recent],
        "ph": [r.avg_ph for r in recent],
        "moisture": [r.avg_moisture for r in recent],
        "temperature": [r.avg_temperature or 0.0 for r in recent],
        "readings": [r.total_readings for r in recent],
    })
    df[["nitrogen", "ph", "moisture", "temperature"]] = (
        df[["nitrogen", "ph", "moisture", "temperature"]].astype(float).round(2)
    )
    return df.set_index("period")


def location_summary(df: pd.DataFrame) -> pd.DataFrame:
    """Per-location reading count and mean values, most readings first."""
    if df.empty:
        return pd.DataFrame(columns=["location_name", "readings", "nitrogen", "ph", "moisture"])
    summary = (
        df.groupby("location_name", dropna=False)
        .agg(readings=("nitrogen", "size"),
             nitrogen=("nitrogen", "mean"),
             ph=("ph", "mean"),
             moisture=("moisture", "mean"))
        .reset_index()
        .sort_values("readings", ascending=False, kind="stable")
    )
    summary[["nitrogen", "ph", "moisture"]] = np.round(summary[["nitrogen", "ph", "moisture"]], 2)
    return summary.reset_index(drop=True)


def load_dashboard(
    store,
    user_id: str,
    aggregation_type: str,
    location_id: str | None = None,
    now: datetime | None = None,
) -> dict:
    """
    Everything the dashboard view shows, in one call.

    Refreshes the recent aggregation windows for the user first, so loading the
    dashboard also writes summaries.

    Returns
    -------
    dict with keys:
        locations  : list[Location]
        records    : list[Reading] as loaded (newest first)
        readings   : DataFrame of the same readings
        averages   : dict from compute_averages
        latest     : DataFrame of the latest readings
        anomalies  : list[str]
        aggregated : list[AggregatedRow] (newest first)
        chart      : DataFrame from chart_frame
    """
    locations = store.get_locations(user_id)
    readings = store.get_readings(user_id, location_id=location_id, limit=READINGS_LIMIT)
    aggregated = refresh_aggregates(store, user_id, aggregation_type, now=now)

    df = readings_frame(readings)
    averages = compute_averages(df)
    log.info(
        "Dashboard loaded: %d location(s), %d reading(s), %d %s summaries",
        len(locations), len(df), len(aggregated), aggregation_type,
    )
    return {
        "locations": locations,
        "records": readings,
        "readings": df,
        "averages": averages,
        "latest": latest_readings(df),
        "anomalies": detect_anomalies(df, averages),
        "aggregated": aggregated,
        "chart": chart_frame(aggregated),
    }
