"""
Aggregation orchestrator: turn raw readings into per-period summaries.

For a granularity (daily / weekly / monthly / yearly) the orchestrator generates
the most recent WINDOW_COUNT windows, asks the store to compute and upsert a
summary for each, then reads back the latest AGGREGATED_ROWS_LIMIT summaries.

Failure policy:
  - a failing window is logged and skipped; later windows still run and the
    read-back still happens;
  - a failing read-back raises to the caller (the view shows an error).

The store only needs two methods:
    aggregate_soil_data(user_id, aggregation_type, period_start, period_end)
    get_aggregated_rows(user_id, aggregation_type, limit)
"""

import logging
from datetime import datetime

from soil_monitor.config import AGGREGATED_ROWS_LIMIT, WINDOW_COUNT
from soil_monitor.models import AggregatedRow
from soil_monitor.periods import generate_periods

log = logging.getLogger(__name__)


def trigger_aggregation(
    store,
    user_id: str,
    aggregation_type: str,
    now: datetime | None = None,
    count: int = WINDOW_COUNT,
) -> dict:
    """
    Request a summary for each of the `count` most recent windows, one after another.

    Returns
    -------
    dict with keys:
        attempted : int, windows requested
        failed    : list of (period_start, error message) for windows that raised
    """
    now = now or datetime.now()
    windows = generate_periods(aggregation_type, now, count)
    failed = []
    for window in windows:
        try:
            store.aggregate_soil_data(
                user_id, aggregation_type, window.period_start, window.period_end
            )
        except Exception as exc:
            log.warning(
                "Aggregation failed for %s window starting %s: %s",
                aggregation_type, window.period_start, exc,
            )
            failed.append((window.period_start, str(exc)))
    log.info(
        "Triggered %s aggregation for %d window(s), %d failed",
        aggregation_type, len(windows), len(failed),
    )
    return {"attempted": len(windows), "failed": failed}


def fetch_aggregated(
    store,
    user_id: str,
    aggregation_type: str,
    limit: int = AGGREGATED_ROWS_LIMIT,
) -> list[AggregatedRow]:
    """Latest stored summaries, newest period first. Errors propagate."""
    return store.get_aggregated_rows(user_id, aggregation_type, limit)


def refresh_aggregates(
    store,
    user_id: str,
    aggregation_type: str,
    now: datetime | None = None,
    count: int = WINDOW_COUNT,
    limit: int = AGGREGATED_ROWS_LIMIT,
) -> list[AggregatedRow]:
    """
    Trigger aggregation for the recent windows, then read the summaries back.

    This is what the dashboard calls when it loads, so viewing the dashboard
    writes summaries as a side effect. Scheduled refreshes can call
    trigger_aggregation() alone (see run_aggregation.py) and leave the view
    read-only.
    """
    trigger_aggregation(store, user_id, aggregation_type, now=now, count=count)
    return fetch_aggregated(store, user_id, aggregation_type, limit=limit)
