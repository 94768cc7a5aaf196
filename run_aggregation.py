"""
Refresh aggregated soil summaries without opening the dashboard.
Run from project root, e.g. from cron:

    python run_aggregation.py                      # all granularities, default user
    python run_aggregation.py --type weekly --user alice --db data/soil_monitor.db
"""

import argparse
import logging
import sys
from pathlib import Path

# Ensure project root is on path
PROJECT_ROOT = Path(__file__).resolve().parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor.aggregation import trigger_aggregation
from soil_monitor.config import AGGREGATION_TYPES, DATABASE_PATH, DEFAULT_USER_ID, WINDOW_COUNT, ensure_dirs
from soil_monitor.exceptions import SoilMonitorError
from soil_monitor.store import SoilStore

log = logging.getLogger("run_aggregation")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Recompute per-period soil summaries.")
    parser.add_argument("--user", default=DEFAULT_USER_ID, help="User id whose readings to aggregate")
    parser.add_argument("--type", choices=AGGREGATION_TYPES, action="append", dest="types",
                        help="Granularity to refresh (repeatable; default: all)")
    parser.add_argument("--count", type=int, default=WINDOW_COUNT, help="Most recent windows per granularity")
    parser.add_argument("--db", default=str(DATABASE_PATH), help="SQLite database path")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    ensure_dirs()

    try:
        store = SoilStore(args.db)
    except SoilMonitorError as exc:
        log.error("%s", exc)
        return 1

    failures = 0
    for aggregation_type in args.types or AGGREGATION_TYPES:
        result = trigger_aggregation(store, args.user, aggregation_type, count=args.count)
        failures += len(result["failed"])
        print(f"{aggregation_type:<8} {result['attempted']} window(s), {len(result['failed'])} failed")

    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
