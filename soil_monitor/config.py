"""
Configuration and constants for the Smart Soil Health Monitor.
Centralizes paths, file names, query limits, aggregation settings and weather endpoints.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Base paths (project root = parent of 'soil_monitor')
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = PROJECT_ROOT / "data"
REPORTS_DIR = PROJECT_ROOT / "reports"

# ---------------------------------------------------------------------------
# Storage files (override with environment variables)
# ---------------------------------------------------------------------------
DATABASE_FNAME = "soil_monitor.db"
CACHE_FNAME    = "local_cache.json"

DATABASE_PATH = Path(os.getenv("SOIL_MONITOR_DB", str(DATA_DIR / DATABASE_FNAME)))
CACHE_PATH    = Path(os.getenv("SOIL_MONITOR_CACHE", str(DATA_DIR / CACHE_FNAME)))

# Stand-in for the signed-in user; empty string means "not logged in"
DEFAULT_USER_ID = os.getenv("SOIL_MONITOR_USER", "local-user")

# ---------------------------------------------------------------------------
# Soil parameters
# ---------------------------------------------------------------------------
SOIL_PARAMETERS = ["nitrogen", "ph", "moisture"]
PARAMETER_LABELS = {
    "nitrogen": "Nitrogen",
    "ph":       "pH",
    "moisture": "Moisture",
}
PARAMETER_UNITS = {
    "nitrogen":    "mg/kg",
    "ph":          "",
    "moisture":    "%",
    "temperature": "°C",
}

# Form validation limits (inclusive)
INPUT_LIMITS: dict[str, tuple[float, float]] = {
    "nitrogen": (0.0, 100.0),
    "ph":       (0.0, 14.0),
    "moisture": (0.0, 100.0),
}

# Multi-location entry form: number of rows per batch
MIN_BATCH_LOCATIONS     = 1
MAX_BATCH_LOCATIONS     = 10
DEFAULT_BATCH_LOCATIONS = 3

# ---------------------------------------------------------------------------
# Recommendation display
# ---------------------------------------------------------------------------
DISPLAY_CAP = 6   # max fertilizer / pesticide entries shown

# ---------------------------------------------------------------------------
# Aggregation / dashboard
# ---------------------------------------------------------------------------
AGGREGATION_TYPES     = ["daily", "weekly", "monthly", "yearly"]
DEFAULT_AGGREGATION   = "weekly"
WINDOW_COUNT          = 12     # windows generated per aggregation refresh
AGGREGATED_ROWS_LIMIT = 50     # aggregated rows read back for display
READINGS_LIMIT        = 1000   # raw readings loaded by the dashboard
CHART_PERIODS         = 12     # aggregated rows plotted
LATEST_READINGS_COUNT = 5
REPORT_TABLE_ROWS     = 15

# Anomaly detection (relative to the average of the loaded readings)
ANOMALY_SCAN_COUNT        = 10    # most recent readings checked
ANOMALY_MAX_MESSAGES      = 3
ANOMALY_NITROGEN_REL      = 0.3   # |n - avg| > 30% of avg
ANOMALY_PH_ABS            = 1.5   # |ph - avg| > 1.5 units
ANOMALY_MOISTURE_REL      = 0.4   # |m - avg| > 40% of avg

# ---------------------------------------------------------------------------
# Weather (Open-Meteo, no API key required)
# ---------------------------------------------------------------------------
GEOCODING_URL   = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL    = "https://api.open-meteo.com/v1/forecast"
REQUEST_TIMEOUT = 15   # seconds

# Local cache keys
CACHE_KEY_READINGS = "soil_readings"
CACHE_KEY_WEATHER  = "weather_data"
CACHE_KEY_LOCATION = "user_location"


# ---------------------------------------------------------------------------
# Ensure directories exist (called when app / job starts)
# ---------------------------------------------------------------------------
def ensure_dirs():
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)
    CACHE_PATH.parent.mkdir(parents=True, exist_ok=True)
