"""
Smart Soil Health Monitor — core package.
"""

from soil_monitor.config import (
    PROJECT_ROOT,
    DATA_DIR,
    DATABASE_PATH,
    CACHE_PATH,
    AGGREGATION_TYPES,
    SOIL_PARAMETERS,
    ensure_dirs,
)

__all__ = [
    "PROJECT_ROOT",
    "DATA_DIR",
    "DATABASE_PATH",
    "CACHE_PATH",
    "AGGREGATION_TYPES",
    "SOIL_PARAMETERS",
    "ensure_dirs",
]
