"""
Error types. The UI catches SoilMonitorError and shows the message to the user;
nothing here is fatal to the process.
"""


class SoilMonitorError(Exception):
    """Base class for errors reported to the user."""


class ValidationError(SoilMonitorError):
    """Missing or out-of-range form input. Raised before anything is written."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class StoreError(SoilMonitorError):
    """The reading / location / aggregate store failed."""


class AuthError(StoreError):
    """No signed-in user for a store operation."""


class WeatherError(SoilMonitorError):
    """Weather lookup failed (offline, HTTP error or unknown place)."""
