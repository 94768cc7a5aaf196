"""
Record types shared by the store, the aggregation orchestrator and the UI.
"""

from dataclasses import asdict, dataclass
from datetime import datetime


@dataclass
class Location:
    id: str
    user_id: str
    name: str
    latitude: float | None = None
    longitude: float | None = None
    description: str | None = None
    created_at: datetime | None = None


@dataclass
class Reading:
    id: str
    user_id: str
    location_id: str
    nitrogen: float
    ph: float
    moisture: float
    reading_date: datetime
    temperature: float | None = None
    plant_type: str | None = None
    location_name: str | None = None

    def to_dict(self) -> dict:
        """JSON-friendly dict (dates as ISO strings), used by the local cache."""
        d = asdict(self)
        d["reading_date"] = self.reading_date.isoformat()
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Reading":
        d = dict(data)
        if isinstance(d.get("reading_date"), str):
            d["reading_date"] = datetime.fromisoformat(d["reading_date"])
        return cls(**d)


@dataclass(frozen=True)
class AggregationWindow:
    """Half-open time range [period_start, period_end) for one aggregation bucket."""
    period_start: datetime
    period_end: datetime

    def __post_init__(self):
        if not self.period_start < self.period_end:
            raise ValueError(
                f"period_start {self.period_start} must be before period_end {self.period_end}"
            )


@dataclass
class AggregatedRow:
    aggregation_type: str
    period_start: datetime
    period_end: datetime
    avg_nitrogen: float
    avg_ph: float
    avg_moisture: float
    avg_temperature: float | None = None
    min_nitrogen: float | None = None
    max_nitrogen: float | None = None
    min_ph: float | None = None
    max_ph: float | None = None
    min_moisture: float | None = None
    max_moisture: float | None = None
    total_readings: int = 0
