"""
Reading entry: form validation and batch submission.

Two entry paths mirror the UI forms:
  - record_reading: one reading for an existing location (plant type required);
  - submit_batch  : readings taken at several spots in one session. Incomplete rows
    are skipped, the complete ones are stored under a new "Batch ..." location.

All validation happens before anything is written, so a rejected submission
leaves the store untouched.
"""

import logging
import math
from datetime import datetime

from soil_monitor.config import (
    INPUT_LIMITS,
    MAX_BATCH_LOCATIONS,
    MIN_BATCH_LOCATIONS,
    PARAMETER_LABELS,
    SOIL_PARAMETERS,
)
from soil_monitor.exceptions import ValidationError
from soil_monitor.models import Location

log = logging.getLogger(__name__)


def _is_missing(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _parse_number(raw, field: str, required: bool = True) -> float | None:
    """Parse a form value ('' / None = missing) into a finite float."""
    label = PARAMETER_LABELS.get(field, field.capitalize())
    if _is_missing(raw):
        if required:
            raise ValidationError(f"{label} is required.", field)
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.", field) from None
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(f"{label} must be a number.", field)
    return value


def validate_reading(
    nitrogen,
    ph,
    moisture,
    temperature=None,
    plant_type: str | None = None,
    require_plant: bool = False,
) -> dict:
    """
    Validate raw form values and return a clean reading dict
    {nitrogen, ph, moisture, temperature, plant_type}.
    Raises ValidationError on the first problem found.
    """
    values = {
        "nitrogen": _parse_number(nitrogen, "nitrogen"),
        "ph":       _parse_number(ph, "ph"),
        "moisture": _parse_number(moisture, "moisture"),
    }
    for field in SOIL_PARAMETERS:
        low, high = INPUT_LIMITS[field]
        if not low <= values[field] <= high:
            raise ValidationError(
                f"{PARAMETER_LABELS[field]} must be between {low:g} and {high:g}.", field
            )

    plant = (plant_type or "").strip()
    if require_plant and not plant:
        raise ValidationError("Plant type is required.", "plant_type")

    values["temperature"] = _parse_number(temperature, "temperature", required=False)
    values["plant_type"] = plant or None
    return values


def validate_reading_update(fields: dict) -> dict:
    """
    Validate the numeric fields of a reading edit (only those present) with the
    same rules as form entry. Other fields pass through unchanged.
    """
    clean = dict(fields)
    for field in SOIL_PARAMETERS:
        if field not in clean:
            continue
        value = _parse_number(clean[field], field)
        low, high = INPUT_LIMITS[field]
        if not low <= value <= high:
            raise ValidationError(
                f"{PARAMETER_LABELS[field]} must be between {low:g} and {high:g}.", field
            )
        clean[field] = value
    if "temperature" in clean:
        clean["temperature"] = _parse_number(clean["temperature"], "temperature", required=False)
    if "plant_type" in clean:
        clean["plant_type"] = (clean["plant_type"] or "").strip() or None
    return clean


def form_default(last: dict, field: str, default: float) -> float:
    """Prefill value for a form field from the last reading; a stored 0.0 is kept."""
    value = last.get(field)
    return default if value is None else float(value)


def _is_complete(row: dict) -> bool:
    return not any(_is_missing(row.get(f)) for f in SOIL_PARAMETERS)


def clamp_batch_size(value) -> int:
    """Number of rows in the batch form, clamped to 1..10 (3 if unparseable)."""
    try:
        n = int(value)
    except (TypeError, ValueError):
        n = 3
    return max(MIN_BATCH_LOCATIONS, min(MAX_BATCH_LOCATIONS, n))


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def record_reading(
    store,
    user_id: str,
    location_id: str,
    nitrogen,
    ph,
    moisture,
    plant_type: str | None,
    temperature=None,
    now: datetime | None = None,
) -> str:
    """Validate and store one reading for an existing location. Returns the reading id."""
    clean = validate_reading(
        nitrogen, ph, moisture, temperature=temperature, plant_type=plant_type, require_plant=True
    )
    return store.insert_reading(
        user_id, location_id, reading_date=now or datetime.now(), **clean
    )


def submit_batch(store, user_id: str, rows: list[dict], now: datetime | None = None) -> dict:
    """
    Store the complete rows of a multi-location entry form.

    A row is complete when nitrogen, pH and moisture are all filled in; other rows
    are ignored. Rows without a plant type are labelled "Location <n>" by position.

    Returns
    -------
    dict with keys:
        location : Location created for this batch
        ids      : list of stored reading ids
        count    : number of readings stored
        averages : {nitrogen, ph, moisture, temperature} over the stored rows
                   (temperature is 0.0 when none was given)
    """
    now = now or datetime.now()
    complete = [(i, r) for i, r in enumerate(rows) if _is_complete(r)]
    if not complete:
        raise ValidationError(
            "Please fill in at least one complete reading (nitrogen, pH, moisture)"
        )

    clean_rows = []
    for index, row in complete:
        try:
            clean = validate_reading(
                row.get("nitrogen"), row.get("ph"), row.get("moisture"),
                temperature=row.get("temperature"), plant_type=row.get("plant_type"),
            )
        except ValidationError as exc:
            raise ValidationError(f"Location {index + 1}: {exc}", exc.field) from exc
        clean["plant_type"] = clean["plant_type"] or f"Location {index + 1}"
        clean_rows.append(clean)

    session_name = f"Batch {now.strftime('%Y-%m-%d %H:%M:%S')}"
    location: Location = store.create_location(
        user_id,
        session_name,
        description=f"Multi-location reading with {len(clean_rows)} data points",
        created_at=now,
    )
    ids = store.insert_readings(user_id, location.id, clean_rows, reading_date=now)
    log.info("Batch %s stored %d reading(s)", session_name, len(ids))

    temps = [r["temperature"] for r in clean_rows if r["temperature"] is not None]
    return {
        "location": location,
        "ids": ids,
        "count": len(ids),
        "averages": {
            "nitrogen": _average([r["nitrogen"] for r in clean_rows]),
            "ph": _average([r["ph"] for r in clean_rows]),
            "moisture": _average([r["moisture"] for r in clean_rows]),
            "temperature": _average(temps),
        },
    }
