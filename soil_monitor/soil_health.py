"""
Soil health interpretation and recommendation messages.
- classify_parameter: 'deficiency', 'optimal' or 'excess' against an inclusive range.
- evaluate_reading: alerts, positives, fertilizer / pesticide suggestions and prioritised
  recommendations for one reading, using the plant's requirement profile.
- suggest_crops: crops that suit the current soil conditions, so the system answers
  "what could I grow here?"
"""

from soil_monitor.config import DISPLAY_CAP, PARAMETER_UNITS, SOIL_PARAMETERS
from soil_monitor.plant_profiles import (
    DEFAULT_PLANT_KEY,
    DRAINAGE_SUGGESTION,
    get_catalogue,
    get_profile,
    get_ranges,
    get_remedies,
    normalise_plant,
    plant_label,
)

DEFICIENCY = "deficiency"
EXCESS     = "excess"
OPTIMAL    = "optimal"

# Message rules: parameter -> level -> alert / recommendation template.
# {range} is the plant's required range, {plant} its display label.
_RULES = {
    "nitrogen": {
        DEFICIENCY: {
            "alert": "Low nitrogen levels detected",
            "title": "Nitrogen Deficiency",
            "description": (
                "Apply organic compost or nitrogen-rich fertilizer. Consider planting legumes "
                "to fix nitrogen naturally. Required range for {plant}: {range}."
            ),
            "priority": "high",
        },
        EXCESS: {
            "alert": "High nitrogen levels detected",
            "title": "Excess Nitrogen",
            "description": (
                "Reduce nitrogen inputs. Consider growing leafy vegetables that utilize high "
                "nitrogen. Target range for {plant}: {range}."
            ),
            "priority": "medium",
        },
        OPTIMAL: "Nitrogen levels are in good range",
    },
    "ph": {
        DEFICIENCY: {
            "alert": "Acidic soil conditions",
            "title": "Soil Too Acidic",
            "description": "Add lime or wood ash to raise pH. Preferred pH for {plant}: {range}.",
            "priority": "high",
        },
        EXCESS: {
            "alert": "Alkaline soil conditions",
            "title": "Soil Too Alkaline",
            "description": (
                "Add organic matter like compost or sulfur to lower pH gradually. "
                "Preferred pH for {plant}: {range}."
            ),
            "priority": "high",
        },
        OPTIMAL: "pH levels are optimal for {plant}",
    },
    "moisture": {
        DEFICIENCY: {
            "alert": "Low soil moisture",
            "title": "Insufficient Moisture",
            "description": (
                "Increase watering frequency. Consider mulching to retain moisture. "
                "Required range for {plant}: {range}."
            ),
            "priority": "high",
        },
        EXCESS: {
            "alert": "Excessive soil moisture",
            "title": "Overwatering Risk",
            "description": (
                "Reduce watering. Ensure proper drainage to prevent root rot and apply a "
                "fungicide if symptoms appear. Target range for {plant}: {range}."
            ),
            "priority": "medium",
        },
        OPTIMAL: "Moisture levels are adequate",
    },
}

GENERAL_TIPS = [
    "Test soil regularly for best results",
    "Apply organic matter to improve soil structure",
    "Rotate crops to maintain soil health",
    "Monitor weather conditions for optimal timing",
]


def classify_parameter(value: float, low: float, high: float) -> str:
    """Return 'deficiency', 'optimal' or 'excess'. Both bounds are inclusive."""
    if value < low:
        return DEFICIENCY
    if value > high:
        return EXCESS
    return OPTIMAL


def _format_range(parameter: str, low: float, high: float) -> str:
    unit = PARAMETER_UNITS.get(parameter, "")
    sep = "" if unit in ("", "%") else " "
    return f"{low:g}-{high:g}{sep}{unit}"


def _dedupe_and_cap(items: list[str], cap: int = DISPLAY_CAP) -> list[str]:
    """Drop repeats (first occurrence wins), then keep the first `cap` entries."""
    seen = set()
    out = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out[:cap]


def evaluate_reading(
    nitrogen: float,
    ph: float,
    moisture: float,
    plant_type: str | None = None,
) -> dict:
    """
    Classify one reading against its plant's requirement profile.

    Parameters are evaluated independently in the order nitrogen, pH, moisture and
    every output list keeps that order. Any float is accepted: out-of-physical-range
    values are simply classified as deficiency or excess.

    Returns
    -------
    dict with keys:
        plant            : resolved profile key ("default" when unknown)
        status           : {parameter: "deficiency" | "optimal" | "excess"}
        alerts           : list[str]
        positives        : list[str]
        fertilizers      : list[str] (deduplicated, at most DISPLAY_CAP)
        pesticides       : list[str] (deduplicated, at most DISPLAY_CAP)
        recommendations  : list[{title, description, priority}]
    """
    values = {"nitrogen": float(nitrogen), "ph": float(ph), "moisture": float(moisture)}
    ranges = get_ranges(plant_type)
    label = plant_label(plant_type)
    known = get_profile(plant_type) is not None

    status: dict[str, str] = {}
    alerts: list[str] = []
    positives: list[str] = []
    fertilizers: list[str] = []
    pesticides: list[str] = []
    recommendations: list[dict] = []

    for parameter in SOIL_PARAMETERS:
        low, high = ranges[parameter]
        level = classify_parameter(values[parameter], low, high)
        status[parameter] = level
        rule = _RULES[parameter][level]

        if level == OPTIMAL:
            positives.append(rule.format(plant=label))
            continue

        alerts.append(rule["alert"])
        recommendations.append({
            "title": rule["title"],
            "description": rule["description"].format(
                plant=label,
                range=_format_range(parameter, low, high),
            ),
            "priority": rule["priority"],
        })

        if level == DEFICIENCY:
            fertilizers.extend(get_remedies(plant_type, f"{parameter}_low"))
        elif parameter == "ph":
            fertilizers.extend(get_remedies(plant_type, "ph_high"))
        elif parameter == "moisture":
            pesticides.extend(get_remedies(plant_type, "fungicide"))
            pesticides.append(DRAINAGE_SUGGESTION)

    # Rule-triggered entries first, then the full catalogue, then the display cap
    catalogue_fert, catalogue_pest = get_catalogue(plant_type)
    fertilizers.extend(catalogue_fert)
    pesticides.extend(catalogue_pest)

    return {
        "plant": normalise_plant(plant_type) if known else DEFAULT_PLANT_KEY,
        "status": status,
        "alerts": alerts,
        "positives": positives,
        "fertilizers": _dedupe_and_cap(fertilizers),
        "pesticides": _dedupe_and_cap(pesticides),
        "recommendations": recommendations,
    }


def suggest_crops(nitrogen: float, ph: float, moisture: float) -> list[str]:
    """
    Crops that suit the current conditions. First matching rule wins:
    balanced soil -> leafy greens, acidic and moist -> acid-tolerant crops,
    nitrogen-poor neutral soil -> nitrogen-fixing legumes.
    """
    if nitrogen >= 2 and 6 <= ph <= 7 and moisture >= 30:
        return ["Leafy greens (spinach, lettuce)", "Tomatoes", "Beans"]
    if ph < 6.5 and moisture >= 40:
        return ["Blueberries", "Potatoes", "Sweet potatoes"]
    if nitrogen < 2 and ph >= 6.5:
        return ["Legumes (peas, beans)", "Root vegetables"]
    return []


def get_soil_health_messages(evaluation: dict) -> list[tuple[str, str]]:
    """
    Flatten an evaluation into (kind, message) pairs for display,
    alerts first ('warning') then positives ('ok').
    """
    messages = [("warning", a) for a in evaluation["alerts"]]
    messages.extend(("ok", p) for p in evaluation["positives"])
    return messages
