"""
Plant requirement profiles and product catalogue.

Each plant has inclusive optimal ranges for nitrogen, pH and moisture, the
remedial products suggested when a parameter is out of range, and a standing
catalogue of fertilizers and pesticides commonly used for the crop.

Format per plant:
    {
        "label":      display name,
        "nitrogen":   (min, max),
        "ph":         (min, max),
        "moisture":   (min, max),
        "remedies":   {"nitrogen_low", "ph_low", "ph_high", "moisture_low",
                       "fungicide"}: list of products,
        "fertilizers": catalogue list,
        "pesticides":  catalogue list,
    }

Ranges are indicative (extension-service style guidance), not lab thresholds.
Nitrogen is in the same units the form records (mg/kg scale used by the app).
"""

# Fallback for unknown / missing plant types
DEFAULT_PLANT_KEY = "default"
DEFAULT_RANGES: dict[str, tuple[float, float]] = {
    "nitrogen": (2.0, 4.0),
    "ph":       (6.0, 7.0),
    "moisture": (60.0, 80.0),
}

# Generic remedies when the plant has no specific entry
GENERIC_REMEDIES: dict[str, list[str]] = {
    "nitrogen_low": ["Nitrogen fertilizer"],
    "ph_low":       ["Agricultural lime / organic matter"],
    "ph_high":      ["Elemental sulfur"],
    "moisture_low": ["Irrigation increase"],
    "fungicide":    ["Broad-spectrum fungicide"],
}
DRAINAGE_SUGGESTION = "Drainage improvement (raised beds / channels)"

# ──────────────────────────────────────────────────────────────────────────────
# Plant profiles: {plant_key: profile}
# ──────────────────────────────────────────────────────────────────────────────
PLANT_PROFILES: dict[str, dict] = {
    "tomato": {
        "label": "Tomato",
        "nitrogen": (2.0, 4.0),
        "ph": (6.0, 6.8),
        "moisture": (60.0, 80.0),
        "remedies": {
            "nitrogen_low": ["Calcium nitrate (15.5-0-0)", "Composted manure"],
            "ph_low": ["Dolomitic lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Drip irrigation", "Straw mulch"],
            "fungicide": ["Copper oxychloride"],
        },
        "fertilizers": ["NPK 19-19-19", "Potassium nitrate", "Calcium nitrate (15.5-0-0)"],
        "pesticides": ["Neem oil", "Mancozeb", "Imidacloprid"],
    },
    "corn": {
        "label": "Corn",
        "nitrogen": (2.5, 4.5),
        "ph": (5.8, 7.0),
        "moisture": (60.0, 80.0),
        "remedies": {
            "nitrogen_low": ["Urea (46-0-0)", "Ammonium sulfate"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Furrow irrigation"],
            "fungicide": ["Propiconazole"],
        },
        "fertilizers": ["DAP (18-46-0)", "Muriate of potash", "Zinc sulfate"],
        "pesticides": ["Emamectin benzoate", "Spinetoram", "Atrazine (pre-emergence)"],
    },
    "wheat": {
        "label": "Wheat",
        "nitrogen": (2.0, 3.5),
        "ph": (6.0, 7.5),
        "moisture": (50.0, 70.0),
        "remedies": {
            "nitrogen_low": ["Urea (46-0-0)"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Gypsum", "Elemental sulfur"],
            "moisture_low": ["Crown-root irrigation"],
            "fungicide": ["Propiconazole"],
        },
        "fertilizers": ["DAP (18-46-0)", "Muriate of potash", "Zinc sulfate"],
        "pesticides": ["Chlorpyrifos", "Tebuconazole", "2,4-D (weed control)"],
    },
    "potato": {
        "label": "Potato",
        "nitrogen": (2.0, 3.5),
        "ph": (5.0, 6.0),
        "moisture": (65.0, 80.0),
        "remedies": {
            "nitrogen_low": ["Ammonium sulfate", "Composted manure"],
            "ph_low": ["Dolomitic lime"],
            "ph_high": ["Elemental sulfur", "Ammonium sulfate"],
            "moisture_low": ["Sprinkler irrigation"],
            "fungicide": ["Mancozeb", "Metalaxyl"],
        },
        "fertilizers": ["NPK 10-26-26", "Potassium sulfate", "Single superphosphate"],
        "pesticides": ["Mancozeb", "Chlorothalonil", "Thiamethoxam"],
    },
    "carrot": {
        "label": "Carrot",
        "nitrogen": (1.5, 3.0),
        "ph": (6.0, 6.8),
        "moisture": (55.0, 75.0),
        "remedies": {
            "nitrogen_low": ["Composted manure", "Calcium ammonium nitrate"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Light frequent watering"],
            "fungicide": ["Azoxystrobin"],
        },
        "fertilizers": ["NPK 5-10-10", "Potassium sulfate", "Bone meal"],
        "pesticides": ["Neem oil", "Spinosad", "Azoxystrobin"],
    },
    "lettuce": {
        "label": "Lettuce",
        "nitrogen": (2.5, 4.5),
        "ph": (6.0, 7.0),
        "moisture": (65.0, 85.0),
        "remedies": {
            "nitrogen_low": ["Calcium nitrate (15.5-0-0)", "Fish emulsion"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Drip irrigation", "Shade netting"],
            "fungicide": ["Copper hydroxide"],
        },
        "fertilizers": ["NPK 20-10-10", "Blood meal", "Seaweed extract"],
        "pesticides": ["Neem oil", "Insecticidal soap", "Bacillus thuringiensis"],
    },
    "beans": {
        "label": "Beans",
        "nitrogen": (1.0, 2.5),
        "ph": (6.0, 7.0),
        "moisture": (50.0, 70.0),
        "remedies": {
            "nitrogen_low": ["Rhizobium inoculant", "Composted manure"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Furrow irrigation at flowering"],
            "fungicide": ["Carbendazim"],
        },
        "fertilizers": ["Single superphosphate", "Muriate of potash", "Molybdenum micronutrient"],
        "pesticides": ["Neem oil", "Lambda-cyhalothrin", "Carbendazim"],
    },
    "rice": {
        "label": "Rice",
        "nitrogen": (2.0, 4.0),
        "ph": (5.5, 6.5),
        "moisture": (80.0, 100.0),
        "remedies": {
            "nitrogen_low": ["Urea (46-0-0)", "Ammonium sulfate"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Gypsum", "Elemental sulfur"],
            "moisture_low": ["Flood irrigation (maintain 5 cm standing water)"],
            "fungicide": ["Tricyclazole"],
        },
        "fertilizers": ["DAP (18-46-0)", "Muriate of potash", "Zinc sulfate"],
        "pesticides": ["Tricyclazole", "Buprofezin", "Cartap hydrochloride"],
    },
    "soybean": {
        "label": "Soybean",
        "nitrogen": (1.0, 2.5),
        "ph": (6.0, 7.0),
        "moisture": (50.0, 75.0),
        "remedies": {
            "nitrogen_low": ["Bradyrhizobium inoculant"],
            "ph_low": ["Agricultural lime"],
            "ph_high": ["Elemental sulfur"],
            "moisture_low": ["Sprinkler irrigation at pod fill"],
            "fungicide": ["Hexaconazole"],
        },
        "fertilizers": ["Single superphosphate", "Muriate of potash", "Sulfur 90% WDG"],
        "pesticides": ["Chlorantraniliprole", "Thiamethoxam", "Imazethapyr (weed control)"],
    },
}

PLANT_TYPES: list[str] = sorted(PLANT_PROFILES.keys())


def normalise_plant(plant_type: str | None) -> str:
    """Lower-case, stripped plant key ('' when missing)."""
    return (plant_type or "").strip().lower()


def get_profile(plant_type: str | None) -> dict | None:
    """Return the plant profile, or None for unknown / missing plant types."""
    return PLANT_PROFILES.get(normalise_plant(plant_type))


def get_ranges(plant_type: str | None) -> dict[str, tuple[float, float]]:
    """
    Return {parameter: (min, max)} for a plant type.
    Unknown plants fall back to DEFAULT_RANGES.
    """
    profile = get_profile(plant_type)
    if profile is None:
        return dict(DEFAULT_RANGES)
    return {p: profile[p] for p in DEFAULT_RANGES}


def get_remedies(plant_type: str | None, key: str) -> list[str]:
    """Plant-specific remedial products for a rule key, else the generic list."""
    profile = get_profile(plant_type)
    if profile is not None and profile["remedies"].get(key):
        return list(profile["remedies"][key])
    return list(GENERIC_REMEDIES.get(key, []))


def get_catalogue(plant_type: str | None) -> tuple[list[str], list[str]]:
    """(fertilizers, pesticides) catalogue for a plant; empty for unknown plants."""
    profile = get_profile(plant_type)
    if profile is None:
        return [], []
    return list(profile["fertilizers"]), list(profile["pesticides"])


def plant_label(plant_type: str | None) -> str:
    profile = get_profile(plant_type)
    return profile["label"] if profile else "most crops"
