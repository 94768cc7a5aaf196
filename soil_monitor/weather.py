"""
Open-Meteo weather lookup for the weather widget
================================================
Source: https://open-meteo.com (free, no API key)
  Geocoding : GET https://geocoding-api.open-meteo.com/v1/search?name=<place>
  Current   : GET https://api.open-meteo.com/v1/forecast?latitude=..&longitude=..&current=..

Usage (from project root):
    python -m soil_monitor.weather "Coimbatore"

Or call from code:
    from soil_monitor.weather import fetch_weather, farming_tips
    weather = fetch_weather("Coimbatore")
    tips = farming_tips(weather)

The last successful lookup is meant to be stored in the local cache by the
caller so the widget still shows something when offline.
"""

import argparse
import logging

import requests

from soil_monitor.config import FORECAST_URL, GEOCODING_URL, REQUEST_TIMEOUT
from soil_monitor.exceptions import WeatherError

log = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,relative_humidity_2m,weather_code"

# WMO weather interpretation codes -> short description
_WMO_DESCRIPTIONS = [
    ((0,), "Sunny"),
    ((1, 2), "Partly Cloudy"),
    ((3,), "Cloudy"),
    ((45, 48), "Fog"),
    ((51, 53, 55, 56, 57), "Drizzle"),
    ((61, 63, 65, 66, 67), "Rain"),
    ((71, 73, 75, 77), "Snow"),
    ((80, 81, 82), "Rain Showers"),
    ((85, 86), "Snow Showers"),
    ((95, 96, 99), "Thunderstorm with Rain"),
]


def describe_weather_code(code: int | None) -> str:
    for codes, description in _WMO_DESCRIPTIONS:
        if code in codes:
            return description
    return "Unknown"


def _make_request(url: str, params: dict) -> dict:
    """One GET request; network and HTTP failures become WeatherError."""
    try:
        resp = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
        resp.raise_for_status()
        return resp.json()
    except requests.ConnectionError as exc:
        raise WeatherError("Internet connection required for weather data") from exc
    except requests.RequestException as exc:
        raise WeatherError(f"Failed to fetch weather data: {exc}") from exc
    except ValueError as exc:
        raise WeatherError("Weather service returned an invalid response") from exc


def geocode(place: str) -> dict:
    """Resolve a place name to {name, country, latitude, longitude}."""
    query = (place or "").strip()
    if not query:
        raise WeatherError("Enter a city or area name")
    data = _make_request(GEOCODING_URL, {"name": query, "count": 1, "format": "json"})
    results = data.get("results") or []
    if not results:
        raise WeatherError(f"No location found for '{query}'")
    top = results[0]
    return {
        "name": top.get("name", query),
        "country": top.get("country"),
        "latitude": float(top["latitude"]),
        "longitude": float(top["longitude"]),
    }


def fetch_current(latitude: float, longitude: float) -> dict:
    """Current temperature (°C), relative humidity (%) and description for a coordinate."""
    data = _make_request(FORECAST_URL, {
        "latitude": latitude,
        "longitude": longitude,
        "current": CURRENT_FIELDS,
    })
    current = data.get("current") or {}
    if "temperature_2m" not in current:
        raise WeatherError("Weather service returned no current conditions")
    code = current.get("weather_code")
    return {
        "temperature": round(float(current["temperature_2m"])),
        "humidity": round(float(current.get("relative_humidity_2m", 0))),
        "description": describe_weather_code(code),
        "weather_code": code,
    }


def fetch_weather(place: str) -> dict:
    """
    Look up current weather for a place name.

    Returns
    -------
    dict with keys: location, temperature, humidity, description, weather_code
    """
    where = geocode(place)
    weather = fetch_current(where["latitude"], where["longitude"])
    label = where["name"] if not where.get("country") else f"{where['name']}, {where['country']}"
    weather["location"] = label
    log.info("Weather for %s: %s°C, %s%%, %s",
             label, weather["temperature"], weather["humidity"], weather["description"])
    return weather


def farming_tips(weather: dict) -> list[str]:
    """Short field-work hints for the current conditions."""
    tips = []
    description = str(weather.get("description", "")).lower()
    if weather.get("temperature", 0) > 30:
        tips.append("High temperature - ensure adequate watering")
    if weather.get("humidity", 0) > 70:
        tips.append("High humidity - watch for fungal diseases")
    if "rain" in description:
        tips.append("Rainy conditions - delay fertilizer application")
    if "sunny" in description:
        tips.append("Good conditions for harvesting and fieldwork")
    return tips


# ---------------------------------------------------------------------------
# CLI entrypoint: python -m soil_monitor.weather PLACE
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")

    parser = argparse.ArgumentParser(description="Show current weather and farming tips for a place.")
    parser.add_argument("place", help="City or area name")
    args = parser.parse_args()

    result = fetch_weather(args.place)
    print(f"{result['location']}: {result['temperature']}°C, "
          f"{result['humidity']}% humidity, {result['description']}")
    for tip in farming_tips(result):
        print(f"  • {tip}")
