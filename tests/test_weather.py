"""
Weather lookup (network mocked) and farming tips.
Run from project root: python -m pytest tests/test_weather.py -v
"""

import sys
from pathlib import Path

import pytest
import requests

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from soil_monitor import weather
from soil_monitor.config import FORECAST_URL, GEOCODING_URL
from soil_monitor.exceptions import WeatherError


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        return self.payload


def _fake_get(responses):
    calls = []

    def fake_get(url, params=None, timeout=None):
        calls.append((url, params))
        return responses[url]

    return fake_get, calls


def test_fetch_weather_combines_geocoding_and_forecast(monkeypatch):
    fake_get, calls = _fake_get({
        GEOCODING_URL: FakeResponse({"results": [
            {"name": "Coimbatore", "country": "India", "latitude": 11.0, "longitude": 76.96},
        ]}),
        FORECAST_URL: FakeResponse({"current": {
            "temperature_2m": 31.6, "relative_humidity_2m": 74, "weather_code": 63,
        }}),
    })
    monkeypatch.setattr(weather.requests, "get", fake_get)

    result = weather.fetch_weather("Coimbatore")
    assert result == {
        "location": "Coimbatore, India",
        "temperature": 32,
        "humidity": 74,
        "description": "Rain",
        "weather_code": 63,
    }
    assert calls[1][1]["latitude"] == 11.0


def test_unknown_place_raises(monkeypatch):
    fake_get, _ = _fake_get({GEOCODING_URL: FakeResponse({})})
    monkeypatch.setattr(weather.requests, "get", fake_get)
    with pytest.raises(WeatherError, match="No location found"):
        weather.fetch_weather("Nowhere")


def test_http_error_raises_weather_error(monkeypatch):
    fake_get, _ = _fake_get({GEOCODING_URL: FakeResponse({}, status=503)})
    monkeypatch.setattr(weather.requests, "get", fake_get)
    with pytest.raises(WeatherError):
        weather.fetch_weather("Pune")


def test_offline_raises_weather_error(monkeypatch):
    def offline(*args, **kwargs):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr(weather.requests, "get", offline)
    with pytest.raises(WeatherError, match="Internet connection"):
        weather.fetch_weather("Pune")


def test_blank_place_is_rejected_without_request():
    with pytest.raises(WeatherError):
        weather.geocode("   ")


def test_describe_weather_code():
    assert weather.describe_weather_code(0) == "Sunny"
    assert weather.describe_weather_code(81) == "Rain Showers"
    assert weather.describe_weather_code(None) == "Unknown"


def test_farming_tips():
    hot_wet = {"temperature": 33, "humidity": 80, "description": "Rain Showers"}
    assert weather.farming_tips(hot_wet) == [
        "High temperature - ensure adequate watering",
        "High humidity - watch for fungal diseases",
        "Rainy conditions - delay fertilizer application",
    ]
    sunny = {"temperature": 25, "humidity": 40, "description": "Sunny"}
    assert weather.farming_tips(sunny) == ["Good conditions for harvesting and fieldwork"]
    assert weather.farming_tips({"temperature": 30, "humidity": 70, "description": "Cloudy"}) == []


if __name__ == "__main__":
    import subprocess
    sys.exit(subprocess.call([sys.executable, "-m", "pytest", __file__, "-v", "-s"]))
