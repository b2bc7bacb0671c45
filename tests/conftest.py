from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest

from agro_weather_mcp.config import Config
from agro_weather_mcp.models import Coordinates, CurrentConditions, ForecastDay

# 2024-06-01 00:00 UTC
BASE_DT = 1717200000


def current_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "coord": {"lat": 28.6139, "lon": 77.209},
        "weather": [{"main": "Clouds", "description": "scattered clouds", "icon": "03d"}],
        "main": {"temp": 28.4, "feels_like": 30.6, "humidity": 65, "pressure": 1008},
        "visibility": 6000,
        "wind": {"speed": 3.2},
        "clouds": {"all": 40},
        "sys": {"country": "IN", "sunrise": 1717199400, "sunset": 1717249800},
        "name": "New Delhi",
    }
    payload.update(overrides)
    return payload


def forecast_item(
    dt: int, temp_max: float, temp_min: float, main: str = "Clear", pop: Optional[float] = 0.1, wind: float = 2.5
) -> Dict[str, Any]:
    item = {
        "dt": dt,
        "main": {"temp_max": temp_max, "temp_min": temp_min},
        "weather": [{"main": main, "description": f"{main.lower()} sky", "icon": "01d"}],
        "wind": {"speed": wind},
    }
    if pop is not None:
        item["pop"] = pop
    return item


def forecast_payload(items: Optional[List[Dict[str, Any]]] = None, utc_offset: int = 0) -> Dict[str, Any]:
    if items is None:
        # 3-hourly points over six days
        items = [forecast_item(BASE_DT + i * 10800, 30 + i % 8, 20 + i % 8) for i in range(48)]
    return {"list": items, "city": {"name": "New Delhi", "timezone": utc_offset}}


class ProviderStub:
    """Fake OpenWeather endpoints served through httpx.MockTransport"""

    def __init__(self):
        self.geocode: Any = [{"name": "New Delhi", "country": "IN", "lat": 28.6139, "lon": 77.209}]
        self.current: Any = current_payload()
        self.forecast: Any = forecast_payload()
        self.status = {"direct": 200, "weather": 200, "forecast": 200}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        endpoint = request.url.path.rsplit("/", 1)[-1]
        body = {"direct": self.geocode, "weather": self.current, "forecast": self.forecast}[endpoint]
        status = self.status[endpoint]
        if status != 200:
            return httpx.Response(status, json={"cod": status, "message": "error"})
        return httpx.Response(200, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    def paths(self) -> List[str]:
        return [request.url.path.rsplit("/", 1)[-1] for request in self.requests]


@pytest.fixture
def settings() -> Config:
    return Config(_env_file=None, openweather_api_key="test-key")


@pytest.fixture
def settings_without_key() -> Config:
    return Config(_env_file=None, openweather_api_key=None)


@pytest.fixture
def provider() -> ProviderStub:
    return ProviderStub()


def make_current(**overrides) -> CurrentConditions:
    values = {
        "temperature": 28,
        "feels_like": 30,
        "humidity": 60,
        "wind_speed": 12,
        "condition": "Clouds",
        "description": "scattered clouds",
        "pressure": 1010,
        "visibility": 10,
        "cloud_cover": 50,
        "sunrise": datetime(2024, 6, 1, 0, 30, tzinfo=timezone.utc),
        "sunset": datetime(2024, 6, 1, 13, 30, tzinfo=timezone.utc),
        "location_name": "Ludhiana",
        "country": "IN",
        "coordinates": Coordinates(latitude=30.901, longitude=75.8573),
    }
    values.update(overrides)
    return CurrentConditions(**values)


def make_day(precipitation: int = 10, **overrides) -> ForecastDay:
    values = {
        "date": datetime(2024, 6, 1).date(),
        "label": "Today",
        "high": 32,
        "low": 24,
        "condition": "Clear",
        "description": "clear sky",
        "precipitation": precipitation,
        "wind_speed": 9,
    }
    values.update(overrides)
    return ForecastDay(**values)
