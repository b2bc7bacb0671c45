import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

import httpx
from pydantic import ValidationError

from agro_weather_mcp.config import Config, config
from agro_weather_mcp.errors import UpstreamError
from agro_weather_mcp.location import require_api_key
from agro_weather_mcp.models import Coordinates, CurrentConditions, ForecastPoint

logger = logging.getLogger("agro_weather.weather")

# OpenWeather reports wind in m/s with metric units
MS_TO_KMH = 3.6
DEFAULT_VISIBILITY_M = 10000


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up, so 50.5 becomes 51"""
    return math.floor(value + 0.5)


def _timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(int(value), tz=timezone.utc)


def parse_current(payload: Dict[str, Any]) -> CurrentConditions:
    """Map a /weather response onto CurrentConditions"""
    main = payload["main"]
    weather = payload["weather"][0]
    sys = payload["sys"]
    coord = payload["coord"]

    return CurrentConditions(
        temperature=round_half_up(main["temp"]),
        feels_like=round_half_up(main["feels_like"]),
        humidity=main["humidity"],
        wind_speed=round_half_up(payload["wind"]["speed"] * MS_TO_KMH),
        condition=weather["main"],
        description=weather["description"],
        pressure=main["pressure"],
        visibility=round_half_up(payload.get("visibility", DEFAULT_VISIBILITY_M) / 1000),
        cloud_cover=payload["clouds"]["all"],
        sunrise=_timestamp(sys["sunrise"]),
        sunset=_timestamp(sys["sunset"]),
        location_name=payload["name"],
        country=sys.get("country", ""),
        coordinates=Coordinates(latitude=coord["lat"], longitude=coord["lon"]),
    )


def parse_forecast(payload: Dict[str, Any]) -> Tuple[List[ForecastPoint], int]:
    """Map a /forecast response onto forecast points and the city UTC offset in seconds"""
    points = []
    for item in payload["list"]:
        weather = item["weather"][0]
        points.append(
            ForecastPoint(
                timestamp=_timestamp(item["dt"]),
                temp_max=item["main"]["temp_max"],
                temp_min=item["main"]["temp_min"],
                condition=weather["main"],
                description=weather["description"],
                icon=weather.get("icon"),
                precipitation_probability=item.get("pop") or 0,
                wind_speed=item["wind"]["speed"],
            )
        )
    utc_offset = (payload.get("city") or {}).get("timezone", 0)
    return points, utc_offset


class WeatherService:
    """Service for fetching current conditions and forecasts from OpenWeather"""

    def __init__(self, settings: Config = config):
        self.settings = settings

    async def fetch(
        self, coords: Coordinates, client: httpx.AsyncClient
    ) -> Tuple[CurrentConditions, List[ForecastPoint], int]:
        """Fetch current conditions and forecast; both must succeed"""
        api_key = require_api_key(self.settings)
        params = {
            "lat": coords.latitude,
            "lon": coords.longitude,
            "appid": api_key,
            "units": "metric",
        }

        current_payload = await self._get(client, "weather", params, "Failed to fetch current weather")
        forecast_payload = await self._get(client, "forecast", params, "Failed to fetch weather forecast")

        try:
            current = parse_current(current_payload)
            points, utc_offset = parse_forecast(forecast_payload)
        except (KeyError, IndexError, TypeError, ValidationError) as e:
            logger.error(f"Unexpected provider payload: {str(e)}")
            raise UpstreamError(f"Weather provider returned malformed data: {str(e)}") from e

        logger.info(f"Fetched weather for {current.location_name}: {len(points)} forecast points")
        return current, points, utc_offset

    async def _get(
        self, client: httpx.AsyncClient, endpoint: str, params: Dict[str, Any], failure: str
    ) -> Dict[str, Any]:
        url = f"{self.settings.openweather_base_url}/{endpoint}"
        logger.debug(f"Requesting {url} for {params['lat']}, {params['lon']}")
        try:
            response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"{failure}: {str(e)}")
            raise UpstreamError(f"{failure}: {str(e)}") from e

        if not response.is_success:
            logger.error(f"{failure}: HTTP {response.status_code}")
            raise UpstreamError(f"{failure} (HTTP {response.status_code})", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"{failure}: invalid JSON response") from e
