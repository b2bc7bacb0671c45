import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import httpx

from agro_weather_mcp.config import Config, config
from agro_weather_mcp.errors import CapabilityError, ConfigurationError, NotFoundError, UpstreamError
from agro_weather_mcp.models import Coordinates, IntentKind, LocationIntent

logger = logging.getLogger("agro_weather.location")


def require_api_key(settings: Config) -> str:
    """Return the provider API key or fail before any request is made"""
    if not settings.openweather_api_key:
        logger.error("OPENWEATHER_API_KEY environment variable is missing")
        raise ConfigurationError("OpenWeather API key is not configured. Set OPENWEATHER_API_KEY.")
    return settings.openweather_api_key


async def _geocode(client: httpx.AsyncClient, query: str, limit: int, settings: Config) -> List[Dict[str, Any]]:
    api_key = require_api_key(settings)
    try:
        response = await client.get(
            f"{settings.openweather_geo_url}/direct",
            params={"q": query, "limit": limit, "appid": api_key},
        )
    except httpx.HTTPError as e:
        logger.error(f"Geocoding request for {query} failed: {str(e)}")
        raise UpstreamError(f"Failed to look up location: {str(e)}") from e

    if not response.is_success:
        logger.error(f"Geocoding for {query} returned HTTP {response.status_code}")
        raise UpstreamError(
            f"Failed to look up location (HTTP {response.status_code})", status_code=response.status_code
        )

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"Geocoding for {query} returned invalid JSON")
        raise UpstreamError("Failed to look up location: invalid JSON response") from e


async def get_coordinates(location: str, client: httpx.AsyncClient, settings: Config = config) -> Coordinates:
    """Get coordinates for a place name using the OpenWeather geocoding API"""
    results = await _geocode(client, location, 1, settings)
    if not results:
        raise NotFoundError(f"Location '{location}' not found")

    try:
        place = results[0]
        coords = Coordinates(latitude=float(place["lat"]), longitude=float(place["lon"]))
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Unexpected geocoding payload for {location}: {str(e)}")
        raise UpstreamError(f"Geocoding returned malformed data: {str(e)}") from e

    logger.info(f"Resolved {location} to {coords.latitude:.4f}, {coords.longitude:.4f}")
    return coords


async def search_locations(
    query: str, client: httpx.AsyncClient, settings: Config = config, limit: int = 5
) -> List[Dict[str, Any]]:
    """
    Search for candidate places matching a query

    Args:
        query: Free-text place name
        limit: Maximum number of candidates
    """
    results = []
    try:
        for place in await _geocode(client, query, limit, settings):
            results.append(
                {
                    "name": place.get("name", query),
                    "state": place.get("state"),
                    "country": place.get("country"),
                    "latitude": place["lat"],
                    "longitude": place["lon"],
                }
            )
    except (KeyError, TypeError, AttributeError) as e:
        logger.error(f"Unexpected geocoding payload for {query}: {str(e)}")
        raise UpstreamError(f"Geocoding returned malformed data: {str(e)}") from e
    return results


class Geolocator(Protocol):
    """Device location capability"""

    async def locate(self, max_age: float) -> Coordinates:
        """Return the device position, accepting a cached fix up to max_age seconds old.

        Raises CapabilityError when the position is denied or unavailable.
        """
        ...


class FixedGeolocator:
    """Geolocator that reports a fix supplied by the client"""

    def __init__(self, coordinates: Optional[Coordinates]):
        self._coordinates = coordinates

    async def locate(self, max_age: float) -> Coordinates:
        if self._coordinates is None:
            raise CapabilityError("No device position supplied")
        return self._coordinates


class LocationResolver:
    """Turns a location intent into coordinates"""

    def __init__(self, settings: Config = config, geolocator: Optional[Geolocator] = None):
        self.settings = settings
        self.geolocator = geolocator

    async def resolve(self, intent: LocationIntent, client: httpx.AsyncClient) -> Coordinates:
        if intent.kind == IntentKind.PLACE:
            return await get_coordinates(intent.place, client, self.settings)

        try:
            return await self._locate_device()
        except CapabilityError as e:
            logger.warning(f"Geolocation unavailable ({str(e)}), using {self.settings.default_location}")
            return await get_coordinates(self.settings.default_location, client, self.settings)

    async def _locate_device(self) -> Coordinates:
        if self.geolocator is None:
            raise CapabilityError("Geolocation is not supported")
        try:
            coords = await asyncio.wait_for(
                self.geolocator.locate(self.settings.geolocation_max_age),
                timeout=self.settings.geolocation_timeout,
            )
        except asyncio.TimeoutError as e:
            raise CapabilityError(f"Geolocation timed out after {self.settings.geolocation_timeout:g}s") from e
        logger.info(f"Device located at {coords.latitude:.4f}, {coords.longitude:.4f}")
        return coords
