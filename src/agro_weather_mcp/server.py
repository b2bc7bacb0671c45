import logging
from pathlib import Path
from typing import Any, Dict, List

import httpx
from dotenv import load_dotenv
from mcp.server.fastmcp import Context, FastMCP

from agro_weather_mcp.config import config
from agro_weather_mcp.location import FixedGeolocator, search_locations
from agro_weather_mcp.models import Coordinates
from agro_weather_mcp.orchestrator import WeatherOrchestrator

load_dotenv()

# Set up logging
log_dir = Path("logs")
log_dir.mkdir(exist_ok=True)
log_file = log_dir / "agro_weather.log"

logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.FileHandler(log_file),
        logging.StreamHandler(),
    ],
)

logger = logging.getLogger("agro_weather")


mcp = FastMCP(
    "Agro Weather",
    instructions="Weather conditions, 5-day forecast, alerts and agricultural recommendations for a location",
    dependencies=["httpx", "pydantic", "pydantic-settings", "python-dotenv"],
    log_level=config.log_level.upper(),
    port=config.port,
)

# Single state container shared by all tools
orchestrator = WeatherOrchestrator()


# Tools
@mcp.tool()
async def get_weather(location: str, ctx: Context) -> Dict[str, Any]:
    """
    Get current conditions, forecast, alerts and farming recommendations for a place

    Args:
        location: City or place name, e.g. "Ludhiana, Punjab"
    """
    logger.info(f"Starting weather request for {location}")
    await ctx.info(f"Looking up weather for {location}")
    bundle = await orchestrator.search(location)
    if bundle.error:
        await ctx.error(bundle.error)
    return bundle.model_dump(mode="json")


@mcp.tool()
async def get_weather_at(latitude: float, longitude: float, ctx: Context) -> Dict[str, Any]:
    """
    Get the weather bundle for a device position

    Falls back to the default location when no valid position is given.

    Args:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
    """
    try:
        coords = Coordinates(latitude=latitude, longitude=longitude)
    except ValueError:
        logger.warning(f"Ignoring invalid device position {latitude}, {longitude}")
        coords = None

    bundle = await orchestrator.use_current_location(FixedGeolocator(coords))
    if bundle.error:
        await ctx.error(bundle.error)
    return bundle.model_dump(mode="json")


@mcp.tool()
async def retry_weather(ctx: Context) -> Dict[str, Any]:
    """Retry the last weather request after a failure"""
    bundle = await orchestrator.retry()
    if bundle.error:
        await ctx.error(bundle.error)
    return bundle.model_dump(mode="json")


@mcp.tool()
def get_weather_state() -> Dict[str, Any]:
    """Return the most recent weather bundle without fetching"""
    return orchestrator.state.model_dump(mode="json")


@mcp.tool()
async def search_location(query: str, ctx: Context) -> List[Dict[str, Any]]:
    """
    Search for locations matching a name

    Args:
        query: Search term for location
    """
    async with httpx.AsyncClient(timeout=config.request_timeout) as client:
        return await search_locations(query, client, config)


# Prompts
@mcp.prompt()
def agricultural_briefing(bundle: Dict[str, Any]) -> str:
    """Turn a weather bundle into a farmer-facing briefing"""
    current = bundle.get("current") or {}
    if bundle.get("status") != "ready" or not current:
        return f"Weather data is unavailable: {bundle.get('error') or 'no data loaded yet'}."

    forecast_lines = "\n".join(
        f"        - {day['label']}: {day['condition']}, {day['low']}-{day['high']}°C, "
        f"{day['precipitation']}% rain"
        for day in bundle.get("forecast") or []
    )
    alert_lines = "\n".join(
        f"        - [{alert['severity']}] {alert['title']}: {alert['description']}"
        for alert in bundle.get("alerts") or []
    ) or "        - None"
    advice_lines = "\n".join(
        f"        - {rec['title']}: {rec['message']}" for rec in bundle.get("recommendations") or []
    )

    return f"""Please write a short weather briefing for a farmer that covers:
        1. Current conditions in plain language
        2. The outlook for the coming days
        3. Any active alerts and what to do about them
        4. The agricultural recommendations below, prioritized

        Location: {current.get("location_name")}, {current.get("country")}

        Current conditions:
        - Condition: {current.get("condition")} ({current.get("description")})
        - Temperature: {current.get("temperature")}°C (feels like {current.get("feels_like")}°C)
        - Humidity: {current.get("humidity")}%
        - Wind Speed: {current.get("wind_speed")} km/h
        - Pressure: {current.get("pressure")} hPa
        - Visibility: {current.get("visibility")} km
        - Cloud cover: {current.get("cloud_cover")}%

        Forecast:
{forecast_lines}

        Alerts:
{alert_lines}

        Recommendations:
{advice_lines}
        """


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    # For running directly
    main()
