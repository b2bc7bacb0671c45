import asyncio
import logging
from typing import Callable, List, Optional

import httpx

from agro_weather_mcp.advisory import generate_recommendations
from agro_weather_mcp.classifier import derive_alerts, derive_theme
from agro_weather_mcp.config import Config, config
from agro_weather_mcp.errors import WeatherEngineError
from agro_weather_mcp.forecast import reduce_forecast
from agro_weather_mcp.location import Geolocator, LocationResolver, require_api_key
from agro_weather_mcp.models import LocationIntent, WeatherBundle, WeatherStatus
from agro_weather_mcp.weather import WeatherService

logger = logging.getLogger("agro_weather.orchestrator")

Listener = Callable[[WeatherBundle], None]


class WeatherOrchestrator:
    """Runs the weather pipeline for a location and owns its result

    State moves Idle -> Loading -> Ready/Failed and every transition replaces
    the whole bundle. Only one refresh runs at a time: starting a new one
    cancels the refresh still in flight, and a cancelled refresh never writes
    state.
    """

    def __init__(
        self,
        settings: Config = config,
        geolocator: Optional[Geolocator] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings
        self.resolver = LocationResolver(settings, geolocator)
        self.weather_service = WeatherService(settings)
        self._transport = transport
        self._state = WeatherBundle.idle()
        self._last_intent: Optional[LocationIntent] = None
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    @property
    def state(self) -> WeatherBundle:
        return self._state

    @property
    def is_loading(self) -> bool:
        """True while a refresh is in flight; location controls should be disabled"""
        return self._state.status == WeatherStatus.LOADING

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for state transitions, returns an unsubscribe function"""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    async def start(self) -> WeatherBundle:
        """Initial load, trying the device location first"""
        return await self.refresh(LocationIntent.for_geolocation())

    async def search(self, place: str) -> WeatherBundle:
        return await self.refresh(LocationIntent.for_place(place.strip()))

    async def use_current_location(self, geolocator: Optional[Geolocator] = None) -> WeatherBundle:
        if geolocator is not None:
            self.resolver.geolocator = geolocator
        return await self.refresh(LocationIntent.for_geolocation())

    async def retry(self) -> WeatherBundle:
        """Restart the pipeline from the last requested location"""
        return await self.refresh(self._last_intent or LocationIntent.for_geolocation())

    async def refresh(self, intent: LocationIntent) -> WeatherBundle:
        if self._task is not None and not self._task.done():
            logger.info("Cancelling superseded weather refresh")
            self._task.cancel()

        self._last_intent = intent
        self._set_state(WeatherBundle.loading(intent))

        task = asyncio.create_task(self._run(intent))
        self._task = task
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise

        if not task.cancelled() and task.exception() is not None:
            raise task.exception()
        return self._state

    async def _run(self, intent: LocationIntent) -> None:
        try:
            bundle = await self._load(intent)
        except WeatherEngineError as e:
            logger.error(f"Weather refresh failed: {str(e)}")
            bundle = WeatherBundle.failed(intent, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during weather refresh: {str(e)}")
            bundle = WeatherBundle.failed(intent, f"Unexpected error while loading weather: {str(e)}")
        self._set_state(bundle)

    async def _load(self, intent: LocationIntent) -> WeatherBundle:
        require_api_key(self.settings)

        async with self._client() as client:
            coords = await self.resolver.resolve(intent, client)
            current, points, utc_offset = await self.weather_service.fetch(coords, client)

        forecast = reduce_forecast(points, utc_offset)
        bundle = WeatherBundle.ready(
            intent=intent,
            current=current,
            forecast=forecast,
            alerts=derive_alerts(current, forecast),
            theme=derive_theme(current.condition),
            recommendations=generate_recommendations(current, forecast),
        )
        logger.info(f"Weather ready for {current.location_name}, {current.country}")
        return bundle

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.settings.request_timeout,
            transport=self._transport,
            headers={"User-Agent": "Agro_Weather_MCP/1.0"},
        )

    def _set_state(self, bundle: WeatherBundle) -> None:
        self._state = bundle
        for listener in list(self._listeners):
            listener(bundle)
