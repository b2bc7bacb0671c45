import httpx
import pytest
from conftest import BASE_DT, current_payload, forecast_item, forecast_payload

from agro_weather_mcp.errors import ConfigurationError, UpstreamError
from agro_weather_mcp.models import Coordinates
from agro_weather_mcp.weather import WeatherService, parse_current, parse_forecast, round_half_up

DELHI = Coordinates(latitude=28.6139, longitude=77.209)


def test_parse_current_conversions():
    current = parse_current(current_payload())

    assert current.temperature == 28
    assert current.feels_like == 31
    assert current.wind_speed == 12  # 3.2 m/s
    assert current.visibility == 6
    assert current.humidity == 65
    assert current.pressure == 1008
    assert current.cloud_cover == 40
    assert current.condition == "Clouds"
    assert current.location_name == "New Delhi"
    assert current.country == "IN"
    assert current.coordinates == DELHI
    assert current.sunrise.timestamp() == 1717199400


def test_parse_current_defaults_visibility_to_10km():
    payload = current_payload()
    del payload["visibility"]
    assert parse_current(payload).visibility == 10


def test_parse_forecast_missing_pop_defaults_to_zero():
    points, utc_offset = parse_forecast(
        forecast_payload([forecast_item(BASE_DT, 31, 22, pop=None)], utc_offset=19800)
    )
    assert points[0].precipitation_probability == 0
    assert points[0].timestamp.timestamp() == BASE_DT
    assert utc_offset == 19800


@pytest.mark.asyncio
async def test_fetch_requests_metric_units(provider, settings):
    service = WeatherService(settings)
    async with provider.client() as client:
        current, points, _ = await service.fetch(DELHI, client)

    assert current.location_name == "New Delhi"
    assert len(points) == 48
    assert provider.paths() == ["weather", "forecast"]
    for request in provider.requests:
        assert request.url.params["units"] == "metric"
        assert request.url.params["appid"] == "test-key"
        assert request.url.params["lat"] == "28.6139"


@pytest.mark.asyncio
async def test_fetch_current_failure(provider, settings):
    provider.status["weather"] = 401
    async with provider.client() as client:
        with pytest.raises(UpstreamError, match="Failed to fetch current weather") as exc_info:
            await WeatherService(settings).fetch(DELHI, client)
    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_fetch_forecast_failure(provider, settings):
    provider.status["forecast"] = 503
    async with provider.client() as client:
        with pytest.raises(UpstreamError, match="Failed to fetch weather forecast"):
            await WeatherService(settings).fetch(DELHI, client)


@pytest.mark.asyncio
async def test_fetch_malformed_payload(provider, settings):
    provider.current = {"name": "Nowhere"}
    async with provider.client() as client:
        with pytest.raises(UpstreamError, match="malformed"):
            await WeatherService(settings).fetch(DELHI, client)


@pytest.mark.asyncio
async def test_fetch_transport_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UpstreamError, match="Failed to fetch current weather"):
            await WeatherService(settings).fetch(DELHI, client)


@pytest.mark.asyncio
async def test_fetch_without_api_key_makes_no_request(provider, settings_without_key):
    async with provider.client() as client:
        with pytest.raises(ConfigurationError):
            await WeatherService(settings_without_key).fetch(DELHI, client)
    assert provider.requests == []


def test_parse_current_rounds_halves_up():
    payload = current_payload(main={"temp": 28.5, "feels_like": 31.5, "humidity": 65, "pressure": 1008})
    current = parse_current(payload)
    assert current.temperature == 29
    assert current.feels_like == 32


@pytest.mark.parametrize("value,expected", [(50.5, 51), (50.49, 50), (0.5, 1), (-2.5, -2), (12.0, 12)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
