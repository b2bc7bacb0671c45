from typing import Optional


class WeatherEngineError(Exception):
    """Base class for failures the orchestrator reports to the user"""


class ConfigurationError(WeatherEngineError):
    """Required configuration (the provider API key) is missing"""


class NotFoundError(WeatherEngineError):
    """Geocoding returned no match for a place name"""


class UpstreamError(WeatherEngineError):
    """The weather provider failed or answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CapabilityError(WeatherEngineError):
    """Device geolocation is denied or unavailable"""
