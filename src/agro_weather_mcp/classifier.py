import logging
from datetime import datetime, timedelta
from typing import List, Optional

from agro_weather_mcp.models import Alert, CurrentConditions, ForecastDay, Severity, Theme

logger = logging.getLogger("agro_weather.classifier")

HEAT_WAVE_TEMPERATURE = 35
HEAVY_RAIN_PROBABILITY = 70
ALERT_VALIDITY = timedelta(hours=24)

# Checked in order, first match wins
THEME_KEYWORDS = [
    ("clear", Theme.SUNNY),
    ("sun", Theme.SUNNY),
    ("rain", Theme.RAINY),
    ("cloud", Theme.CLOUDY),
]

UV_LEVELS = [
    (2, "Low"),
    (5, "Moderate"),
    (7, "High"),
    (10, "Very High"),
]


def derive_theme(condition: str) -> Theme:
    """Map a provider condition label onto a presentation theme"""
    label = condition.lower()
    for keyword, theme in THEME_KEYWORDS:
        if keyword in label:
            return theme
    return Theme.DEFAULT


def derive_alerts(
    current: CurrentConditions, forecast: List[ForecastDay], now: Optional[datetime] = None
) -> List[Alert]:
    """Derive at most one alert, heat taking priority over rain"""
    now = now or datetime.now().astimezone()
    ends_at = now + ALERT_VALIDITY
    stamp = int(now.timestamp())

    if current.temperature > HEAT_WAVE_TEMPERATURE:
        logger.info(f"Heat wave alert for {current.location_name}: {current.temperature}°C")
        return [
            Alert(
                id=f"heat-wave-{stamp}",
                title="Heat Wave Warning",
                description=(
                    f"Temperature has reached {current.temperature}°C. "
                    "Avoid outdoor work during peak hours and keep crops and livestock watered."
                ),
                severity=Severity.SEVERE,
                starts_at=now,
                ends_at=ends_at,
                event="Heat Wave",
            )
        ]

    if forecast and forecast[0].precipitation > HEAVY_RAIN_PROBABILITY:
        logger.info(f"Heavy rain alert for {current.location_name}: {forecast[0].precipitation}%")
        return [
            Alert(
                id=f"heavy-rain-{stamp}",
                title="Heavy Rain Expected",
                description=(
                    f"{forecast[0].precipitation}% chance of rain. "
                    "Arrange field drainage and postpone spraying and harvesting."
                ),
                severity=Severity.MODERATE,
                starts_at=now,
                ends_at=ends_at,
                event="Heavy Rain",
            )
        ]

    return []


def uv_level(index: float) -> str:
    """Describe a UV index as Low, Moderate, High, Very High or Extreme"""
    for upper, level in UV_LEVELS:
        if index <= upper:
            return level
    return "Extreme"
