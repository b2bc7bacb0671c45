import logging
from datetime import date, timedelta, timezone
from typing import Dict, List

from agro_weather_mcp.models import ForecastDay, ForecastPoint
from agro_weather_mcp.weather import MS_TO_KMH, round_half_up

logger = logging.getLogger("agro_weather.forecast")

MAX_FORECAST_DAYS = 5


def day_label(day: date, first_day: date) -> str:
    """Label a forecast day relative to the first day of the forecast"""
    offset = (day - first_day).days
    if offset == 0:
        return "Today"
    if offset == 1:
        return "Tomorrow"
    return day.strftime("%a, %b %d")


def reduce_forecast(
    points: List[ForecastPoint], utc_offset: int = 0, max_days: int = MAX_FORECAST_DAYS
) -> List[ForecastDay]:
    """
    Collapse sub-daily forecast points into one entry per calendar date

    The first point seen for a date fixes that day's figures; later points on
    the same date are skipped rather than aggregated into the high/low.

    Args:
        points: Provider forecast points in chronological order
        utc_offset: Seconds east of UTC used to decide the local calendar date
        max_days: Maximum number of days to keep
    """
    tz = timezone(timedelta(seconds=utc_offset))
    days: Dict[date, ForecastDay] = {}
    first_day = None

    for point in points:
        local_date = point.timestamp.astimezone(tz).date()
        if local_date in days:
            continue
        if len(days) >= max_days:
            break
        if first_day is None:
            first_day = local_date

        days[local_date] = ForecastDay(
            date=local_date,
            label=day_label(local_date, first_day),
            high=round_half_up(point.temp_max),
            low=round_half_up(point.temp_min),
            condition=point.condition,
            description=point.description,
            icon=point.icon,
            precipitation=round_half_up(point.precipitation_probability * 100),
            wind_speed=round_half_up(point.wind_speed * MS_TO_KMH),
        )

    logger.debug(f"Reduced {len(points)} forecast points to {len(days)} days")
    return list(days.values())
