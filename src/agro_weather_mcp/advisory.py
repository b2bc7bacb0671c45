from typing import List

from agro_weather_mcp.models import CurrentConditions, ForecastDay, Recommendation, RecommendationCategory


def _next_day_precipitation(forecast: List[ForecastDay]) -> int:
    return forecast[0].precipitation if forecast else 0


def irrigation_advice(current: CurrentConditions, precipitation: int) -> str:
    if current.humidity > 70:
        action = "High humidity levels. Reduce irrigation frequency."
    elif current.humidity < 40:
        action = "Low humidity detected. Increase irrigation frequency."
    else:
        action = "Moderate humidity. Maintain normal irrigation schedule."
    return f"{action} Current humidity is {current.humidity}% with {precipitation}% chance of rain."


def pest_advice(current: CurrentConditions) -> str:
    if current.humidity > 75 and current.temperature > 25:
        action = "High risk of fungal diseases. Apply preventive fungicides and improve field ventilation."
    elif current.humidity < 50 and current.temperature > 30:
        action = "Hot and dry conditions favor pest activity. Monitor crops for insect infestation."
    else:
        action = "Moderate pest and disease pressure. Continue regular crop monitoring."
    return f"{action} Temperature: {current.temperature}°C, humidity: {current.humidity}%."


def field_operations_advice(current: CurrentConditions) -> str:
    if current.wind_speed > 20:
        action = "Strong winds. Not suitable for spraying pesticides or fertilizers."
    elif current.wind_speed < 5:
        action = "Calm conditions. Good conditions for all field activities."
    else:
        action = "Moderate winds. Suitable for most field operations."
    return f"{action} Wind speed: {current.wind_speed} km/h, temperature: {current.temperature}°C."


def harvest_advice(current: CurrentConditions, precipitation: int) -> str:
    if current.cloud_cover < 30 and current.wind_speed > 5:
        return "Clear skies and good wind. Excellent for harvesting and drying crops."
    if current.cloud_cover > 70 or precipitation > 50:
        return "Cloudy conditions or rain expected. Not suitable for harvesting, wait for clearer weather."
    return "Weather is moderately suitable for harvesting. Monitor conditions closely."


def generate_recommendations(current: CurrentConditions, forecast: List[ForecastDay]) -> List[Recommendation]:
    """Build the four agricultural recommendations from current conditions and the next forecast day"""
    precipitation = _next_day_precipitation(forecast)
    messages = {
        RecommendationCategory.IRRIGATION: irrigation_advice(current, precipitation),
        RecommendationCategory.PEST_DISEASE: pest_advice(current),
        RecommendationCategory.FIELD_OPERATIONS: field_operations_advice(current),
        RecommendationCategory.HARVEST: harvest_advice(current, precipitation),
    }
    return [
        Recommendation(category=category, title=category.heading, message=message)
        for category, message in messages.items()
    ]
