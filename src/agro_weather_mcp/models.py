from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """Geographic coordinates"""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class CurrentConditions(BaseModel):
    """Normalized current weather snapshot"""
    model_config = ConfigDict(frozen=True)

    temperature: int
    feels_like: int
    humidity: int
    wind_speed: int  # km/h
    condition: str
    description: str
    pressure: int
    visibility: int  # km
    cloud_cover: int
    sunrise: datetime
    sunset: datetime
    location_name: str
    country: str
    coordinates: Coordinates


class ForecastPoint(BaseModel):
    """Raw sub-daily forecast entry as reported by the provider"""
    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    temp_max: float
    temp_min: float
    condition: str
    description: str
    icon: Optional[str] = None
    precipitation_probability: float = Field(0.0, ge=0, le=1)
    wind_speed: float  # m/s


class ForecastDay(BaseModel):
    """One calendar day of the reduced forecast"""
    model_config = ConfigDict(frozen=True)

    date: date
    label: str
    high: int
    low: int
    condition: str
    description: str
    icon: Optional[str] = None
    precipitation: int = Field(..., ge=0, le=100)
    wind_speed: int  # km/h


class Severity(str, Enum):
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    EXTREME = "extreme"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    def __lt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


class Alert(BaseModel):
    """Weather alert derived from the latest snapshot"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    severity: Severity
    starts_at: datetime
    ends_at: datetime
    event: str


class Theme(str, Enum):
    SUNNY = "sunny"
    RAINY = "rainy"
    CLOUDY = "cloudy"
    DEFAULT = "default"


class RecommendationCategory(str, Enum):
    IRRIGATION = "irrigation"
    PEST_DISEASE = "pest_disease"
    FIELD_OPERATIONS = "field_operations"
    HARVEST = "harvest"

    @property
    def heading(self) -> str:
        return {
            RecommendationCategory.IRRIGATION: "Irrigation Advisory",
            RecommendationCategory.PEST_DISEASE: "Pest Management",
            RecommendationCategory.FIELD_OPERATIONS: "Field Activities",
            RecommendationCategory.HARVEST: "Harvest Planning",
        }[self]


class Recommendation(BaseModel):
    """Agricultural advisory for one category"""
    model_config = ConfigDict(frozen=True)

    category: RecommendationCategory
    title: str
    message: str


class IntentKind(str, Enum):
    PLACE = "place"
    GEOLOCATION = "geolocation"


class LocationIntent(BaseModel):
    """What the user last asked to see weather for"""
    model_config = ConfigDict(frozen=True)

    kind: IntentKind
    place: Optional[str] = None

    @classmethod
    def for_place(cls, place: str) -> "LocationIntent":
        return cls(kind=IntentKind.PLACE, place=place)

    @classmethod
    def for_geolocation(cls) -> "LocationIntent":
        return cls(kind=IntentKind.GEOLOCATION)


class WeatherStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class WeatherBundle(BaseModel):
    """Read-only state handed to the presentation layer"""
    model_config = ConfigDict(frozen=True)

    status: WeatherStatus
    intent: Optional[LocationIntent] = None
    current: Optional[CurrentConditions] = None
    forecast: Optional[List[ForecastDay]] = None
    alerts: Optional[List[Alert]] = None
    theme: Optional[Theme] = None
    recommendations: Optional[List[Recommendation]] = None
    error: Optional[str] = None

    @classmethod
    def idle(cls) -> "WeatherBundle":
        return cls(status=WeatherStatus.IDLE)

    @classmethod
    def loading(cls, intent: LocationIntent) -> "WeatherBundle":
        return cls(status=WeatherStatus.LOADING, intent=intent)

    @classmethod
    def failed(cls, intent: LocationIntent, error: str) -> "WeatherBundle":
        return cls(status=WeatherStatus.FAILED, intent=intent, error=error)

    @classmethod
    def ready(
        cls,
        intent: LocationIntent,
        current: CurrentConditions,
        forecast: List[ForecastDay],
        alerts: List[Alert],
        theme: Theme,
        recommendations: List[Recommendation],
    ) -> "WeatherBundle":
        return cls(
            status=WeatherStatus.READY,
            intent=intent,
            current=current,
            forecast=forecast,
            alerts=alerts,
            theme=theme,
            recommendations=recommendations,
        )
