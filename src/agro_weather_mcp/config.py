from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    openweather_api_key: Optional[str] = None
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    openweather_geo_url: str = "https://api.openweathermap.org/geo/1.0"

    default_location: str = "New Delhi, India"

    request_timeout: float = 20.0
    geolocation_timeout: float = 10.0
    geolocation_max_age: float = 600.0

    port: int = 8001
    log_level: str = "INFO"


config = Config()
