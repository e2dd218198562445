from datetime import datetime, timezone
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OpenWeatherCondition(BaseModel):
    model_config = ConfigDict(extra="allow")

    description: str


class OpenWeatherMain(BaseModel):
    model_config = ConfigDict(extra="allow")

    temp: float
    humidity: int | float


class OpenWeatherResponse(BaseModel):
    """
    The part of OpenWeather's current-weather response this service relies on.

    Unknown keys are kept, so the cached payload is the provider's own
    document rather than a reshaped copy.
    """
    model_config = ConfigDict(extra="allow")

    weather: list[OpenWeatherCondition] = Field(min_length=1)
    main: OpenWeatherMain
    dt: int

    @property
    def temp_c(self) -> float:
        return self.main.temp

    @property
    def humidity(self) -> int | float:
        return self.main.humidity

    @property
    def description(self) -> str:
        return self.weather[0].description

    @property
    def observed_at(self) -> datetime:
        return datetime.fromtimestamp(self.dt, tz=timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Coordinates(CamelModel):
    lat: float
    lon: float


class WeatherResult(CamelModel):
    source: Literal["cache", "openweather"]
    coordinates: Coordinates
    temp_c: float
    humidity: int | float
    description: str
    fetched_at: datetime
