from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from schemas.weather_schemas import CamelModel


@dataclass
class HistoryQuery:
    skip: int = 0
    limit: int = 10
    sort: Optional[str] = None
    from_: Optional[datetime] = None
    to: Optional[datetime] = None
    lat: Optional[float] = None
    lon: Optional[float] = None


class HistoryWeather(CamelModel):
    source: str
    temp_c: Optional[float] = None
    humidity: Optional[int | float] = None
    description: str
    fetched_at: Optional[datetime] = None


class HistoryItem(CamelModel):
    lat: float
    lon: float
    requested_at: datetime
    weather: HistoryWeather


class HistoryCount(CamelModel):
    total: int
