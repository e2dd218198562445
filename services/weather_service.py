from datetime import datetime
from typing import Callable, Protocol
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from core.config import Settings
from core.exceptions import NotFoundError, UpstreamUnavailableError, ValidationError
from models.weather_readings import WeatherReading, SOURCE_CACHE, SOURCE_PROVIDER
from schemas.weather_schemas import Coordinates, OpenWeatherResponse, WeatherResult
from services.history_service import HistoryService
from services.weather_cache import WeatherCacheStore
from services.weather_provider import WeatherProviderError, WeatherProviderNotFound
from utils.clock import as_utc, utcnow
from utils.geo import round_coordinates, validate_coordinates
from utils.logger import get_logger

logger = get_logger(__name__)


class WeatherProvider(Protocol):
    async def fetch_current(self, lat: float, lon: float) -> OpenWeatherResponse: ...


class WeatherService:
    """
    Resolves current weather for a user request.

    Order of attempts:
    1. fresh cache (within WEATHER_CACHE_MINUTES) for the rounded coordinate
    2. live provider call with the raw coordinates, then cache upsert
    3. stale cache (within WEATHER_STALE_CACHE_TOLERANCE_MINUTES) when the
       provider fails
    A resolved request is recorded in the user's history exactly once; a
    failed one is not recorded at all.
    """

    def __init__(
        self,
        db: Session,
        provider: WeatherProvider,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.provider = provider
        self.cache = WeatherCacheStore(db, settings)
        self.clock = clock

    async def get_weather(self, user_id: int, raw_lat: float, raw_lon: float) -> WeatherResult:
        if not validate_coordinates(raw_lat, raw_lon):
            raise ValidationError("Invalid latitude or longitude")

        lat, lon = round_coordinates(raw_lat, raw_lon)
        now = self.clock()

        reading = self._fresh_reading(lat, lon, now)

        if reading is not None:
            result = self._result_from_reading(reading)
            self.cache.mark_source(reading, SOURCE_CACHE)
            logger.debug("Weather served from cache", extra={"lat": lat, "lon": lon})
        else:
            try:
                observation = await self.provider.fetch_current(raw_lat, raw_lon)
            except WeatherProviderError as e:
                logger.error(f"Error fetching from OpenWeather: {e}", extra={"lat": raw_lat, "lon": raw_lon})
                return self._serve_stale(user_id, raw_lat, raw_lon, lat, lon, now, e)

            reading = self.cache.upsert(
                lat, lon,
                payload=observation.model_dump(mode="json"),
                fetched_at=now,
                source=SOURCE_PROVIDER,
            )
            # Live results report the coordinates as requested and the
            # provider's observation time
            result = WeatherResult(
                source=SOURCE_PROVIDER,
                coordinates=Coordinates(lat=raw_lat, lon=raw_lon),
                temp_c=observation.temp_c,
                humidity=observation.humidity,
                description=observation.description,
                fetched_at=observation.observed_at,
            )

        HistoryService.record(self.db, user_id, reading.id, raw_lat, raw_lon, now)
        return result

    def _fresh_reading(self, lat: float, lon: float, now: datetime) -> WeatherReading | None:
        # Cache read errors count as a miss
        try:
            return self.cache.get(lat, lon, now)
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                f"Error querying weather cache: {e}",
                extra={"lat": lat, "lon": lon, "error_type": type(e).__name__}
            )
            return None

    def _serve_stale(
        self,
        user_id: int,
        raw_lat: float,
        raw_lon: float,
        lat: float,
        lon: float,
        now: datetime,
        error: WeatherProviderError,
    ) -> WeatherResult:
        reading = self.cache.get_stale(lat, lon, now)

        if reading is None:
            if isinstance(error, WeatherProviderNotFound):
                raise NotFoundError("Weather data not found for given coordinates")
            raise UpstreamUnavailableError()

        logger.warning(
            "OpenWeather unavailable, serving stale cache data",
            extra={"lat": lat, "lon": lon, "fetched_at": as_utc(reading.fetched_at).isoformat()}
        )
        self.cache.mark_source(reading, SOURCE_CACHE)
        result = self._result_from_reading(reading)
        HistoryService.record(self.db, user_id, reading.id, raw_lat, raw_lon, now)
        return result

    @staticmethod
    def _result_from_reading(reading: WeatherReading) -> WeatherResult:
        payload = OpenWeatherResponse.model_validate(reading.payload)
        return WeatherResult(
            source=SOURCE_CACHE,
            coordinates=Coordinates(lat=reading.lat, lon=reading.lon),
            temp_c=payload.temp_c,
            humidity=payload.humidity,
            description=payload.description,
            fetched_at=as_utc(reading.fetched_at),
        )
