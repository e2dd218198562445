from datetime import datetime, timedelta
from sqlalchemy import delete
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session
from core.config import Settings
from models.weather_readings import WeatherReading
from utils.clock import utcnow
from utils.logger import get_logger

logger = get_logger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
UPSERT_INSERTS = {
    "postgresql": postgresql_insert,
    "sqlite": sqlite_insert,
}


class WeatherCacheStore:
    """
    One WeatherReading per rounded coordinate.

    Callers pass coordinates that are already rounded (see utils.geo).
    Age filters are applied on every read, so a row past the stale
    tolerance is invisible even before the sweep deletes it.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.freshness_window = timedelta(minutes=settings.WEATHER_CACHE_MINUTES)
        self.stale_tolerance = timedelta(minutes=settings.WEATHER_STALE_CACHE_TOLERANCE_MINUTES)

    def _find(self, lat: float, lon: float, fetched_since: datetime | None = None) -> WeatherReading | None:
        query = self.db.query(WeatherReading).filter(
            WeatherReading.lat == lat,
            WeatherReading.lon == lon,
        )
        if fetched_since is not None:
            query = query.filter(WeatherReading.fetched_at >= fetched_since)
        return query.one_or_none()

    def get(self, lat: float, lon: float, now: datetime | None = None) -> WeatherReading | None:
        """Reading fetched within the freshness window, if any."""
        now = now or utcnow()
        return self._find(lat, lon, now - self.freshness_window)

    def get_stale(self, lat: float, lon: float, now: datetime | None = None) -> WeatherReading | None:
        """Reading fetched within the stale tolerance, if any."""
        now = now or utcnow()
        return self._find(lat, lon, now - self.stale_tolerance)

    def upsert(self, lat: float, lon: float, payload: dict, fetched_at: datetime, source: str) -> WeatherReading:
        """
        Replaces the reading for (lat, lon) in a single statement.

        Concurrent writers for the same coordinate never produce two rows;
        the last one wins. An existing row is updated in place, so history
        entries pointing at it stay valid.
        """
        dialect = self.db.get_bind().dialect.name
        insert = UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Weather cache upsert is not supported on {dialect}")

        stmt = insert(WeatherReading).values(
            lat=lat,
            lon=lon,
            payload=payload,
            fetched_at=fetched_at,
            source=source,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["lat", "lon"],
            set_={
                "payload": stmt.excluded.payload,
                "fetched_at": stmt.excluded.fetched_at,
                "source": stmt.excluded.source,
            },
        )
        self.db.execute(stmt)
        self.db.commit()

        logger.debug(
            "Weather cache upserted",
            extra={"lat": lat, "lon": lon, "source": source}
        )
        return self._find(lat, lon)

    def mark_source(self, reading: WeatherReading, source: str) -> WeatherReading:
        if reading.source != source:
            reading.source = source
            self.db.commit()
        return reading

    def purge_expired(self, now: datetime | None = None) -> int:
        now = now or utcnow()
        result = self.db.execute(
            delete(WeatherReading).where(WeatherReading.fetched_at < now - self.stale_tolerance)
        )
        self.db.commit()
        return result.rowcount or 0
