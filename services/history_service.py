from datetime import datetime
from sqlalchemy.orm import Session
from core.exceptions import ValidationError
from models.history_entries import HistoryEntry
from models.weather_readings import WeatherReading, SOURCE_PROVIDER
from schemas.history_schemas import HistoryItem, HistoryQuery, HistoryWeather
from schemas.weather_schemas import OpenWeatherResponse
from utils.clock import as_utc
from utils.geo import round_coordinates, validate_coordinates
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SORT = "-requestedAt"
MAX_LIMIT = 100

SORT_FIELDS = {
    "requestedAt": HistoryEntry.requested_at,
    "lat": HistoryEntry.lat,
    "lon": HistoryEntry.lon,
}


class HistoryService:

    @staticmethod
    def record(db: Session, user_id: int, weather_reading_id: int, lat: float, lon: float,
               requested_at: datetime) -> HistoryEntry:
        """
        Appends one entry to the user's history. lat/lon are the coordinates
        as requested; the rounded key is stored alongside for filtering.
        """
        if db.get(WeatherReading, weather_reading_id) is None:
            raise ValueError(f"Weather reading {weather_reading_id} does not exist")

        rounded_lat, rounded_lon = round_coordinates(lat, lon)
        entry = HistoryEntry(
            user_id=user_id,
            weather_reading_id=weather_reading_id,
            lat=lat,
            lon=lon,
            rounded_lat=rounded_lat,
            rounded_lon=rounded_lon,
            requested_at=requested_at,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def _filters(user_id: int, query: HistoryQuery) -> list:
        filters = [HistoryEntry.user_id == user_id]

        if query.from_ is not None:
            filters.append(HistoryEntry.requested_at >= as_utc(query.from_))
        if query.to is not None:
            filters.append(HistoryEntry.requested_at <= as_utc(query.to))

        if (query.lat is None) != (query.lon is None):
            raise ValidationError("Both lat and lon must be provided for coordinate filtering")

        if query.lat is not None:
            if not validate_coordinates(query.lat, query.lon):
                raise ValidationError("Invalid latitude or longitude filter")
            rounded_lat, rounded_lon = round_coordinates(query.lat, query.lon)
            filters.append(HistoryEntry.rounded_lat == rounded_lat)
            filters.append(HistoryEntry.rounded_lon == rounded_lon)

        return filters

    @staticmethod
    def _order_by(sort: str | None) -> list:
        sort = sort or DEFAULT_SORT
        descending = sort.startswith("-")
        field = sort[1:] if descending else sort

        column = SORT_FIELDS.get(field)
        if column is None:
            raise ValidationError(
                f"Invalid sort field '{field}'. Allowed: {', '.join(SORT_FIELDS)}"
            )

        # id as tie-breaker keeps pages stable
        if descending:
            return [column.desc(), HistoryEntry.id.desc()]
        return [column.asc(), HistoryEntry.id.asc()]

    @staticmethod
    def list_entries(db: Session, user_id: int, query: HistoryQuery) -> list[HistoryItem]:
        if query.skip < 0:
            raise ValidationError("skip must not be negative")
        if not 1 <= query.limit <= MAX_LIMIT:
            raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}")

        filters = HistoryService._filters(user_id, query)
        order_by = HistoryService._order_by(query.sort)

        rows = (
            db.query(HistoryEntry, WeatherReading)
            .outerjoin(WeatherReading, HistoryEntry.weather_reading_id == WeatherReading.id)
            .filter(*filters)
            .order_by(*order_by)
            .offset(query.skip)
            .limit(query.limit)
            .all()
        )
        return [HistoryService._to_item(entry, reading) for entry, reading in rows]

    @staticmethod
    def count_entries(db: Session, user_id: int, query: HistoryQuery) -> int:
        filters = HistoryService._filters(user_id, query)
        return db.query(HistoryEntry).filter(*filters).count()

    @staticmethod
    def _to_item(entry: HistoryEntry, reading: WeatherReading | None) -> HistoryItem:
        if reading is None:
            weather = HistoryWeather(source=SOURCE_PROVIDER, description="N/A")
        else:
            payload = OpenWeatherResponse.model_validate(reading.payload)
            weather = HistoryWeather(
                source=reading.source,
                temp_c=payload.temp_c,
                humidity=payload.humidity,
                description=payload.description,
                fetched_at=as_utc(reading.fetched_at),
            )

        return HistoryItem(
            lat=entry.lat,
            lon=entry.lon,
            requested_at=as_utc(entry.requested_at),
            weather=weather,
        )
