from core.database import Base
from sqlalchemy import (Column, Integer, Float, String, DateTime, JSON, Enum, UniqueConstraint)
from sqlalchemy.orm import relationship

SOURCE_CACHE = "cache"
SOURCE_PROVIDER = "openweather"


class WeatherReading(Base):
    """
    Last known provider response for one rounded coordinate.

    lat/lon hold the rounded cache key, never raw request coordinates.
    Rows older than the stale tolerance are treated as absent on read and
    hard-deleted by the expiry sweep.
    """
    __tablename__ = "weather_readings"
    __table_args__ = (
        UniqueConstraint("lat", "lon", name="uq_weather_readings_lat_lon"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    history_entries = relationship("HistoryEntry", back_populates="weather_reading")

    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    payload = Column(JSON, nullable=False)
    fetched_at = Column(DateTime(timezone=True), nullable=False, index=True)
    source = Column(Enum(SOURCE_CACHE, SOURCE_PROVIDER, name="weather_source"), nullable=False)
