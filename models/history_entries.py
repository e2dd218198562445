from core.database import Base
from sqlalchemy import (Column, Integer, Float, DateTime, ForeignKey, Index)
from sqlalchemy.orm import relationship


class HistoryEntry(Base):
    __tablename__ = "history_entries"
    __table_args__ = (
        Index("ix_history_entries_user_requested_at", "user_id", "requested_at"),
        Index("ix_history_entries_user_rounded", "user_id", "rounded_lat", "rounded_lon"),
    )

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #fk
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Readings are purged after the stale tolerance; the entry outlives them
    weather_reading_id = Column(Integer, ForeignKey("weather_readings.id", ondelete="SET NULL"), nullable=True)

    #relationships
    user = relationship("User", back_populates="history_entries")
    weather_reading = relationship("WeatherReading", back_populates="history_entries")

    # As requested, unrounded
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)
    rounded_lat = Column(Float, nullable=False)
    rounded_lon = Column(Float, nullable=False)
    requested_at = Column(DateTime(timezone=True), nullable=False)
