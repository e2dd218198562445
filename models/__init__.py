from models.users import User
from models.weather_readings import WeatherReading
from models.history_entries import HistoryEntry
from models.revoked_tokens import RevokedToken

__all__ = ["User", "WeatherReading", "HistoryEntry", "RevokedToken"]
