from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import model_validator


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", frozen=True, extra="ignore")

    ENV: str = "development"

    DATABASE_URL: str = "sqlite:///./weatherhub.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    # Reject bearer tokens that were explicitly signed out
    ENFORCE_TOKEN_REVOCATION: bool = True

    OPENWEATHER_API_KEY: str = ""
    OPENWEATHER_BASE_URL: str = "https://api.openweathermap.org/data/2.5/weather"
    OPENWEATHER_UNITS: str = "metric"
    OPENWEATHER_TIMEOUT_SECONDS: float = 10.0
    WEATHER_CACHE_MINUTES: int = 30
    WEATHER_STALE_CACHE_TOLERANCE_MINUTES: int = 120
    CLEANUP_INTERVAL_SECONDS: int = 300

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    @model_validator(mode="after")
    def check_cache_windows(self):
        if self.WEATHER_STALE_CACHE_TOLERANCE_MINUTES <= self.WEATHER_CACHE_MINUTES:
            raise ValueError(
                "WEATHER_STALE_CACHE_TOLERANCE_MINUTES must be greater than WEATHER_CACHE_MINUTES"
            )
        return self

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


settings = Settings()
