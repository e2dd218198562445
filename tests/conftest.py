import os

# Must be set before anything imports core.config
os.environ.setdefault("ENV", "testing")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-api-key")
os.environ.setdefault("LOG_DIR", "logs")

import pytest
from datetime import timedelta
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from main import app
from core.config import settings
from core.database import Base, build_engine
from models.weather_readings import WeatherReading, SOURCE_PROVIDER
from schemas.weather_schemas import OpenWeatherResponse
from services.auth_service import AuthService
from services.token_service import TokenService, ACCESS
from services.weather_provider import WeatherProviderError
from utils.clock import utcnow
from utils.deps import get_db, get_weather_provider

# SYNC SQLite for testing (matches sync service layer)
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

engine = build_engine(SQLALCHEMY_DATABASE_URL)

TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)

TEST_PASSWORD = "TestPassword123!"


def openweather_payload(temp=21.5, humidity=64, description="clear sky", dt=1760870400):
    """Trimmed-down OpenWeather current-weather response."""
    return {
        "coord": {"lon": -74.006, "lat": 40.7128},
        "weather": [{"id": 800, "main": "Clear", "description": description, "icon": "01d"}],
        "main": {"temp": temp, "feels_like": temp - 0.5, "humidity": humidity, "pressure": 1015},
        "dt": dt,
        "name": "New York",
        "cod": 200,
    }


class FakeWeatherProvider:
    """Stands in for OpenWeatherClient and records every call."""

    def __init__(self, payload: dict | None = None, error: Exception | None = None):
        self.payload = payload or openweather_payload()
        self.error = error
        self.calls = []

    async def fetch_current(self, lat: float, lon: float) -> OpenWeatherResponse:
        self.calls.append((lat, lon))
        if self.error is not None:
            raise self.error
        return OpenWeatherResponse.model_validate(self.payload)

    def fail_with(self, error: Exception = None):
        self.error = error or WeatherProviderError("connection refused")


@pytest.fixture
def session() -> Generator[Session, None, None]:
    """
    Creates a fresh, empty database for each test.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def weather_provider() -> FakeWeatherProvider:
    return FakeWeatherProvider()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(settings)


@pytest.fixture
async def client(session: Session, weather_provider: FakeWeatherProvider):
    """
    Yields an HTTP client that talks to the app with the test database and
    the fake weather provider.
    """
    def override_get_db():
        try:
            yield session
        finally:
            pass  # Session cleanup handled by session fixture

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_weather_provider] = lambda: weather_provider

    # Unhandled errors should come back as 500 responses, not raise in the test
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def test_user(session):
    return AuthService.create_user("weather.user@example.com", TEST_PASSWORD, session)


@pytest.fixture
def admin_user(session):
    return AuthService.create_user("admin@example.com", TEST_PASSWORD, session, role="admin")


@pytest.fixture
def auth_headers(test_user, token_service):
    token = token_service.create_token(test_user, ACCESS)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user, token_service):
    token = token_service.create_token(admin_user, ACCESS)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_reading(session):
    """Inserts a cached reading fetched `age_minutes` ago."""
    def _make(lat, lon, age_minutes=0, source=SOURCE_PROVIDER, payload=None):
        reading = WeatherReading(
            lat=lat,
            lon=lon,
            payload=payload or openweather_payload(),
            fetched_at=utcnow() - timedelta(minutes=age_minutes),
            source=source,
        )
        session.add(reading)
        session.commit()
        session.refresh(reading)
        return reading
    return _make
