import httpx
from pydantic import ValidationError as SchemaError
from core.config import Settings
from schemas.weather_schemas import OpenWeatherResponse
from utils.logger import get_logger

logger = get_logger(__name__)


class WeatherProviderError(Exception):
    """The provider could not produce a usable reading."""


class WeatherProviderNotFound(WeatherProviderError):
    """The provider has no data for the requested coordinates."""


class OpenWeatherClient:
    """
    Thin async client for OpenWeather's current-weather endpoint.

    The raw JSON never leaves this class undecoded: every response is
    validated into an OpenWeatherResponse, and every failure (transport,
    status, schema) comes out as a WeatherProviderError.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.OPENWEATHER_TIMEOUT_SECONDS,
                headers={"Accept": "application/json"},
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_current(self, lat: float, lon: float) -> OpenWeatherResponse:
        params = {
            "lat": lat,
            "lon": lon,
            "units": self.settings.OPENWEATHER_UNITS,
            "appid": self.settings.OPENWEATHER_API_KEY,
        }

        try:
            response = await self._get_client().get(self.settings.OPENWEATHER_BASE_URL, params=params)
            response.raise_for_status()
            return OpenWeatherResponse.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.warning(
                "OpenWeather returned an error status",
                extra={"status_code": status_code, "lat": lat, "lon": lon}
            )
            if status_code == 404:
                raise WeatherProviderNotFound(f"No weather data for {lat},{lon}") from e
            raise WeatherProviderError(f"OpenWeather responded with {status_code}") from e
        except httpx.HTTPError as e:
            logger.warning(
                f"OpenWeather request failed: {type(e).__name__}",
                extra={"lat": lat, "lon": lon, "error_type": type(e).__name__}
            )
            raise WeatherProviderError(f"OpenWeather request failed: {e}") from e
        except (SchemaError, ValueError) as e:
            logger.warning(
                "OpenWeather returned an unexpected payload",
                extra={"lat": lat, "lon": lon}
            )
            raise WeatherProviderError("Invalid payload from OpenWeather") from e
