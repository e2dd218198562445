from fastapi import APIRouter, Query
from starlette import status
from schemas.weather_schemas import WeatherResult
from utils.deps import user_dependency, weather_service_dependency
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/weather",
    tags=["weather"]
)


@router.get("", response_model=WeatherResult, status_code=status.HTTP_200_OK)
async def get_weather(user: user_dependency, weather_service: weather_service_dependency,
                      lat: float = Query(..., description="Latitude, -90 to 90"),
                      lon: float = Query(..., description="Longitude, -180 to 180")):
    """
    Current weather for a coordinate, served from cache when fresh.
    """
    result = await weather_service.get_weather(user.id, lat, lon)

    logger.info(
        "Weather resolved",
        extra={"user_id": user.id, "source": result.source}
    )
    return result
