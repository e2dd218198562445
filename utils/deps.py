from typing import Annotated, Optional
from fastapi import Cookie, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from core.config import Settings, settings
from core.database import SessionLocal
from core.exceptions import AuthError, ForbiddenError
from models.users import User
from services.auth_service import AuthService
from services.token_service import TokenService, ACCESS
from services.weather_provider import OpenWeatherClient
from services.weather_service import WeatherService

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

db_dependency = Annotated[Session, Depends(get_db)]


def get_settings() -> Settings:
    return settings

settings_dependency = Annotated[Settings, Depends(get_settings)]


def get_token_service(app_settings: settings_dependency) -> TokenService:
    return TokenService(app_settings)

token_service_dependency = Annotated[TokenService, Depends(get_token_service)]


bearer_scheme = HTTPBearer(auto_error=False)


def get_request_token(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
    access_cookie: Annotated[Optional[str], Cookie(alias=ACCESS_COOKIE)] = None,
) -> Optional[str]:
    """Bearer header first, then the access-token cookie."""
    if credentials and credentials.credentials:
        return credentials.credentials
    return access_cookie or None


def get_current_user(
    db: db_dependency,
    token_service: token_service_dependency,
    token: Annotated[Optional[str], Depends(get_request_token)],
) -> User:
    if not token:
        raise AuthError("You are not logged in")

    claims = token_service.verify_active(token, ACCESS, db)

    user = AuthService.get_user_by_id(claims.user_id, db)
    if user is None:
        raise AuthError("User no longer exists")

    return user

user_dependency = Annotated[User, Depends(get_current_user)]


def require_role(*roles: str):
    def checker(user: user_dependency) -> User:
        if user.role not in roles:
            raise ForbiddenError()
        return user
    return checker

admin_dependency = Annotated[User, Depends(require_role("admin"))]


def get_weather_provider(request: Request) -> OpenWeatherClient:
    return request.app.state.weather_provider


def get_weather_service(
    db: db_dependency,
    app_settings: settings_dependency,
    provider: Annotated[OpenWeatherClient, Depends(get_weather_provider)],
) -> WeatherService:
    return WeatherService(db, provider, app_settings)

weather_service_dependency = Annotated[WeatherService, Depends(get_weather_service)]
