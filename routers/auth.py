from typing import Annotated, Optional
from fastapi import APIRouter, Cookie, Depends, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import SQLAlchemyError
from starlette import status
from core.exceptions import AuthError, TokenRevokedError
from schemas.auth_schemas import Token, SignUpRequest, SignInRequest, RefreshTokenRequest
from services.auth_service import AuthService
from services.token_service import REFRESH
from utils.deps import (
    db_dependency, settings_dependency, token_service_dependency,
    bearer_scheme, ACCESS_COOKIE, REFRESH_COOKIE,
)
from utils.logger import get_logger

# Setup logger
logger = get_logger(__name__)

SIGNOUT_COOKIE_SECONDS = 5


router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)


def set_auth_cookies(response: Response, tokens: dict, app_settings) -> None:
    secure = app_settings.is_production
    response.set_cookie(
        ACCESS_COOKIE, tokens["access_token"],
        max_age=app_settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True, secure=secure, samesite="lax",
    )
    response.set_cookie(
        REFRESH_COOKIE, tokens["refresh_token"],
        max_age=app_settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True, secure=secure, samesite="lax",
    )


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def sign_up(body: SignUpRequest, response: Response, db: db_dependency,
                  token_service: token_service_dependency, app_settings: settings_dependency):
    user = AuthService.create_user(body.email, body.password, db)
    tokens = token_service.issue_pair(user)
    set_auth_cookies(response, tokens, app_settings)

    logger.info(
        "User registered successfully",
        extra={"user_id": user.id, "email": user.email}
    )
    return {"token": tokens["access_token"]}


@router.post("/signin", response_model=Token)
async def sign_in(body: SignInRequest, response: Response, db: db_dependency,
                  token_service: token_service_dependency, app_settings: settings_dependency):
    user = AuthService.authenticate_user(body.email, body.password, db)
    tokens = token_service.issue_pair(user)
    set_auth_cookies(response, tokens, app_settings)

    logger.info(
        "User logged in successfully",
        extra={"user_id": user.id, "email": user.email}
    )
    return {"token": tokens["access_token"]}


@router.post("/refresh", response_model=Token)
async def refresh(response: Response, db: db_dependency, token_service: token_service_dependency,
                  app_settings: settings_dependency, body: Optional[RefreshTokenRequest] = None,
                  refresh_cookie: Annotated[Optional[str], Cookie(alias=REFRESH_COOKIE)] = None):
    """
    Swap a refresh token for a new pair. The used refresh token is revoked.
    """
    refresh_token = (body.refresh_token if body else None) or refresh_cookie
    if not refresh_token:
        raise AuthError("Refresh token required")

    claims = token_service.verify(refresh_token, REFRESH)
    # Refresh tokens are single-use whatever ENFORCE_TOKEN_REVOCATION says
    if token_service.is_revoked(refresh_token, db):
        raise TokenRevokedError()

    user = AuthService.get_user_by_id(claims.user_id, db)
    if user is None:
        raise AuthError("User no longer exists")

    token_service.revoke(refresh_token, db)
    tokens = token_service.issue_pair(user)
    set_auth_cookies(response, tokens, app_settings)

    logger.info("Access token refreshed", extra={"user_id": user.id})
    return {"token": tokens["access_token"]}


@router.post("/signout", status_code=status.HTTP_200_OK)
async def sign_out(response: Response, db: db_dependency, token_service: token_service_dependency,
                   credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
                   access_cookie: Annotated[Optional[str], Cookie(alias=ACCESS_COOKIE)] = None,
                   refresh_cookie: Annotated[Optional[str], Cookie(alias=REFRESH_COOKIE)] = None):
    """
    Clears the auth cookies and revokes whatever tokens were presented.
    Always succeeds.
    """
    presented = {
        credentials.credentials if credentials else None,
        access_cookie,
        refresh_cookie,
    }
    for token in presented:
        if not token or token == "none":
            continue
        try:
            token_service.revoke(token, db)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Token revocation failed: {e}", extra={"error_type": type(e).__name__})

    for name in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.set_cookie(name, "none", expires=SIGNOUT_COOKIE_SECONDS, httponly=True)

    logger.info("User logged out")
    return {"message": "Signed out successfully"}
