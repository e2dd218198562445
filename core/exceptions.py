"""
Application error taxonomy.

Every error a caller can see is an AppError. They are HTTPExceptions, so the
services can raise them the same way routers raise HTTPException, and the
handlers in main.py turn them into {"status", "message"} bodies.
"""

from fastapi import HTTPException
from starlette import status


class AppError(HTTPException):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Something went wrong"

    def __init__(self, message: str | None = None, headers: dict | None = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=message or type(self).message,
            headers=headers,
        )


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid request"


class DuplicateEmailError(ValidationError):
    message = "Email already exists"


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "You are not logged in"


class InvalidCredentialsError(AuthError):
    message = "Invalid credentials"


class TokenExpiredError(AuthError):
    message = "Token has expired"


class InvalidTokenTypeError(AuthError):
    message = "Invalid token type"


class MalformedTokenError(AuthError):
    message = "Invalid token"


class BadSignatureError(AuthError):
    message = "Invalid token"


class TokenRevokedError(AuthError):
    message = "Token has been revoked"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    message = "You do not have permission to perform this action"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class UpstreamUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "External weather service unavailable"
