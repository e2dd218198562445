from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, field_validator
from schemas.weather_schemas import CamelModel


class Token(BaseModel):
    token: str


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower()

    @field_validator('password')
    @classmethod
    def validate_password(cls, value):
        if len(value) < 8:
            raise ValueError('Password must be at least 8 characters')
        return value


class SignInRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower()


class RefreshTokenRequest(CamelModel):
    refresh_token: Optional[str] = None


class UserResponse(CamelModel):
    id: int
    email: str
    role: str
    created_at: datetime
