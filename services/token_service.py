import secrets
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from jose import jwt, JWTError, ExpiredSignatureError
from core.config import Settings
from core.exceptions import (
    BadSignatureError, InvalidTokenTypeError, MalformedTokenError,
    TokenExpiredError, TokenRevokedError,
)
from models.revoked_tokens import RevokedToken
from models.users import User
from utils.clock import utcnow
from utils.logger import get_logger

logger = get_logger(__name__)

ACCESS = "access"
REFRESH = "refresh"
TOKEN_TYPES = (ACCESS, REFRESH)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    email: str
    role: str
    type: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """
    Issues, verifies and revokes signed session tokens.

    Tokens are HS256 JWTs carrying the user's id, email and role plus a
    `type` discriminator. Nothing is stored for a live token; a revocation
    record is written only when a token is explicitly signed out.
    """

    def __init__(self, settings: Settings):
        self.settings = settings

    def _lifetime(self, token_type: str) -> timedelta:
        if token_type == ACCESS:
            return timedelta(minutes=self.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        return timedelta(days=self.settings.REFRESH_TOKEN_EXPIRE_DAYS)

    def create_token(self, user: User, token_type: str, expires_delta: timedelta | None = None) -> str:
        """
        Creates a signed token of the given type for the user.

        Args:
            user: Token subject
            token_type: "access" (15 minutes by default) or "refresh" (7 days)
            expires_delta: Override for the lifetime, mostly for tests
        """
        if token_type not in TOKEN_TYPES:
            raise ValueError(f"Unknown token type: {token_type}")

        issued_at = utcnow()
        expire = issued_at + (expires_delta if expires_delta is not None else self._lifetime(token_type))

        payload = {
            "sub": user.email,
            "id": user.id,
            "role": user.role,
            "type": token_type,
            # Two tokens minted in the same second must still differ
            "jti": secrets.token_urlsafe(16),
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(payload, self.settings.SECRET_KEY, algorithm=self.settings.ALGORITHM)

    def issue_pair(self, user: User) -> dict:
        return {
            "access_token": self.create_token(user, ACCESS),
            "refresh_token": self.create_token(user, REFRESH),
            "token_type": "bearer",
        }

    def verify(self, token: str, expected_type: str) -> TokenClaims:
        """
        Checks signature, expiry and type, in that order of precedence.

        Raises:
            MalformedTokenError: not a JWT, or required claims missing
            BadSignatureError: signed with another key or tampered with
            TokenExpiredError: past its exp claim
            InvalidTokenTypeError: e.g. a refresh token used as access token
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError:
            raise MalformedTokenError()

        try:
            payload = jwt.decode(token, self.settings.SECRET_KEY, algorithms=[self.settings.ALGORITHM])
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except JWTError:
            raise BadSignatureError()

        if payload.get("type") != expected_type:
            raise InvalidTokenTypeError()

        email = payload.get("sub")
        user_id = payload.get("id")
        if email is None or user_id is None or "exp" not in payload:
            raise MalformedTokenError()

        return TokenClaims(
            user_id=user_id,
            email=email,
            role=payload.get("role", "user"),
            type=payload["type"],
            issued_at=datetime.fromtimestamp(payload.get("iat", payload["exp"]), tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def verify_active(self, token: str, expected_type: str, db: Session) -> TokenClaims:
        claims = self.verify(token, expected_type)
        if self.settings.ENFORCE_TOKEN_REVOCATION and self.is_revoked(token, db):
            raise TokenRevokedError()
        return claims

    def revoke(self, token: str, db: Session) -> bool:
        """
        Records the token as signed out until its own expiry.

        Only decodes the token, without checking signature or expiry, so an
        already expired token can still be revoked. Returns False (and
        stores nothing) when the token can't be decoded at all.
        """
        try:
            payload = jwt.get_unverified_claims(token)
        except JWTError:
            logger.debug("Revocation skipped - token not decodable")
            return False

        exp = payload.get("exp")
        if not isinstance(exp, (int, float)):
            logger.debug("Revocation skipped - token has no expiry")
            return False

        if self.is_revoked(token, db):
            return True

        db.add(RevokedToken(
            token=token,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        ))
        try:
            db.commit()
        except IntegrityError:
            # Revoked concurrently, or an expired record the sweep hasn't removed yet
            db.rollback()

        logger.info("Token revoked", extra={"user_id": payload.get("id"), "token_type": payload.get("type")})
        return True

    def is_revoked(self, token: str, db: Session, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return db.query(RevokedToken.id).filter(
            RevokedToken.token == token,
            RevokedToken.expires_at > now,
        ).first() is not None
