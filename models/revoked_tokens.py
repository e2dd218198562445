from core.database import Base
from sqlalchemy import Column, DateTime, Integer, Text
from models.mixins import CreatedAtMixin


class RevokedToken(Base, CreatedAtMixin):
    """
    A signed-out token that must not authorize anything again.

    expires_at mirrors the token's own exp claim. Once it passes the token is
    invalid anyway, so the row is ignored on read and removed by the sweep.
    """
    __tablename__ = "revoked_tokens"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    token = Column(Text, nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
