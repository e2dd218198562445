from core.database import Base
from sqlalchemy import (Column, Integer, String, Enum)
from sqlalchemy.orm import relationship
from .mixins import CreatedAtMixin

USER_ROLES = ("user", "admin")


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    #pk
    id = Column(Integer, primary_key=True, index=True)

    #relationships
    history_entries = relationship("HistoryEntry", back_populates="user", passive_deletes=True)

    # Stored lower-cased, so uniqueness is case-insensitive
    email = Column(String(320), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(*USER_ROLES, name="user_role"), default="user", nullable=False)
