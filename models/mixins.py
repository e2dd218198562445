from sqlalchemy import Column, DateTime
from utils.clock import utcnow


class CreatedAtMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
