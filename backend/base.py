from datetime import datetime
from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base
from utils import utcnow

class DictMixin:
    """
    Mixin providing a standardized dictionary serialization for SQLAlchemy models.

    Datetime columns are rendered as ISO-8601 strings so the result can be
    handed straight to jsonify.
    """
    def to_dict(self):
        data = {}
        for c in self.__table__.columns:
            value = getattr(self, c.name)
            data[c.name] = value.isoformat() if isinstance(value, datetime) else value
        return data


class TimestampMixin:
    """Adds naive-UTC creation and modification stamps to a table."""
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


Base = declarative_base(cls=DictMixin)
