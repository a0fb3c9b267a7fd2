"""Base SQLAlchemy model with string UUID primary key."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def new_id() -> str:
    """Generate a new entity identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(UTC)


class BaseModel(Base):
    """Base model with string UUID primary key and timestamps.

    Timestamps are generated client-side so a flushed object never has to be
    refreshed from the database before it is serialized.
    """

    __abstract__ = True

    id = Column(String(36), primary_key=True, default=new_id, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
