"""SQLAlchemy models."""

from projection_lab.models.base import Base, BaseModel
from projection_lab.models.organization import Organization
from projection_lab.models.user import User

__all__ = [
    "Base",
    "BaseModel",
    "Organization",
    "User",
]
