"""User model."""
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from projection_lab.models.base import BaseModel


class User(BaseModel):
    """User belonging to one organization, optionally supervised by another user.

    The supervision link is a plain self-referencing foreign key with no ORM
    relationship; repositories walk the chain explicitly.

    ``version`` is the optimistic concurrency counter: every ORM update checks
    and bumps it, and column-restricted updates bump it too.
    """

    __tablename__ = "users"

    organization_id = Column(
        String(36),
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    supervisor_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True
    )
    given_name = Column(
        String(255),
        nullable=True
    )
    family_name = Column(
        String(255),
        nullable=True
    )
    version = Column(
        Integer,
        nullable=False,
        default=1
    )

    # Relationships
    organization = relationship(
        "Organization",
        lazy="joined",
        innerjoin=True
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<User(id={self.id}, given_name={self.given_name}, "
            f"family_name={self.family_name}, supervisor_id={self.supervisor_id})>"
        )
