"""Organization model."""
from sqlalchemy import CheckConstraint, Column, String

from projection_lab.models.base import BaseModel


class Organization(BaseModel):
    """Organization that users belong to.

    The organization keeps no back-reference to its users; users are found by
    lookup on ``users.organization_id``.
    """

    __tablename__ = "organizations"

    name = Column(
        String(255),
        nullable=False,
        index=True
    )

    __table_args__ = (
        CheckConstraint(
            "LENGTH(name) > 0",
            name="organization_name_not_empty"
        ),
    )

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
