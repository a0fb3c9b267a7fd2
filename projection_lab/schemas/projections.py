"""User projection shapes.

Each shape is a partial view of a stored user that limits what one operation
reads or writes:

- ``UserIdProjection``: the id only, used to point at a supervisor without
  loading anything behind it.
- ``UserProjection``: the user's own fields plus ``belongsTo`` and an id-only
  ``supervisedBy``.
- ``UserDTOProjection``: the same fields as a detached value object whose
  ``supervisedBy`` is a ``UserIdDTO`` built by hand rather than read.
- ``UserResponse``: the full entity with the supervision chain resolved to its
  root.

All shapes serialize with camelCase field names.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from projection_lab.schemas.organization import OrganizationResponse


class _ProjectionModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class UserIdProjection(_ProjectionModel):
    id: str


class UserProjection(_ProjectionModel):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    belongs_to: OrganizationResponse
    supervised_by: Optional[UserIdProjection] = None


class UserIdDTO(_ProjectionModel):
    id: str


class UserDTOProjection(_ProjectionModel):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    belongs_to: OrganizationResponse
    supervised_by: Optional[UserIdDTO] = None


class UserResponse(_ProjectionModel):
    id: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    belongs_to: OrganizationResponse
    supervised_by: Optional[UserResponse] = None


UserResponse.model_rebuild()


# Any shape the shape-constrained save accepts.
SavableProjection = UserProjection | UserDTOProjection
