"""Pydantic schemas for organization endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CreateOrganizationRequest(BaseModel):
    """Request schema for creating an organization.

    Used for POST /organization endpoint.
    """

    name: str = Field(..., min_length=1, max_length=255, description="Organization display name")

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        """Validate that name is not empty or whitespace only."""
        if not v or not v.strip():
            raise ValueError("Organization name cannot be empty")
        return v.strip()


class OrganizationResponse(BaseModel):
    """Response schema for organization endpoints.

    Also used as the ``belongsTo`` part of every user shape.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: str = Field(..., description="Organization unique identifier")
    name: str = Field(..., description="Organization display name")
