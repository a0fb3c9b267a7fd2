"""Pydantic schemas for user write endpoints."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserInput(BaseModel):
    """Request body shared by the user create and update endpoints.

    Every field is optional. On update, a field left out keeps its stored
    value (partial update).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: Optional[str] = Field(
        None,
        min_length=1,
        max_length=36,
        description="Caller-assigned user id (create only, generated when omitted)"
    )
    given_name: Optional[str] = Field(None, max_length=255, description="Given name")
    family_name: Optional[str] = Field(None, max_length=255, description="Family name")
    supervisor_id: Optional[str] = Field(
        None,
        description="Id of the supervising user"
    )
