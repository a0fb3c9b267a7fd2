"""Error response schema."""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response schema.

    Used for all domain error responses (404, 409) across the API.
    """

    error: str = Field(
        ...,
        description="Error type identifier",
        examples=["organization_not_found", "user_not_found", "supervisor_not_found"]
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["User 4f1c... not found"]
    )
    details: Optional[dict] = Field(
        None,
        description="Additional error context (entity kind and id for lookups)",
        examples=[{"entity": "supervisor", "id": "4f1c2d9e-..."}]
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "error": "supervisor_not_found",
                    "message": "Supervisor 4f1c2d9e-0a8b-4a53-9b36-2f7f1d0c8e11 not found",
                    "details": {
                        "entity": "supervisor",
                        "id": "4f1c2d9e-0a8b-4a53-9b36-2f7f1d0c8e11"
                    }
                },
                {
                    "error": "concurrent_update",
                    "message": "User 4f1c2d9e-0a8b-4a53-9b36-2f7f1d0c8e11 was modified concurrently; retry the update"
                }
            ]
        }
    )
