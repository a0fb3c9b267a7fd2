"""User endpoints, nested under their organization.

Each creation strategy is reachable under ``/withprojections/{strategy}`` so
their responses and round-trip headers can be compared side by side.
"""
from typing import Literal, Union

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.core.database import get_db
from projection_lab.models.enums import CreationStrategy, LookupSource
from projection_lab.schemas.errors import ErrorResponse
from projection_lab.schemas.projections import (
    UserDTOProjection,
    UserProjection,
    UserResponse,
)
from projection_lab.schemas.user import UserInput
from projection_lab.services.user_service import UserService

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse}}
NOT_FOUND_OR_CONFLICT = {404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}

# Baseline creation is POST "", so only the projection strategies appear here
ProjectionStrategy = Literal["a", "b", "c", "d"]


@router.post("", response_model=UserResponse, responses=NOT_FOUND_OR_CONFLICT)
async def create_user(
    org_id: str,
    body: UserInput,
    db: AsyncSession = Depends(get_db),
):
    """Create a user from full entities and return it with its supervision chain."""
    return await UserService(db).create(org_id, body)


@router.put(
    "/withprojections/a/{user_id}",
    response_model=UserProjection,
    responses=NOT_FOUND_OR_CONFLICT,
)
async def update_user_with_projection(
    org_id: str,
    user_id: str,
    body: UserInput,
    db: AsyncSession = Depends(get_db),
):
    """Partially update a user and re-save the whole entity.

    Omitted fields keep their stored value; the supervisor changes only when
    ``supervisorId`` is given.
    """
    return await UserService(db).update_whole_user(org_id, user_id, body)


@router.post(
    "/withprojections/{strategy}",
    response_model=Union[UserProjection, UserDTOProjection],
    responses=NOT_FOUND_OR_CONFLICT,
)
async def create_user_with_strategy(
    org_id: str,
    strategy: ProjectionStrategy,
    body: UserInput,
    db: AsyncSession = Depends(get_db),
):
    """Create a user with the selected projection strategy (a, b, c, d)."""
    return await UserService(db).create_with_strategy(
        org_id, body, CreationStrategy(strategy)
    )


@router.get("/{user_id}", response_model=UserResponse, responses=NOT_FOUND)
async def get_user(
    org_id: str,
    user_id: str,
    source: LookupSource = LookupSource.ENTITY,
    db: AsyncSession = Depends(get_db),
):
    """Get a user with its supervision chain resolved.

    ``source=query`` resolves the chain with a single recursive query.
    """
    return await UserService(db).find_user(org_id, user_id, source)


@router.get("/{user_id}/projection", response_model=UserProjection, responses=NOT_FOUND)
async def get_user_projection(
    org_id: str,
    user_id: str,
    source: LookupSource = LookupSource.ENTITY,
    db: AsyncSession = Depends(get_db),
):
    """Get the projection view of a user.

    ``source=query`` reads it with a hand-written query.
    """
    return await UserService(db).find_projection(org_id, user_id, source)


@router.patch("/{user_id}", response_model=UserProjection, responses=NOT_FOUND)
async def update_user_properties(
    org_id: str,
    user_id: str,
    body: UserInput,
    db: AsyncSession = Depends(get_db),
):
    """Update only the name properties of a user, leaving relationships untouched."""
    return await UserService(db).update_properties(org_id, user_id, body)
