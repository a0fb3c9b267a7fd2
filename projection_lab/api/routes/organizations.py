"""Organization API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.core.database import get_db
from projection_lab.schemas.errors import ErrorResponse
from projection_lab.schemas.organization import CreateOrganizationRequest, OrganizationResponse
from projection_lab.services.org_service import OrganizationService

router = APIRouter()


@router.post(
    "",
    response_model=OrganizationResponse,
    summary="Create organization",
    description="Creates an organization with a freshly generated id."
)
async def create_organization(
    request: CreateOrganizationRequest,
    db: AsyncSession = Depends(get_db)
) -> OrganizationResponse:
    """Create an organization.

    Args:
        request: Organization creation request
        db: Database session

    Returns:
        Created organization
    """
    service = OrganizationService(db)
    organization = await service.create(name=request.name)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{org_id}",
    response_model=OrganizationResponse,
    responses={404: {"model": ErrorResponse}},
    summary="Get organization details",
)
async def get_organization(
    org_id: str,
    db: AsyncSession = Depends(get_db)
) -> OrganizationResponse:
    """Get organization by ID.

    Raises:
        OrganizationNotFoundError: 404 if organization not found
    """
    service = OrganizationService(db)
    organization = await service.get_by_id(org_id)
    return OrganizationResponse.model_validate(organization)
