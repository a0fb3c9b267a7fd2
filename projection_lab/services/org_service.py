"""Organization service for creating and reading organizations."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.core.errors import OrganizationNotFoundError
from projection_lab.core.structured_logging import log_json
from projection_lab.models.organization import Organization
from projection_lab.repositories.organization_repository import OrganizationRepository

logger = logging.getLogger(__name__)


class OrganizationService:
    """Service for creating and reading organizations."""

    def __init__(self, db: AsyncSession):
        """Initialize organization service.

        Args:
            db: Database session
        """
        self.db = db
        self.organizations = OrganizationRepository(db)

    async def create(self, name: str) -> Organization:
        """Create an organization with a freshly generated id.

        No uniqueness check is made on the name.

        Args:
            name: Organization name

        Returns:
            Created Organization instance
        """
        organization = await self.organizations.add(Organization(name=name))
        await self.db.commit()

        log_json(
            logger,
            logging.INFO,
            "organization_created",
            org_id=organization.id,
        )
        return organization

    async def get_by_id(self, org_id: str) -> Organization:
        """Get organization by ID.

        Args:
            org_id: Organization ID

        Returns:
            Organization instance

        Raises:
            OrganizationNotFoundError: if the organization does not exist
        """
        organization = await self.organizations.get(org_id)
        if organization is None:
            raise OrganizationNotFoundError(org_id)
        return organization
