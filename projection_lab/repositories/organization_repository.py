"""Organization repository."""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.models.organization import Organization


class OrganizationRepository:
    """Typed fetch-by-id and save for organizations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, org_id: str) -> Optional[Organization]:
        """Fetch an organization entity, or None if it does not exist."""
        return await self.db.get(Organization, org_id)

    async def add(self, organization: Organization) -> Organization:
        """Stage a new organization and flush it to obtain its row."""
        self.db.add(organization)
        await self.db.flush()
        return organization
