"""Contract tests for organization endpoints."""
import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.models.organization import Organization


@pytest.mark.asyncio
async def test_create_organization_success(client: AsyncClient, db: AsyncSession):
    """Test POST /organization creates an organization with a generated id.

    Contract: POST /organization
    - Request: { name }
    - Response: 200 { id, name }
    """
    response = await client.post("/organization", json={"name": "MyOrg"})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "MyOrg"
    assert data["id"]

    result = await db.execute(select(Organization).where(Organization.id == data["id"]))
    org = result.scalar_one_or_none()
    assert org is not None
    assert org.name == "MyOrg"


@pytest.mark.asyncio
async def test_create_organization_allows_duplicate_names(client: AsyncClient):
    """Names are not unique; each create yields a new id."""
    first = await client.post("/organization", json={"name": "MyOrg"})
    second = await client.post("/organization", json={"name": "MyOrg"})

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] != second.json()["id"]


@pytest.mark.asyncio
async def test_create_organization_blank_name_fails(client: AsyncClient):
    response = await client.post("/organization", json={"name": "   "})

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_organization(client: AsyncClient, test_org: Organization):
    response = await client.get(f"/organization/{test_org.id}")

    assert response.status_code == 200
    assert response.json() == {"id": test_org.id, "name": "MyOrg"}


@pytest.mark.asyncio
async def test_get_organization_not_found(client: AsyncClient):
    response = await client.get("/organization/does-not-exist")

    assert response.status_code == 404
    data = response.json()
    assert data["error"] == "organization_not_found"
    assert data["details"] == {"entity": "organization", "id": "does-not-exist"}
