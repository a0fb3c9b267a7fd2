"""Integration tests for whole-entity and selective-property user updates."""
import pytest
from httpx import AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.core.errors import ConcurrentUpdateError
from projection_lab.models.user import User
from projection_lab.schemas.user import UserInput
from projection_lab.services.user_service import UserService


@pytest.mark.asyncio
async def test_update_supervisor_keeps_names(
    client: AsyncClient,
    test_org,
    supervision_chain: dict[str, str],
):
    """Changing only the supervisor leaves the names untouched."""
    siri_id = supervision_chain["Siri"]
    before = (await client.get(f"/organization/{test_org.id}/users/{siri_id}")).json()

    response = await client.put(
        f"/organization/{test_org.id}/users/withprojections/a/{siri_id}",
        json={"supervisorId": supervision_chain["Kari"]},
    )
    assert response.status_code == 200

    after = (await client.get(f"/organization/{test_org.id}/users/{siri_id}")).json()
    assert after["belongsTo"]["id"] == test_org.id
    assert after["supervisedBy"]["id"] == supervision_chain["Kari"]
    assert after["supervisedBy"]["supervisedBy"]["id"] == supervision_chain["Ola"]
    assert after["givenName"] == before["givenName"] == "Siri"
    assert after["familyName"] == before["familyName"] == "Nordmann"


@pytest.mark.asyncio
async def test_update_whole_user(
    client: AsyncClient,
    test_org,
    supervision_chain: dict[str, str],
):
    siri_id = supervision_chain["Siri"]

    response = await client.put(
        f"/organization/{test_org.id}/users/withprojections/a/{siri_id}",
        json={
            "givenName": "new",
            "familyName": "name",
            "supervisorId": supervision_chain["Kari"],
        },
    )
    assert response.status_code == 200

    user = (await client.get(f"/organization/{test_org.id}/users/{siri_id}")).json()
    assert user["belongsTo"]["id"] == test_org.id
    assert user["supervisedBy"]["id"] == supervision_chain["Kari"]
    assert user["givenName"] == "new"
    assert user["familyName"] == "name"


@pytest.mark.asyncio
async def test_update_names_keeps_supervisor(
    client: AsyncClient,
    test_org,
    supervision_chain: dict[str, str],
):
    siri_id = supervision_chain["Siri"]

    response = await client.put(
        f"/organization/{test_org.id}/users/withprojections/a/{siri_id}",
        json={"givenName": "new", "familyName": "name"},
    )
    assert response.status_code == 200

    user = (await client.get(f"/organization/{test_org.id}/users/{siri_id}")).json()
    assert user["supervisedBy"]["id"] == supervision_chain["Hans"]
    assert user["givenName"] == "new"
    assert user["familyName"] == "name"


@pytest.mark.asyncio
async def test_property_update_does_not_touch_relationships(
    client: AsyncClient,
    test_org,
):
    """Kari supervises Ola; a familyName-only update of Ola keeps that link."""
    kari = await client.post(
        f"/organization/{test_org.id}/users",
        json={"givenName": "Kari", "familyName": "Nordmann"},
    )
    ola = await client.post(
        f"/organization/{test_org.id}/users",
        json={"givenName": "Ola", "familyName": "Ola", "supervisorId": kari.json()["id"]},
    )
    ola_id = ola.json()["id"]

    response = await client.patch(
        f"/organization/{test_org.id}/users/{ola_id}",
        json={"familyName": "Nordmann"},
    )
    assert response.status_code == 200

    stored = (await client.get(f"/organization/{test_org.id}/users/{ola_id}")).json()
    assert stored["familyName"] == "Nordmann"
    assert stored["givenName"] == "Ola"
    assert stored["supervisedBy"]["id"] == kari.json()["id"]
    assert stored["belongsTo"]["id"] == test_org.id


@pytest.mark.asyncio
async def test_property_update_ignores_supervisor(
    db: AsyncSession,
    test_org,
    supervision_chain: dict[str, str],
):
    service = UserService(db)

    updated = await service.update_properties(
        test_org.id,
        supervision_chain["Siri"],
        UserInput(given_name="Sigrid", supervisor_id=supervision_chain["Ola"]),
    )

    assert updated.given_name == "Sigrid"
    assert updated.supervised_by.id == supervision_chain["Hans"]
    stored = await service.find_projection_custom_query(test_org.id, supervision_chain["Siri"])
    assert stored.model_dump() == updated.model_dump()


@pytest.mark.asyncio
async def test_property_update_then_whole_update(
    db: AsyncSession,
    test_org,
    supervision_chain: dict[str, str],
):
    """A column-restricted update does not make the next entity update stale."""
    service = UserService(db)
    siri_id = supervision_chain["Siri"]

    await service.update_properties(test_org.id, siri_id, UserInput(family_name="Hansen"))
    updated = await service.update_whole_user(
        test_org.id, siri_id, UserInput(supervisor_id=supervision_chain["Kari"])
    )

    assert updated.family_name == "Hansen"
    assert updated.supervised_by.id == supervision_chain["Kari"]


@pytest.mark.asyncio
async def test_stale_whole_update_is_rejected(
    db: AsyncSession,
    test_org,
    supervision_chain: dict[str, str],
):
    """A write by another party between read and save yields ConcurrentUpdateError."""
    siri_id = supervision_chain["Siri"]
    # The session keeps the version it read; the raw statement bumps it behind
    # the identity map, like a concurrent writer would
    held = await db.get(User, siri_id)
    assert held.version == 1
    await db.execute(
        text("UPDATE users SET version = version + 1 WHERE id = :user_id"),
        {"user_id": siri_id},
    )

    with pytest.raises(ConcurrentUpdateError):
        await UserService(db).update_whole_user(
            test_org.id, siri_id, UserInput(given_name="Sigrid")
        )


@pytest.mark.asyncio
async def test_stale_whole_update_returns_conflict(
    client: AsyncClient,
    db: AsyncSession,
    test_org,
    supervision_chain: dict[str, str],
):
    siri_id = supervision_chain["Siri"]
    held = await db.get(User, siri_id)
    assert held.version == 1
    await db.execute(
        text("UPDATE users SET version = version + 1 WHERE id = :user_id"),
        {"user_id": siri_id},
    )

    response = await client.put(
        f"/organization/{test_org.id}/users/withprojections/a/{siri_id}",
        json={"givenName": "Sigrid"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "concurrent_update"
