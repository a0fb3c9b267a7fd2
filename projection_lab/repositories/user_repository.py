"""User repository.

Maps rows of the ``users`` table onto entities and projection shapes. The
supervision chain is never loaded implicitly; it is walked either hop by hop
(``find_graph``) or with one recursive statement (``find_graph_custom_query``).
Every lookup returns ``None`` on a miss.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

from sqlalchemy import insert, select, text, update
from sqlalchemy.ext.asyncio import AsyncSession

from projection_lab.models.organization import Organization
from projection_lab.models.user import User
from projection_lab.schemas.organization import OrganizationResponse
from projection_lab.schemas.projections import (
    SavableProjection,
    UserIdProjection,
    UserProjection,
    UserResponse,
)

FIND_ID_PROJECTION_SQL = text(
    """
    SELECT u.id
    FROM users AS u
    WHERE u.id = :user_id
    """
)

FIND_PROJECTION_SQL = text(
    """
    SELECT u.id, u.given_name, u.family_name, u.supervisor_id,
           o.id AS organization_id, o.name AS organization_name
    FROM users AS u
    JOIN organizations AS o ON o.id = u.organization_id
    WHERE u.id = :user_id
    """
)

# UNION (not UNION ALL) drops rows already produced, so a supervision cycle
# terminates the recursion instead of looping.
FIND_SUPERVISION_CHAIN_SQL = text(
    """
    WITH RECURSIVE chain(id, given_name, family_name, organization_id, supervisor_id) AS (
        SELECT id, given_name, family_name, organization_id, supervisor_id
        FROM users
        WHERE id = :user_id
        UNION
        SELECT u.id, u.given_name, u.family_name, u.organization_id, u.supervisor_id
        FROM users AS u
        JOIN chain AS c ON u.id = c.supervisor_id
    )
    SELECT c.id, c.given_name, c.family_name, c.supervisor_id,
           c.organization_id, o.name AS organization_name
    FROM chain AS c
    JOIN organizations AS o ON o.id = c.organization_id
    """
)


def projection_from_row(row: Mapping[str, Any]) -> UserProjection:
    """Build a ``UserProjection`` from a flat projection row."""
    supervisor_id = row["supervisor_id"]
    return UserProjection(
        id=row["id"],
        given_name=row["given_name"],
        family_name=row["family_name"],
        belongs_to=OrganizationResponse(
            id=row["organization_id"],
            name=row["organization_name"],
        ),
        supervised_by=UserIdProjection(id=supervisor_id) if supervisor_id else None,
    )


def assemble_user_graph(
    rows: Mapping[str, Mapping[str, Any]],
    root_id: str,
) -> Optional[UserResponse]:
    """Link flat user rows into a nested ``UserResponse`` chain.

    Args:
        rows: Flat rows keyed by user id
        root_id: Id of the user at the bottom of the chain

    Returns:
        The root user with ``supervised_by`` nested up to the top of the chain,
        or None if ``root_id`` is not among the rows.

        On a supervision cycle the chain closes with the first user seen
        twice: that node repeats an id from further down and its own
        ``supervised_by`` is not expanded again. Every other node carries its
        stored supervisor.
    """
    chain: list[Mapping[str, Any]] = []
    seen: set[str] = set()
    current = root_id
    while current is not None and current in rows and current not in seen:
        seen.add(current)
        row = rows[current]
        chain.append(row)
        current = row["supervisor_id"]

    if current in seen:
        chain.append(rows[current])

    node: Optional[UserResponse] = None
    for row in reversed(chain):
        node = UserResponse(
            id=row["id"],
            given_name=row["given_name"],
            family_name=row["family_name"],
            belongs_to=OrganizationResponse(
                id=row["organization_id"],
                name=row["organization_name"],
            ),
            supervised_by=node,
        )
    return node


def _row_from_entity(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "given_name": user.given_name,
        "family_name": user.family_name,
        "supervisor_id": user.supervisor_id,
        "organization_id": user.organization_id,
        "organization_name": user.organization.name,
    }


class UserRepository:
    """Query-capable accessor over the ``users`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: str) -> Optional[User]:
        """Fetch a user entity (with its organization), or None."""
        return await self.db.get(User, user_id)

    async def add(self, user: User) -> User:
        """Stage a new user entity and flush it."""
        self.db.add(user)
        await self.db.flush()
        return user

    async def find_id_projection(self, user_id: str) -> Optional[UserIdProjection]:
        """Hand-written query returning only the id of a user."""
        result = await self.db.execute(FIND_ID_PROJECTION_SQL, {"user_id": user_id})
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return UserIdProjection(id=row["id"])

    async def find_projection(self, user_id: str) -> Optional[UserProjection]:
        """Projection built from an ORM column query."""
        stmt = (
            select(
                User.id,
                User.given_name,
                User.family_name,
                User.supervisor_id,
                Organization.id.label("organization_id"),
                Organization.name.label("organization_name"),
            )
            .join(Organization, User.organization_id == Organization.id)
            .where(User.id == user_id)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return projection_from_row(row)

    async def find_projection_custom_query(self, user_id: str) -> Optional[UserProjection]:
        """Projection built from a hand-written SQL query."""
        result = await self.db.execute(FIND_PROJECTION_SQL, {"user_id": user_id})
        row = result.mappings().one_or_none()
        if row is None:
            return None
        return projection_from_row(row)

    async def find_graph(self, user_id: str) -> Optional[UserResponse]:
        """Resolve the user and its supervision chain one entity at a time.

        Issues one lookup per level that is not already in the session's
        identity map.
        """
        rows: dict[str, dict[str, Any]] = {}
        current: Optional[str] = user_id
        while current is not None and current not in rows:
            user = await self.get(current)
            if user is None:
                break
            rows[current] = _row_from_entity(user)
            current = user.supervisor_id
        return assemble_user_graph(rows, user_id)

    async def find_graph_custom_query(self, user_id: str) -> Optional[UserResponse]:
        """Resolve the user and its whole supervision chain in one statement."""
        result = await self.db.execute(FIND_SUPERVISION_CHAIN_SQL, {"user_id": user_id})
        rows = {row["id"]: row for row in result.mappings().all()}
        return assemble_user_graph(rows, user_id)

    async def save_projection(self, projection: SavableProjection) -> SavableProjection:
        """Shape-constrained save of a projection.

        Writes only the columns the projection carries. The row is updated
        (bumping its version) when it exists and inserted otherwise.
        """
        values = {
            "given_name": projection.given_name,
            "family_name": projection.family_name,
            "organization_id": projection.belongs_to.id,
            "supervisor_id": (
                projection.supervised_by.id if projection.supervised_by else None
            ),
        }
        result = await self.db.execute(
            update(User)
            .where(User.id == projection.id)
            .values(version=User.version + 1, **values)
        )
        if result.rowcount == 0:
            await self.db.execute(insert(User).values(id=projection.id, **values))
        return projection

    async def update_properties(self, user_id: str, values: dict[str, Any]) -> bool:
        """Column-restricted update of scalar user properties.

        Only the keys in ``values`` are written; relationship columns are
        rejected.

        Returns:
            True if a row was updated
        """
        forbidden = {"id", "organization_id", "supervisor_id", "version"} & values.keys()
        if forbidden:
            raise ValueError(f"Not a scalar user property: {', '.join(sorted(forbidden))}")

        result = await self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(version=User.version + 1, **values)
        )
        return result.rowcount > 0
