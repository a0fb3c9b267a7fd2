"""User service: create, update and look up users under each projection strategy."""
import logging
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from projection_lab.core.errors import (
    ConcurrentUpdateError,
    SupervisorNotFoundError,
    UserAlreadyExistsError,
    UserNotFoundError,
)
from projection_lab.core.metrics import observe_user_created
from projection_lab.core.request_context import current_round_trip_counter
from projection_lab.core.structured_logging import log_json
from projection_lab.models.base import new_id
from projection_lab.models.enums import CreationStrategy, LookupSource
from projection_lab.models.user import User
from projection_lab.repositories.user_repository import UserRepository
from projection_lab.schemas.organization import OrganizationResponse
from projection_lab.schemas.projections import (
    UserDTOProjection,
    UserIdDTO,
    UserIdProjection,
    UserProjection,
    UserResponse,
)
from projection_lab.schemas.user import UserInput
from projection_lab.services.org_service import OrganizationService

logger = logging.getLogger(__name__)

CreatedUser = Union[UserResponse, UserProjection, UserDTOProjection]


class UserService:
    """Service for user creation, update and lookup.

    The creation methods are interchangeable: for the same input they leave
    the same stored state and differ only in how many round trips they cost.
    """

    def __init__(self, db: AsyncSession):
        """Initialize user service.

        Args:
            db: Database session
        """
        self.db = db
        self.users = UserRepository(db)
        self.organizations = OrganizationService(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _new_user_id(self, body: UserInput) -> str:
        if body.id is None:
            return new_id()
        if await self.users.find_id_projection(body.id) is not None:
            raise UserAlreadyExistsError(body.id)
        return body.id

    async def _require_supervisor_entity(self, supervisor_id: str) -> User:
        supervisor = await self.users.get(supervisor_id)
        if supervisor is None:
            raise SupervisorNotFoundError(supervisor_id)
        return supervisor

    async def _require_supervisor_id(self, supervisor_id: str) -> UserIdProjection:
        supervisor = await self.users.find_id_projection(supervisor_id)
        if supervisor is None:
            raise SupervisorNotFoundError(supervisor_id)
        return supervisor

    async def _user_not_found(self, org_id: str, user_id: str) -> UserNotFoundError:
        """Error for a user miss; raises OrganizationNotFoundError if the org is gone."""
        await self.organizations.get_by_id(org_id)
        return UserNotFoundError(user_id)

    async def _require_user_entity(self, org_id: str, user_id: str) -> User:
        user = await self.users.get(user_id)
        if user is None or user.organization_id != org_id:
            raise await self._user_not_found(org_id, user_id)
        return user

    def _log_user_event(self, event: str, **fields) -> None:
        counter = current_round_trip_counter()
        log_json(
            logger,
            logging.INFO,
            event,
            round_trips=counter.count if counter is not None else None,
            **fields,
        )

    def _record_created(self, user_id: str, org_id: str, strategy: CreationStrategy) -> None:
        counter = current_round_trip_counter()
        observe_user_created(strategy.value, counter.count if counter is not None else None)
        self._log_user_event(
            "user_created",
            user_id=user_id,
            org_id=org_id,
            strategy=strategy.value,
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create(self, org_id: str, body: UserInput) -> UserResponse:
        """Create a user from full entities (baseline).

        Args:
            org_id: Organization the user belongs to
            body: Names, optional caller-assigned id and optional supervisor id

        Returns:
            The saved user with its supervision chain resolved

        Raises:
            OrganizationNotFoundError: if the organization does not exist
            SupervisorNotFoundError: if supervisor_id is given but does not exist
            UserAlreadyExistsError: if a caller-assigned id is taken
        """
        organization = await self.organizations.get_by_id(org_id)
        user = User(
            id=await self._new_user_id(body),
            given_name=body.given_name,
            family_name=body.family_name,
        )
        user.organization = organization

        if body.supervisor_id is not None:
            supervisor = await self._require_supervisor_entity(body.supervisor_id)
            user.supervisor_id = supervisor.id

        await self.users.add(user)
        await self.db.commit()

        self._record_created(user.id, org_id, CreationStrategy.BASELINE)
        return await self.users.find_graph(user.id)

    async def create_with_projection_a(self, org_id: str, body: UserInput) -> UserProjection:
        """Save the entity, read it back as a projection, then link the supervisor.

        The supervisor is resolved as an id-only projection and the link is
        written with a shape-constrained save.
        """
        organization = await self.organizations.get_by_id(org_id)
        user = User(
            id=await self._new_user_id(body),
            given_name=body.given_name,
            family_name=body.family_name,
        )
        user.organization = organization
        await self.users.add(user)

        projection = await self.users.find_projection(user.id)
        if body.supervisor_id is not None:
            projection.supervised_by = await self._require_supervisor_id(body.supervisor_id)
            projection = await self.users.save_projection(projection)

        await self.db.commit()
        self._record_created(projection.id, org_id, CreationStrategy.A)
        return projection

    async def create_with_projection_b(self, org_id: str, body: UserInput) -> UserProjection:
        """Build a projection in memory around an id-only supervisor and save it."""
        organization = await self.organizations.get_by_id(org_id)
        user_id = await self._new_user_id(body)
        supervisor = None
        if body.supervisor_id is not None:
            supervisor = await self._require_supervisor_id(body.supervisor_id)

        projection = UserProjection(
            id=user_id,
            given_name=body.given_name,
            family_name=body.family_name,
            belongs_to=OrganizationResponse.model_validate(organization),
            supervised_by=supervisor,
        )
        saved = await self.users.save_projection(projection)
        await self.db.commit()

        self._record_created(saved.id, org_id, CreationStrategy.B)
        return saved

    async def create_with_projection_c(self, org_id: str, body: UserInput) -> UserDTOProjection:
        """Build a detached DTO whose supervisor is a hand-made id-only DTO and save it."""
        organization = await self.organizations.get_by_id(org_id)
        user_id = await self._new_user_id(body)
        supervisor_dto = None
        if body.supervisor_id is not None:
            supervisor = await self._require_supervisor_id(body.supervisor_id)
            supervisor_dto = UserIdDTO(id=supervisor.id)

        dto = UserDTOProjection(
            id=user_id,
            given_name=body.given_name,
            family_name=body.family_name,
            belongs_to=OrganizationResponse.model_validate(organization),
            supervised_by=supervisor_dto,
        )
        saved = await self.users.save_projection(dto)
        await self.db.commit()

        self._record_created(saved.id, org_id, CreationStrategy.C)
        return saved

    async def create_with_projection_d(self, org_id: str, body: UserInput) -> UserProjection:
        """Attach a fully loaded supervisor entity, save, and return the projection."""
        organization = await self.organizations.get_by_id(org_id)
        user = User(
            id=await self._new_user_id(body),
            given_name=body.given_name,
            family_name=body.family_name,
        )
        user.organization = organization
        if body.supervisor_id is not None:
            supervisor = await self._require_supervisor_entity(body.supervisor_id)
            user.supervisor_id = supervisor.id

        await self.users.add(user)
        await self.db.commit()

        self._record_created(user.id, org_id, CreationStrategy.D)
        return await self.users.find_projection(user.id)

    async def create_with_strategy(
        self,
        org_id: str,
        body: UserInput,
        strategy: CreationStrategy,
    ) -> CreatedUser:
        """Create a user with the given strategy."""
        handlers = {
            CreationStrategy.BASELINE: self.create,
            CreationStrategy.A: self.create_with_projection_a,
            CreationStrategy.B: self.create_with_projection_b,
            CreationStrategy.C: self.create_with_projection_c,
            CreationStrategy.D: self.create_with_projection_d,
        }
        return await handlers[strategy](org_id, body)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    async def update_whole_user(
        self,
        org_id: str,
        user_id: str,
        body: UserInput,
    ) -> UserProjection:
        """Overlay the given fields onto the stored user and save the whole entity.

        Fields left out of ``body`` keep their stored value; the supervisor is
        replaced only when ``supervisor_id`` is given.

        Raises:
            UserNotFoundError: if the user does not exist in the organization
            OrganizationNotFoundError: if the organization does not exist
            SupervisorNotFoundError: if the new supervisor does not exist
            ConcurrentUpdateError: if the user changed since it was read
        """
        user = await self._require_user_entity(org_id, user_id)

        changes = {}
        if body.given_name is not None:
            user.given_name = body.given_name
            changes["given_name"] = body.given_name
        if body.family_name is not None:
            user.family_name = body.family_name
            changes["family_name"] = body.family_name
        if body.supervisor_id is not None:
            supervisor = await self._require_supervisor_id(body.supervisor_id)
            user.supervisor_id = supervisor.id
            changes["supervisor_id"] = supervisor.id

        try:
            await self.db.flush()
        except StaleDataError as exc:
            await self.db.rollback()
            raise ConcurrentUpdateError(user_id) from exc
        await self.db.commit()

        self._log_user_event(
            "user_updated",
            user_id=user_id,
            org_id=org_id,
            mode="whole",
            fields=sorted(changes),
        )
        return await self.users.find_projection(user_id)

    async def update_properties(
        self,
        org_id: str,
        user_id: str,
        body: UserInput,
    ) -> UserProjection:
        """Update only the scalar properties of a user.

        Relationships are never written: ``supervisor_id`` in ``body`` is
        ignored and the statement touches only the name columns.

        Raises:
            UserNotFoundError: if the user does not exist in the organization
            OrganizationNotFoundError: if the organization does not exist
        """
        projection = await self.find_projection(org_id, user_id)

        values = {}
        if body.given_name is not None:
            values["given_name"] = body.given_name
        if body.family_name is not None:
            values["family_name"] = body.family_name

        if values:
            await self.users.update_properties(user_id, values)
            await self.db.commit()
            projection = projection.model_copy(update=values)

        self._log_user_event(
            "user_updated",
            user_id=user_id,
            org_id=org_id,
            mode="properties",
            fields=sorted(values),
        )
        return projection

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    async def find_user(
        self,
        org_id: str,
        user_id: str,
        source: LookupSource = LookupSource.ENTITY,
    ) -> UserResponse:
        """Get a user with its supervision chain resolved.

        Args:
            org_id: Organization the user must belong to
            user_id: User ID
            source: ENTITY walks the chain one lookup per level, QUERY uses one
                recursive statement

        Raises:
            UserNotFoundError: if the user does not exist in the organization
            OrganizationNotFoundError: if the organization does not exist
        """
        if source is LookupSource.QUERY:
            user = await self.users.find_graph_custom_query(user_id)
        else:
            user = await self.users.find_graph(user_id)
        if user is None or user.belongs_to.id != org_id:
            raise await self._user_not_found(org_id, user_id)
        return user

    async def find_user_custom_query(self, org_id: str, user_id: str) -> UserResponse:
        return await self.find_user(org_id, user_id, LookupSource.QUERY)

    async def find_projection(
        self,
        org_id: str,
        user_id: str,
        source: LookupSource = LookupSource.ENTITY,
    ) -> UserProjection:
        """Get the projection view of a user.

        Raises:
            UserNotFoundError: if the user does not exist in the organization
            OrganizationNotFoundError: if the organization does not exist
        """
        projection: Optional[UserProjection]
        if source is LookupSource.QUERY:
            projection = await self.users.find_projection_custom_query(user_id)
        else:
            projection = await self.users.find_projection(user_id)
        if projection is None or projection.belongs_to.id != org_id:
            raise await self._user_not_found(org_id, user_id)
        return projection

    async def find_projection_custom_query(self, org_id: str, user_id: str) -> UserProjection:
        return await self.find_projection(org_id, user_id, LookupSource.QUERY)
