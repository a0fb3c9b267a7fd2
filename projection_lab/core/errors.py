"""Domain errors raised by the service layer.

Repositories report a miss as ``None``; services turn it into one of the typed
errors below, which ``main.py`` maps onto HTTP responses.
"""


class ProjectionLabError(Exception):
    """Base class for all domain errors."""

    error_code = "error"


class EntityNotFoundError(ProjectionLabError):
    """A referenced entity does not exist.

    Attributes:
        entity_kind: Kind of entity that was looked up ("organization", ...)
        entity_id: Identifier that was not found
    """

    entity_kind = "entity"

    def __init__(self, entity_id: str):
        self.entity_id = entity_id
        super().__init__(f"{self.entity_kind.capitalize()} {entity_id} not found")

    @property
    def error_code(self) -> str:
        return f"{self.entity_kind}_not_found"


class OrganizationNotFoundError(EntityNotFoundError):
    entity_kind = "organization"


class UserNotFoundError(EntityNotFoundError):
    entity_kind = "user"


class SupervisorNotFoundError(EntityNotFoundError):
    entity_kind = "supervisor"


class UserAlreadyExistsError(ProjectionLabError):
    """A caller-assigned user id is already taken."""

    error_code = "user_already_exists"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} already exists")


class ConcurrentUpdateError(ProjectionLabError):
    """The user was modified by someone else between read and write."""

    error_code = "concurrent_update"

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User {user_id} was modified concurrently; retry the update")
