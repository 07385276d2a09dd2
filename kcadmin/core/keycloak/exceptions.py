"""Keycloak-specific exceptions for error handling."""
from __future__ import annotations


class KeycloakError(Exception):
    """Base exception for all Keycloak operations."""
    pass


class KeycloakAPIError(KeycloakError):
    """HTTP error from Keycloak Admin API.

    Attributes:
        status_code: HTTP status code (0 when no response was received)
        message: Error message from response
        endpoint: API endpoint that failed
    """

    def __init__(self, status_code: int, message: str, endpoint: str):
        self.status_code = status_code
        self.message = message
        self.endpoint = endpoint
        super().__init__(f"[{status_code}] {endpoint}: {message}")


class EntityNotFoundError(KeycloakError):
    """Exact lookup by name returned zero or several records."""

    entity = "entity"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"There is no {self.entity} with name '{name}' in the realm")


class UserNotFoundError(EntityNotFoundError):
    """User lookup failed - username does not exist."""
    entity = "user"


class GroupNotFoundError(EntityNotFoundError):
    """Group does not exist in realm."""
    entity = "group"


class RoleNotFoundError(EntityNotFoundError):
    """Role does not exist in realm."""
    entity = "role"


class EntityAlreadyExistsError(KeycloakError):
    """Creation conflicts with an existing entity of the same name."""

    entity = "entity"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"The {self.entity} '{name}' already exists in the realm")


class UserAlreadyExistsError(EntityAlreadyExistsError):
    """User creation failed - username or email already exists."""
    entity = "user"


class GroupAlreadyExistsError(EntityAlreadyExistsError):
    """Group creation failed - group name already exists."""
    entity = "group"


class RoleAlreadyExistsError(EntityAlreadyExistsError):
    """Role creation failed - role name already exists."""
    entity = "role"


class InvalidTokenError(KeycloakError):
    """Bearer token rejected by Keycloak."""

    def __init__(self, message: str = "Token rejected by Keycloak"):
        super().__init__(message)


class ClientNotFoundError(KeycloakError):
    """Client or realm does not exist."""

    def __init__(self, client_id: str, realm: str):
        self.client_id = client_id
        self.realm = realm
        super().__init__(f"There is no client '{client_id}' in realm '{realm}'")


class InvalidArgumentError(KeycloakError):
    """Payload rejected by Keycloak for any other reason."""
    pass


class EffectiveRoleResolutionError(KeycloakError):
    """One or more group membership lookups failed while resolving a role.

    Attributes:
        role_name: Role being resolved
        failures: Every exception raised by the failing branches
    """

    def __init__(self, role_name: str, failures: list[BaseException]):
        self.role_name = role_name
        self.failures = list(failures)
        super().__init__(
            f"{len(self.failures)} group membership lookup(s) failed while resolving role '{role_name}'"
        )


_ALREADY_EXISTS = {
    "user": UserAlreadyExistsError,
    "group": GroupAlreadyExistsError,
    "role": RoleAlreadyExistsError,
}


def translate_create_error(
    error: KeycloakAPIError,
    entity: str,
    name: str,
    realm: str,
    client_id: str,
) -> KeycloakError:
    """Classify a failed create call into the domain taxonomy.

    Args:
        error: Transport failure raised by the create call
        entity: One of "user", "group" or "role"
        name: Name of the entity being created
        realm: Realm name
        client_id: Target application id

    Returns:
        The exception to raise in place of ``error``. Failures that never got
        an HTTP response (status 0) are returned unchanged.
    """
    if error.status_code == 0:
        return error
    if error.status_code == 409:
        return _ALREADY_EXISTS[entity](name)
    if error.status_code == 401:
        return InvalidTokenError()
    if error.status_code == 404:
        return ClientNotFoundError(client_id, realm)
    return InvalidArgumentError(
        f"The {entity} representation provided to Keycloak is incorrect: {error.message}"
    )
