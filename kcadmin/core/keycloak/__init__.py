"""Keycloak Admin API client library.

This package provides a modular, testable interface to Keycloak Admin API operations.

Architecture:
- client.py: async HTTP client and token acquisition
- gateway.py: one coroutine per admin REST endpoint
- representations.py: User/Group/Role/Credential codecs
- pagination.py: bounded-page fetching of unbounded collections
- users.py: User lifecycle, roles and group lookups
- groups.py: Group lifecycle, membership and role assignment
- roles.py: Role lifecycle and direct-assignment queries
- effective_roles.py: Effective role holders (direct + via groups)
- concurrency.py: Concurrent lookups that settle before failing
- admin.py: Wiring of all services around one client
- exceptions.py: Typed exceptions for error handling

Usage:
    from kcadmin.core.keycloak import KeycloakAdmin, create_client_with_token, get_service_account_token

    token = get_service_account_token(kc_url, "master", "automation-cli", secret)
    async with KeycloakAdmin(create_client_with_token(kc_url, token)) as admin:
        user = await admin.users.get_user("demo", "alice")
"""
from .admin import KeycloakAdmin
from .client import (
    KeycloakClient,
    get_admin_token,
    get_service_account_token,
    create_client_with_token,
    REQUEST_TIMEOUT,
)
from .effective_roles import EffectiveRoleService
from .exceptions import (
    KeycloakError,
    KeycloakAPIError,
    EntityNotFoundError,
    UserNotFoundError,
    GroupNotFoundError,
    RoleNotFoundError,
    EntityAlreadyExistsError,
    UserAlreadyExistsError,
    GroupAlreadyExistsError,
    RoleAlreadyExistsError,
    InvalidTokenError,
    ClientNotFoundError,
    InvalidArgumentError,
    EffectiveRoleResolutionError,
    translate_create_error,
)
from .gateway import KeycloakAdminGateway
from .groups import GroupService
from .pagination import fetch_all, DEFAULT_BUFFER_SIZE
from .representations import Credential, Group, Role, User
from .roles import RoleService
from .users import UserService

__all__ = [
    # Client
    "KeycloakAdmin",
    "KeycloakClient",
    "KeycloakAdminGateway",
    "get_admin_token",
    "get_service_account_token",
    "create_client_with_token",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "KeycloakAPIError",
    "EntityNotFoundError",
    "UserNotFoundError",
    "GroupNotFoundError",
    "RoleNotFoundError",
    "EntityAlreadyExistsError",
    "UserAlreadyExistsError",
    "GroupAlreadyExistsError",
    "RoleAlreadyExistsError",
    "InvalidTokenError",
    "ClientNotFoundError",
    "InvalidArgumentError",
    "EffectiveRoleResolutionError",
    "translate_create_error",

    # Representations
    "Credential",
    "Group",
    "Role",
    "User",

    # Services
    "UserService",
    "GroupService",
    "RoleService",
    "EffectiveRoleService",

    # Pagination
    "fetch_all",
    "DEFAULT_BUFFER_SIZE",
]
