"""Keycloak role management operations."""
from __future__ import annotations
import logging
from typing import Iterable, List, Optional

from .concurrency import gather_settled
from .exceptions import KeycloakAPIError, RoleNotFoundError, translate_create_error
from .gateway import KeycloakAdminGateway
from .pagination import DEFAULT_BUFFER_SIZE, fetch_all
from .representations import Group, Role, User

logger = logging.getLogger(__name__)


class RoleService:
    """Service for managing Keycloak realm roles."""

    def __init__(self, gateway: KeycloakAdminGateway, buffer_size: int = DEFAULT_BUFFER_SIZE):
        """Initialize role service.

        Args:
            gateway: Keycloak admin gateway
            buffer_size: Page size used for paginated listings
        """
        self.gateway = gateway
        self.buffer_size = buffer_size

    async def get_role(self, realm: str, role_name: str) -> Role:
        """Return the role whose name exactly matches ``role_name``.

        Keycloak's role search is substring based, so results are narrowed to
        exact name matches before the exactly-one rule is applied.

        Raises:
            RoleNotFoundError: If zero or several roles match
        """
        records = await self.gateway.find_roles(realm, role_name)
        matches = [record for record in records if record.get("name") == role_name]
        if len(matches) != 1:
            raise RoleNotFoundError(role_name)
        role = Role.from_dict(matches[0])
        if role is None:
            raise RoleNotFoundError(role_name)
        return role

    async def list_roles(self, realm: str) -> List[Role]:
        return Role.all_from(await self.gateway.list_roles(realm))

    async def create_role(self, realm: str, role_name: str, description: Optional[str] = None) -> Role:
        """Create a realm role and return it as stored by Keycloak.

        Raises:
            RoleAlreadyExistsError: If the role already exists
            InvalidTokenError: If the token was rejected
            ClientNotFoundError: If the realm is unknown
            InvalidArgumentError: For any other rejection
        """
        payload = Role(name=role_name, description=description).to_dict()
        try:
            await self.gateway.create_role(realm, payload)
        except KeycloakAPIError as e:
            translated = translate_create_error(e, "role", role_name, realm, self.gateway.client_id)
            if translated is e:
                raise
            raise translated from e
        logger.info("Role '%s' created in realm '%s'", role_name, realm)
        return await self.get_role(realm, role_name)

    async def update_role(self, realm: str, role_name: str, description: Optional[str]) -> Role:
        role = await self.get_role(realm, role_name)
        await self.gateway.update_role(realm, role.id, Role(name=role_name, description=description).to_dict())
        logger.info("Role '%s' updated in realm '%s'", role_name, realm)
        return await self.get_role(realm, role_name)

    async def delete_role(self, realm: str, role_name: str) -> bool:
        """Delete a role.

        Returns:
            True if the role was deleted, False if it did not exist
        """
        try:
            role = await self.get_role(realm, role_name)
            await self.gateway.delete_role(realm, role.id)
        except RoleNotFoundError:
            return False
        except KeycloakAPIError as e:
            if e.status_code == 404:
                return False
            raise
        logger.info("Role '%s' deleted from realm '%s'", role_name, realm)
        return True

    async def resolve_references(self, realm: str, role_names: Iterable[str]) -> List[dict]:
        """Resolve role names to the ``{id, name}`` pairs Keycloak expects.

        Lookups run concurrently and all settle before the first failure is
        raised; duplicates in ``role_names`` are resolved once.

        Raises:
            RoleNotFoundError: If any name does not resolve to exactly one role
        """
        names = list(dict.fromkeys(role_names))
        roles = await gather_settled(*(self.get_role(realm, name) for name in names))
        return [role.reference() for role in roles]

    async def get_users_with_role(self, realm: str, role_name: str) -> List[User]:
        """Return users with ``role_name`` directly assigned (not effective)."""
        records = await fetch_all(
            lambda first, max: self.gateway.get_role_users(realm, role_name, first, max),
            buffer_size=self.buffer_size,
        )
        return User.all_from(records)

    async def get_groups_with_role(self, realm: str, role_name: str) -> List[Group]:
        """Return groups with ``role_name`` directly assigned."""
        records = await fetch_all(
            lambda first, max: self.gateway.get_role_groups(realm, role_name, first, max),
            buffer_size=self.buffer_size,
        )
        return Group.all_from(records)
