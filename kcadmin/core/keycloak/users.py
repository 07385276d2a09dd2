"""Keycloak user management operations."""
from __future__ import annotations
import logging
from typing import List, Optional

from .exceptions import KeycloakAPIError, UserNotFoundError, translate_create_error
from .gateway import KeycloakAdminGateway
from .pagination import DEFAULT_BUFFER_SIZE, fetch_all
from .representations import Credential, Group, Role, User
from .roles import RoleService

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing Keycloak users."""

    def __init__(
        self,
        gateway: KeycloakAdminGateway,
        roles: RoleService,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
    ):
        """Initialize user service.

        Args:
            gateway: Keycloak admin gateway
            roles: Role service used to resolve role names
            buffer_size: Page size used for paginated listings
        """
        self.gateway = gateway
        self.roles = roles
        self.buffer_size = buffer_size

    async def get_user_base(self, realm: str, username: str) -> User:
        """Return the user that matches ``username``, without enrichment.

        Args:
            realm: Realm name
            username: Username to search for

        Returns:
            Base user representation (``roles``/``groups`` are None)

        Raises:
            UserNotFoundError: If the search returns zero or several users
        """
        records = await self.gateway.find_users(realm, username, exact=True)
        if len(records) != 1:
            raise UserNotFoundError(username)
        user = User.from_dict(records[0])
        if user is None:
            raise UserNotFoundError(username)
        return user

    async def get_user(self, realm: str, username: str) -> User:
        """Return the user that matches ``username`` with its roles and groups.

        Roles and groups are fetched one after the other against the
        resolved user id.

        Raises:
            UserNotFoundError: If the search returns zero or several users
        """
        user = await self.get_user_base(realm, username)
        user.roles = Role.all_from(await self.gateway.get_user_roles(realm, user.id))
        user.groups = Group.all_from(await self.gateway.get_user_groups(realm, user.id))
        return user

    async def get_user_roles(self, realm: str, username: str) -> List[Role]:
        user = await self.get_user_base(realm, username)
        return Role.all_from(await self.gateway.get_user_roles(realm, user.id))

    async def get_user_groups(self, realm: str, username: str) -> List[Group]:
        user = await self.get_user_base(realm, username)
        return Group.all_from(await self.gateway.get_user_groups(realm, user.id))

    async def list_users(self, realm: str, offset: int = 0, limit: Optional[int] = None) -> List[User]:
        """Return the users at positions ``[offset, limit)`` of the realm listing."""
        records = await fetch_all(
            lambda first, max: self.gateway.list_users(realm, first, max),
            offset=offset,
            limit=limit,
            buffer_size=self.buffer_size,
        )
        return User.all_from(records)

    async def count_users(self, realm: str) -> int:
        return await self.gateway.count_users(realm)

    async def create_user(self, realm: str, user: User) -> User:
        """Create a user and return it enriched.

        Args:
            realm: Realm name
            user: Upload representation (attach a password with ``with_password``)

        Returns:
            The created user, enriched with roles and groups

        Raises:
            UserAlreadyExistsError: If the username or email already exists
            InvalidTokenError: If the token was rejected
            ClientNotFoundError: If the realm is unknown
            InvalidArgumentError: For any other rejection
            KeycloakAPIError: If no response was received (status 0)
        """
        try:
            await self.gateway.create_user(realm, user.to_dict())
        except KeycloakAPIError as e:
            translated = translate_create_error(e, "user", user.username, realm, self.gateway.client_id)
            if translated is e:
                raise
            raise translated from e
        logger.info("User '%s' created in realm '%s'", user.username, realm)
        return await self.get_user(realm, user.username)

    async def update_user(self, realm: str, username: str, user: User) -> User:
        """Replace the attributes of ``username`` with those of ``user``.

        Returns:
            The updated user, re-fetched and enriched
        """
        current = await self.get_user_base(realm, username)
        await self.gateway.update_user(realm, current.id, user.to_dict())
        logger.info("User '%s' updated in realm '%s'", username, realm)
        return await self.get_user(realm, user.username or username)

    async def delete_user(self, realm: str, username: str) -> bool:
        """Delete a user.

        Returns:
            True if the user was deleted, False if it did not exist
        """
        try:
            user = await self.get_user_base(realm, username)
            await self.gateway.delete_user(realm, user.id)
        except UserNotFoundError:
            return False
        except KeycloakAPIError as e:
            if e.status_code == 404:
                return False
            raise
        logger.info("User '%s' deleted from realm '%s'", username, realm)
        return True

    async def _set_enabled(self, realm: str, username: str, enabled: bool) -> bool:
        try:
            user = await self.get_user_base(realm, username)
        except UserNotFoundError:
            return False
        await self.gateway.update_user(realm, user.id, {"enabled": enabled})
        logger.info("User '%s' %s", username, "enabled" if enabled else "disabled")
        return True

    async def enable_user(self, realm: str, username: str) -> bool:
        return await self._set_enabled(realm, username, True)

    async def disable_user(self, realm: str, username: str) -> bool:
        return await self._set_enabled(realm, username, False)

    async def reset_password(self, realm: str, username: str, password: str, temporary: bool = False) -> bool:
        """Set a new password credential on the user.

        Raises:
            UserNotFoundError: If the user does not exist
        """
        user = await self.get_user_base(realm, username)
        await self.gateway.reset_password(realm, user.id, Credential(value=password, temporary=temporary).to_dict())
        logger.info("Password reset for '%s' (temporary=%s)", username, temporary)
        return True

    async def add_roles_to_user(self, realm: str, username: str, *role_names: str) -> User:
        """Grant realm roles to the user and return it enriched."""
        user = await self.get_user_base(realm, username)
        references = await self.roles.resolve_references(realm, role_names)
        await self.gateway.add_user_roles(realm, user.id, references)
        logger.info("Granted roles %s to '%s'", list(role_names), username)
        return await self.get_user(realm, username)

    async def remove_roles_from_user(self, realm: str, username: str, *role_names: str) -> User:
        """Revoke realm roles from the user and return it enriched."""
        user = await self.get_user_base(realm, username)
        references = await self.roles.resolve_references(realm, role_names)
        await self.gateway.remove_user_roles(realm, user.id, references)
        logger.info("Revoked roles %s from '%s'", list(role_names), username)
        return await self.get_user(realm, username)
