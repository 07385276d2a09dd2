"""Keycloak group management operations."""
from __future__ import annotations
import logging
from typing import Dict, List, Optional

from .concurrency import gather_settled
from .exceptions import GroupNotFoundError, KeycloakAPIError, translate_create_error
from .gateway import KeycloakAdminGateway
from .pagination import DEFAULT_BUFFER_SIZE, fetch_all
from .representations import Group, Role, User
from .roles import RoleService
from .users import UserService

logger = logging.getLogger(__name__)

DEFAULT_TENANT_PREFIX = "TENANT_"


class GroupService:
    """Service for managing Keycloak groups and their membership."""

    def __init__(
        self,
        gateway: KeycloakAdminGateway,
        users: UserService,
        roles: RoleService,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        tenant_prefix: str = DEFAULT_TENANT_PREFIX,
    ):
        """Initialize group service.

        Args:
            gateway: Keycloak admin gateway
            users: User service used to resolve usernames
            roles: Role service used to resolve role names
            buffer_size: Page size used for member and group listings
            tenant_prefix: Prefix stripped from tenant group names
        """
        self.gateway = gateway
        self.users = users
        self.roles = roles
        self.buffer_size = buffer_size
        self.tenant_prefix = tenant_prefix

    async def get_group_base(self, realm: str, group_name: str) -> Group:
        """Return the group that matches ``group_name``, without enrichment.

        Keycloak answers a search that hits a subgroup with the top-level
        parent, so results are narrowed to exact name matches before the
        exactly-one rule is applied.

        Raises:
            GroupNotFoundError: If zero or several groups match
        """
        records = await self.gateway.find_groups(realm, group_name, exact=True)
        matches = [record for record in records if record.get("name") == group_name]
        if len(matches) != 1:
            raise GroupNotFoundError(group_name)
        group = Group.from_dict(matches[0])
        if group is None:
            raise GroupNotFoundError(group_name)
        return group

    async def get_group(self, realm: str, group_name: str) -> Group:
        """Return the group with its roles and full membership.

        Raises:
            GroupNotFoundError: If the search returns zero or several groups
        """
        group = await self.get_group_base(realm, group_name)
        group.roles = Role.all_from(await self.gateway.get_group_roles(realm, group.id))
        group.members = await self.get_members_by_id(realm, group.id)
        return group

    async def get_members_by_id(
        self,
        realm: str,
        group_id: str,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[User]:
        """Return the members at positions ``[offset, limit)`` of a group."""
        records = await fetch_all(
            lambda first, max: self.gateway.get_group_members(realm, group_id, first, max),
            offset=offset,
            limit=limit,
            buffer_size=self.buffer_size,
        )
        return User.all_from(records)

    async def get_group_members(
        self,
        realm: str,
        group_name: str,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> List[User]:
        """Return the members at positions ``[offset, limit)`` of the named group.

        Raises:
            GroupNotFoundError: If the group does not exist
        """
        group = await self.get_group_base(realm, group_name)
        return await self.get_members_by_id(realm, group.id, offset, limit)

    async def get_group_roles(self, realm: str, group_name: str) -> List[Role]:
        group = await self.get_group_base(realm, group_name)
        return Role.all_from(await self.gateway.get_group_roles(realm, group.id))

    async def list_groups(self, realm: str, offset: int = 0, limit: Optional[int] = None) -> List[Group]:
        records = await fetch_all(
            lambda first, max: self.gateway.list_groups(realm, first, max),
            offset=offset,
            limit=limit,
            buffer_size=self.buffer_size,
        )
        return Group.all_from(records)

    async def create_group(
        self,
        realm: str,
        group_name: str,
        attributes: Optional[Dict[str, List[str]]] = None,
        as_tenant: bool = False,
    ) -> Group:
        """Create a group and return its base representation.

        Args:
            realm: Realm name
            group_name: Group name
            attributes: Optional attributes dictionary
            as_tenant: Also set the ``tenant`` attribute (name without the tenant prefix)

        Raises:
            GroupAlreadyExistsError: If the group already exists
            InvalidTokenError: If the token was rejected
            ClientNotFoundError: If the realm is unknown
            InvalidArgumentError: For any other rejection
        """
        if as_tenant:
            upload = Group.tenant(group_name, self.tenant_prefix, attributes)
        else:
            upload = Group.upload(group_name, attributes)
        try:
            await self.gateway.create_group(realm, upload.to_dict())
        except KeycloakAPIError as e:
            translated = translate_create_error(e, "group", group_name, realm, self.gateway.client_id)
            if translated is e:
                raise
            raise translated from e
        logger.info("Group '%s' created in realm '%s' (tenant=%s)", group_name, realm, as_tenant)
        return await self.get_group_base(realm, group_name)

    async def update_group(self, realm: str, group_name: str, attributes: Optional[Dict[str, List[str]]]) -> Group:
        """Replace the attributes of a group.

        Role assignments are managed with ``add_roles_to_group`` and
        ``remove_roles_from_group``.
        """
        group = await self.get_group_base(realm, group_name)
        await self.gateway.update_group(realm, group.id, Group.upload(group_name, attributes).to_dict())
        logger.info("Group '%s' updated in realm '%s'", group_name, realm)
        return await self.get_group_base(realm, group_name)

    async def delete_group(self, realm: str, group_name: str) -> bool:
        """Delete a group.

        Returns:
            True if the group was deleted, False if it did not exist
        """
        try:
            group = await self.get_group_base(realm, group_name)
            await self.gateway.delete_group(realm, group.id)
        except GroupNotFoundError:
            return False
        except KeycloakAPIError as e:
            if e.status_code == 404:
                return False
            raise
        logger.info("Group '%s' deleted from realm '%s'", group_name, realm)
        return True

    async def add_roles_to_group(self, realm: str, group_name: str, *role_names: str) -> Group:
        """Assign realm roles to a group.

        Returns:
            The group enriched with roles and members
        """
        references = await self.roles.resolve_references(realm, role_names)
        group = await self.get_group_base(realm, group_name)
        await self.gateway.add_group_roles(realm, group.id, references)
        logger.info("Granted roles %s to group '%s'", list(role_names), group_name)
        return await self.get_group(realm, group_name)

    async def remove_roles_from_group(self, realm: str, group_name: str, *role_names: str) -> Group:
        """Remove realm roles from a group.

        Returns:
            The group enriched with roles and members
        """
        references = await self.roles.resolve_references(realm, role_names)
        group = await self.get_group_base(realm, group_name)
        await self.gateway.remove_group_roles(realm, group.id, references)
        logger.info("Revoked roles %s from group '%s'", list(role_names), group_name)
        return await self.get_group(realm, group_name)

    async def add_user_to_group(self, realm: str, username: str, group_name: str) -> User:
        """Add a user to a group.

        Returns:
            The user enriched with roles and groups

        Raises:
            UserNotFoundError: If the user does not exist
            GroupNotFoundError: If the group does not exist
        """
        user, group = await gather_settled(
            self.users.get_user_base(realm, username),
            self.get_group_base(realm, group_name),
        )
        await self.gateway.add_user_to_group(realm, user.id, group.id)
        logger.info("Added '%s' to group '%s'", username, group_name)
        return await self.users.get_user(realm, username)

    async def remove_user_from_group(self, realm: str, username: str, group_name: str) -> User:
        """Remove a user from a group.

        Returns:
            The user enriched with roles and groups
        """
        user, group = await gather_settled(
            self.users.get_user_base(realm, username),
            self.get_group_base(realm, group_name),
        )
        await self.gateway.remove_user_from_group(realm, user.id, group.id)
        logger.info("Removed '%s' from group '%s'", username, group_name)
        return await self.users.get_user(realm, username)
