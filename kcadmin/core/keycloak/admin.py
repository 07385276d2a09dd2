"""Explicit wiring of the Keycloak services around one gateway."""
from __future__ import annotations

from .client import KeycloakClient
from .effective_roles import EffectiveRoleService
from .gateway import KeycloakAdminGateway
from .groups import DEFAULT_TENANT_PREFIX, GroupService
from .pagination import DEFAULT_BUFFER_SIZE
from .roles import RoleService
from .users import UserService


class KeycloakAdmin:
    """Entry point bundling the user, group and role services.

    Usage:
        client = create_client_with_token(kc_url, token, client_id="automation-cli")
        async with KeycloakAdmin(client) as admin:
            user = await admin.users.get_user("demo", "alice")
            holders = await admin.effective_roles.get_effective_users("demo", "analyst")
    """

    def __init__(
        self,
        client: KeycloakClient,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        tenant_prefix: str = DEFAULT_TENANT_PREFIX,
    ):
        self.client = client
        self.gateway = KeycloakAdminGateway(client)
        self.roles = RoleService(self.gateway, buffer_size)
        self.users = UserService(self.gateway, self.roles, buffer_size)
        self.groups = GroupService(self.gateway, self.users, self.roles, buffer_size, tenant_prefix)
        self.effective_roles = EffectiveRoleService(self.roles, self.groups)

    @classmethod
    def from_settings(cls, config, token: str) -> "KeycloakAdmin":
        """Build an admin bound to ``token`` from an ``AppConfig``."""
        client = KeycloakClient(
            config.keycloak_url,
            token=token,
            client_id=config.keycloak_service_client_id,
            timeout=config.request_timeout,
        )
        return cls(client, buffer_size=config.buffer_size, tenant_prefix=config.tenant_prefix)

    async def __aenter__(self) -> "KeycloakAdmin":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.client.aclose()
