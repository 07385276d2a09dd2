"""Pytest shared fixtures: an in-memory Keycloak admin gateway and wired services."""
import itertools
import os
import pathlib
import sys
from typing import Any, Callable, Dict, List, Optional

import pytest

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DEMO_MODE", "true")

from kcadmin.core.keycloak import (  # noqa: E402
    EffectiveRoleService,
    GroupService,
    KeycloakAPIError,
    RoleService,
    UserService,
)

REALM = "demo"


class FakeGateway:
    """In-memory stand-in for ``KeycloakAdminGateway``.

    Stores users, groups and roles of a single realm, records every call in
    ``calls`` and lets tests inject failures with ``fail_on``.
    """

    def __init__(self, realm: str = REALM, client_id: str = "automation-cli"):
        self.realm = realm
        self.client_id = client_id
        self.users: Dict[str, Dict[str, Any]] = {}
        self.groups: Dict[str, Dict[str, Any]] = {}
        self.roles: Dict[str, Dict[str, Any]] = {}
        self.user_roles: Dict[str, List[str]] = {}
        self.group_roles: Dict[str, List[str]] = {}
        self.memberships: Dict[str, List[str]] = {}
        self.passwords: Dict[str, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        self._failures: Dict[str, Callable[..., Optional[Exception]]] = {}
        self._ids = itertools.count(1)

    # ── Test helpers ─────────────────────────────────────────────

    def fail_on(self, method: str, error: Exception, when: Optional[Callable[..., bool]] = None) -> None:
        """Raise ``error`` from ``method`` whenever ``when(*args)`` holds."""
        def check(*args):
            if when is None or when(*args):
                return error
            return None
        self._failures[method] = check

    def _enter(self, method: str, realm: str, *args) -> None:
        self.calls.append((method, realm) + args)
        check = self._failures.get(method)
        if check is not None:
            error = check(realm, *args)
            if error is not None:
                raise error
        if realm != self.realm:
            raise KeycloakAPIError(404, f"Realm not found: {realm}", f"/admin/realms/{realm}")

    def calls_to(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    def _new_id(self, kind: str) -> str:
        return f"{kind}-{next(self._ids)}"

    def add_user(self, username: str, **fields) -> Dict[str, Any]:
        user_id = fields.pop("id", None) or self._new_id("user")
        record = {"id": user_id, "username": username, "enabled": True}
        record.update(fields)
        self.users[user_id] = record
        self.user_roles.setdefault(user_id, [])
        self.memberships.setdefault(user_id, [])
        return record

    def add_group(self, name: str, **fields) -> Dict[str, Any]:
        group_id = fields.pop("id", None) or self._new_id("group")
        record = {"id": group_id, "name": name, "path": f"/{name}", "attributes": {}}
        record.update(fields)
        self.groups[group_id] = record
        self.group_roles.setdefault(group_id, [])
        return record

    def add_role(self, name: str, **fields) -> Dict[str, Any]:
        role_id = fields.pop("id", None) or self._new_id("role")
        record = {"id": role_id, "name": name, "composite": False, "clientRole": False, "containerId": self.realm}
        record.update(fields)
        self.roles[role_id] = record
        return record

    def grant(self, user_id: str, *role_ids: str) -> None:
        self.user_roles[user_id].extend(role_ids)

    def grant_group(self, group_id: str, *role_ids: str) -> None:
        self.group_roles[group_id].extend(role_ids)

    def join(self, user_id: str, group_id: str) -> None:
        self.memberships[user_id].append(group_id)

    def _role_ids(self, references: List[Dict[str, str]]) -> List[str]:
        for reference in references:
            if reference["id"] not in self.roles:
                raise KeycloakAPIError(404, "Role not found", "role-mappings")
        return [reference["id"] for reference in references]

    # ── Users ────────────────────────────────────────────────────

    async def create_user(self, realm, payload):
        self._enter("create_user", realm, payload)
        username = payload.get("username")
        if not username:
            raise KeycloakAPIError(400, "username is required", "/users")
        if any(user["username"] == username for user in self.users.values()):
            raise KeycloakAPIError(409, "User exists with same username", "/users")
        fields = {key: value for key, value in payload.items() if key not in ("username", "credentials")}
        record = self.add_user(username, **fields)
        if payload.get("credentials"):
            self.passwords[record["id"]] = payload["credentials"][0]

    async def update_user(self, realm, user_id, payload):
        self._enter("update_user", realm, user_id, payload)
        if user_id not in self.users:
            raise KeycloakAPIError(404, "User not found", f"/users/{user_id}")
        self.users[user_id].update(payload)

    async def delete_user(self, realm, user_id):
        self._enter("delete_user", realm, user_id)
        if self.users.pop(user_id, None) is None:
            raise KeycloakAPIError(404, "User not found", f"/users/{user_id}")

    async def find_users(self, realm, username, exact=True, first=None, max=None):
        self._enter("find_users", realm, username, exact)
        if exact:
            return [dict(user) for user in self.users.values() if user["username"] == username]
        return [dict(user) for user in self.users.values() if username in user["username"]]

    async def list_users(self, realm, first, max):
        self._enter("list_users", realm, first, max)
        return [dict(user) for user in self.users.values()][first:first + max]

    async def count_users(self, realm):
        self._enter("count_users", realm)
        return len(self.users)

    async def reset_password(self, realm, user_id, credential):
        self._enter("reset_password", realm, user_id, credential)
        self.passwords[user_id] = credential

    async def get_user_roles(self, realm, user_id):
        self._enter("get_user_roles", realm, user_id)
        role_ids = list(self.user_roles.get(user_id, []))
        for group_id in self.memberships.get(user_id, []):
            role_ids.extend(self.group_roles.get(group_id, []))
        return [dict(self.roles[role_id]) for role_id in dict.fromkeys(role_ids)]

    async def add_user_roles(self, realm, user_id, roles):
        self._enter("add_user_roles", realm, user_id, roles)
        for role_id in self._role_ids(roles):
            if role_id not in self.user_roles[user_id]:
                self.user_roles[user_id].append(role_id)

    async def remove_user_roles(self, realm, user_id, roles):
        self._enter("remove_user_roles", realm, user_id, roles)
        removed = set(self._role_ids(roles))
        self.user_roles[user_id] = [role_id for role_id in self.user_roles[user_id] if role_id not in removed]

    async def get_user_groups(self, realm, user_id):
        self._enter("get_user_groups", realm, user_id)
        return [dict(self.groups[group_id]) for group_id in self.memberships.get(user_id, [])]

    async def add_user_to_group(self, realm, user_id, group_id):
        self._enter("add_user_to_group", realm, user_id, group_id)
        if group_id not in self.memberships[user_id]:
            self.memberships[user_id].append(group_id)

    async def remove_user_from_group(self, realm, user_id, group_id):
        self._enter("remove_user_from_group", realm, user_id, group_id)
        self.memberships[user_id] = [gid for gid in self.memberships[user_id] if gid != group_id]

    # ── Groups ───────────────────────────────────────────────────

    async def create_group(self, realm, payload):
        self._enter("create_group", realm, payload)
        name = payload.get("name")
        if not name:
            raise KeycloakAPIError(400, "name is required", "/groups")
        if any(group["name"] == name for group in self.groups.values()):
            raise KeycloakAPIError(409, "Top level group named already exists", "/groups")
        self.add_group(name, attributes=dict(payload.get("attributes") or {}))

    async def update_group(self, realm, group_id, payload):
        self._enter("update_group", realm, group_id, payload)
        self.groups[group_id].update(payload)

    async def delete_group(self, realm, group_id):
        self._enter("delete_group", realm, group_id)
        if self.groups.pop(group_id, None) is None:
            raise KeycloakAPIError(404, "Could not find group by id", f"/groups/{group_id}")

    async def find_groups(self, realm, name, exact=True):
        self._enter("find_groups", realm, name, exact)
        if exact:
            return [dict(group) for group in self.groups.values() if group["name"] == name]
        return [dict(group) for group in self.groups.values() if name in group["name"]]

    async def list_groups(self, realm, first, max):
        self._enter("list_groups", realm, first, max)
        return [dict(group) for group in self.groups.values()][first:first + max]

    async def get_group_members(self, realm, group_id, first, max):
        self._enter("get_group_members", realm, group_id, first, max)
        members = [
            dict(user) for user_id, user in self.users.items()
            if group_id in self.memberships.get(user_id, [])
        ]
        return members[first:first + max]

    async def get_group_roles(self, realm, group_id):
        self._enter("get_group_roles", realm, group_id)
        return [dict(self.roles[role_id]) for role_id in self.group_roles.get(group_id, [])]

    async def add_group_roles(self, realm, group_id, roles):
        self._enter("add_group_roles", realm, group_id, roles)
        for role_id in self._role_ids(roles):
            if role_id not in self.group_roles[group_id]:
                self.group_roles[group_id].append(role_id)

    async def remove_group_roles(self, realm, group_id, roles):
        self._enter("remove_group_roles", realm, group_id, roles)
        removed = set(self._role_ids(roles))
        self.group_roles[group_id] = [role_id for role_id in self.group_roles[group_id] if role_id not in removed]

    # ── Roles ────────────────────────────────────────────────────

    async def create_role(self, realm, payload):
        self._enter("create_role", realm, payload)
        name = payload.get("name")
        if any(role["name"] == name for role in self.roles.values()):
            raise KeycloakAPIError(409, f"Role with name {name} already exists", "/roles")
        fields = {key: value for key, value in payload.items() if key != "name"}
        self.add_role(name, **fields)

    async def update_role(self, realm, role_id, payload):
        self._enter("update_role", realm, role_id, payload)
        self.roles[role_id].update(payload)

    async def delete_role(self, realm, role_id):
        self._enter("delete_role", realm, role_id)
        if self.roles.pop(role_id, None) is None:
            raise KeycloakAPIError(404, "Could not find role", f"/roles-by-id/{role_id}")

    async def find_roles(self, realm, name):
        self._enter("find_roles", realm, name)
        return [dict(role) for role in self.roles.values() if name in role["name"]]

    async def list_roles(self, realm):
        self._enter("list_roles", realm)
        return [dict(role) for role in self.roles.values()]

    def _role_id_by_name(self, role_name):
        for role_id, role in self.roles.items():
            if role["name"] == role_name:
                return role_id
        raise KeycloakAPIError(404, "Could not find role", f"/roles/{role_name}")

    async def get_role_users(self, realm, role_name, first, max):
        self._enter("get_role_users", realm, role_name, first, max)
        role_id = self._role_id_by_name(role_name)
        holders = [dict(self.users[user_id]) for user_id, roles in self.user_roles.items()
                   if role_id in roles and user_id in self.users]
        return holders[first:first + max]

    async def get_role_groups(self, realm, role_name, first, max):
        self._enter("get_role_groups", realm, role_name, first, max)
        role_id = self._role_id_by_name(role_name)
        holders = [dict(self.groups[group_id]) for group_id, roles in self.group_roles.items()
                   if role_id in roles and group_id in self.groups]
        return holders[first:first + max]


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def role_service(gateway):
    return RoleService(gateway, buffer_size=2)


@pytest.fixture
def user_service(gateway, role_service):
    return UserService(gateway, role_service, buffer_size=2)


@pytest.fixture
def group_service(gateway, user_service, role_service):
    return GroupService(gateway, user_service, role_service, buffer_size=2)


@pytest.fixture
def effective_roles(role_service, group_service):
    return EffectiveRoleService(role_service, group_service)
