"""Keycloak admin endpoints, one coroutine per REST call.

The gateway does no orchestration: every method issues exactly one request
and returns the decoded JSON body (list, dict or ``None`` for empty bodies).
Failures surface as ``KeycloakAPIError`` from ``KeycloakClient``.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .client import KeycloakClient, decode_json


def _segment(value: str) -> str:
    return quote(value, safe="")


class KeycloakAdminGateway:
    """Thin async wrapper over the Keycloak Admin REST API."""

    def __init__(self, client: KeycloakClient):
        """Initialize gateway.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    @property
    def client_id(self) -> str:
        return self.client.client_id

    def _realm(self, realm: str) -> str:
        return f"/admin/realms/{_segment(realm)}"

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return decode_json(await self.client.get(path, params=params))

    # ── Users ────────────────────────────────────────────────────

    async def create_user(self, realm: str, payload: Dict[str, Any]) -> None:
        await self.client.post(f"{self._realm(realm)}/users", json=payload)

    async def update_user(self, realm: str, user_id: str, payload: Dict[str, Any]) -> None:
        await self.client.put(f"{self._realm(realm)}/users/{user_id}", json=payload)

    async def delete_user(self, realm: str, user_id: str) -> None:
        await self.client.delete(f"{self._realm(realm)}/users/{user_id}")

    async def find_users(
        self,
        realm: str,
        username: str,
        exact: bool = True,
        first: Optional[int] = None,
        max: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/users",
            params={"username": username, "exact": str(exact).lower(), "first": first, "max": max},
        ) or []

    async def list_users(self, realm: str, first: int, max: int) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/users", params={"first": first, "max": max, "briefRepresentation": "false"}
        ) or []

    async def count_users(self, realm: str) -> int:
        return int(await self._get(f"{self._realm(realm)}/users/count") or 0)

    async def reset_password(self, realm: str, user_id: str, credential: Dict[str, Any]) -> None:
        await self.client.put(f"{self._realm(realm)}/users/{user_id}/reset-password", json=credential)

    async def get_user_roles(self, realm: str, user_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"{self._realm(realm)}/users/{user_id}/role-mappings/realm/composite") or []

    async def add_user_roles(self, realm: str, user_id: str, roles: List[Dict[str, str]]) -> None:
        await self.client.post(f"{self._realm(realm)}/users/{user_id}/role-mappings/realm", json=roles)

    async def remove_user_roles(self, realm: str, user_id: str, roles: List[Dict[str, str]]) -> None:
        await self.client.delete(f"{self._realm(realm)}/users/{user_id}/role-mappings/realm", json=roles)

    async def get_user_groups(self, realm: str, user_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"{self._realm(realm)}/users/{user_id}/groups") or []

    async def add_user_to_group(self, realm: str, user_id: str, group_id: str) -> None:
        await self.client.put(f"{self._realm(realm)}/users/{user_id}/groups/{group_id}")

    async def remove_user_from_group(self, realm: str, user_id: str, group_id: str) -> None:
        await self.client.delete(f"{self._realm(realm)}/users/{user_id}/groups/{group_id}")

    # ── Groups ───────────────────────────────────────────────────

    async def create_group(self, realm: str, payload: Dict[str, Any]) -> None:
        await self.client.post(f"{self._realm(realm)}/groups", json=payload)

    async def update_group(self, realm: str, group_id: str, payload: Dict[str, Any]) -> None:
        await self.client.put(f"{self._realm(realm)}/groups/{group_id}", json=payload)

    async def delete_group(self, realm: str, group_id: str) -> None:
        await self.client.delete(f"{self._realm(realm)}/groups/{group_id}")

    async def find_groups(self, realm: str, name: str, exact: bool = True) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/groups",
            params={"search": name, "exact": str(exact).lower(), "briefRepresentation": "false"},
        ) or []

    async def list_groups(self, realm: str, first: int, max: int) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/groups", params={"first": first, "max": max, "briefRepresentation": "false"}
        ) or []

    async def get_group_members(self, realm: str, group_id: str, first: int, max: int) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/groups/{group_id}/members", params={"first": first, "max": max}
        ) or []

    async def get_group_roles(self, realm: str, group_id: str) -> List[Dict[str, Any]]:
        return await self._get(f"{self._realm(realm)}/groups/{group_id}/role-mappings/realm/composite") or []

    async def add_group_roles(self, realm: str, group_id: str, roles: List[Dict[str, str]]) -> None:
        await self.client.post(f"{self._realm(realm)}/groups/{group_id}/role-mappings/realm", json=roles)

    async def remove_group_roles(self, realm: str, group_id: str, roles: List[Dict[str, str]]) -> None:
        await self.client.delete(f"{self._realm(realm)}/groups/{group_id}/role-mappings/realm", json=roles)

    # ── Roles ────────────────────────────────────────────────────

    async def create_role(self, realm: str, payload: Dict[str, Any]) -> None:
        await self.client.post(f"{self._realm(realm)}/roles", json=payload)

    async def update_role(self, realm: str, role_id: str, payload: Dict[str, Any]) -> None:
        await self.client.put(f"{self._realm(realm)}/roles-by-id/{role_id}", json=payload)

    async def delete_role(self, realm: str, role_id: str) -> None:
        await self.client.delete(f"{self._realm(realm)}/roles-by-id/{role_id}")

    async def find_roles(self, realm: str, name: str) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/roles", params={"search": name, "briefRepresentation": "false"}
        ) or []

    async def list_roles(self, realm: str) -> List[Dict[str, Any]]:
        return await self._get(f"{self._realm(realm)}/roles", params={"briefRepresentation": "false"}) or []

    async def get_role_users(self, realm: str, role_name: str, first: int, max: int) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/roles/{_segment(role_name)}/users", params={"first": first, "max": max}
        ) or []

    async def get_role_groups(self, realm: str, role_name: str, first: int, max: int) -> List[Dict[str, Any]]:
        return await self._get(
            f"{self._realm(realm)}/roles/{_segment(role_name)}/groups", params={"first": first, "max": max}
        ) or []
