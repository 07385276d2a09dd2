"""Low-level HTTP client for Keycloak Admin API.

Handles bearer authentication, HTTP operations and centralized error
translation into ``KeycloakAPIError``. Admin operations are asynchronous
(``httpx.AsyncClient``); token acquisition is a one-off synchronous call
made by entry points before any admin operation runs.
"""
from __future__ import annotations
import logging
import os
from typing import Any, Dict, Optional

import httpx
import requests

from .exceptions import KeycloakAPIError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 5


class KeycloakClient:
    """Async HTTP client for Keycloak Admin API.

    Features:
    - Bearer token attached to every admin call
    - Centralized error handling (every failure is a ``KeycloakAPIError``)
    - Usable as an async context manager to release the connection pool

    Usage:
        token = get_service_account_token(kc_url, "master", "automation-cli", secret)
        async with KeycloakClient(kc_url, token=token, client_id="automation-cli") as client:
            resp = await client.get("/admin/realms/demo/users")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        client_id: str = "",
        timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_URL env var)
            token: Bearer access token
            client_id: Id of the application the calls are made for
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_URL", "http://keycloak:8080")).rstrip("/")
        self.client_id = client_id
        self._token = token
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def __aenter__(self) -> "KeycloakClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def set_token(self, token: str) -> None:
        self._token = token

    def _headers(self) -> Dict[str, str]:
        if not self._token:
            raise KeycloakAPIError(401, "Not authenticated - obtain a token first", "")
        return {"Authorization": f"Bearer {self._token}"}

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
    ) -> httpx.Response:
        """Execute an authenticated request.

        Args:
            method: HTTP method
            path: API endpoint path (e.g., "/admin/realms/demo/users")
            params: Query parameters (``None`` values are dropped)
            json: JSON payload

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error or transport failure
        """
        headers = self._headers()
        if params:
            params = {key: value for key, value in params.items() if value is not None}
        logger.debug("%s %s params=%s", method, path, params)
        try:
            resp = await self._http.request(method, path, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            raise KeycloakAPIError(0, str(e) or type(e).__name__, path) from e
        self._handle_error(resp)
        return resp

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json: Any = None) -> httpx.Response:
        return await self.request("POST", path, json=json)

    async def put(self, path: str, json: Any = None) -> httpx.Response:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str, json: Any = None) -> httpx.Response:
        return await self.request("DELETE", path, json=json)

    @staticmethod
    def _handle_error(resp: httpx.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, str(resp.request.url))


def decode_json(resp: httpx.Response) -> Any:
    """Return the decoded body, or ``None`` for empty responses (201/204)."""
    if not resp.content:
        return None
    return resp.json()


# ─────────────────────────────────────────────────────────────────────────────
# Token acquisition
# ─────────────────────────────────────────────────────────────────────────────
def _request_token(kc_url: str, realm: str, data: Dict[str, str], timeout: float) -> str:
    url = f"{kc_url.rstrip('/')}/realms/{realm}/protocol/openid-connect/token"
    resp = requests.post(url, data=data, timeout=timeout)
    if resp.status_code != 200:
        raise KeycloakAPIError(resp.status_code, resp.text, url)
    return resp.json()["access_token"]


def get_service_account_token(
    kc_url: str,
    auth_realm: str,
    client_id: str,
    client_secret: str,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """Fetch a service account token using client credentials flow."""
    logger.info("Requesting service account token for client '%s' in realm '%s'", client_id, auth_realm)
    return _request_token(
        kc_url,
        auth_realm,
        {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        },
        timeout,
    )


def get_admin_token(
    kc_url: str,
    username: str,
    password: str,
    realm: str = "master",
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """Obtain an admin token via direct access grant on the specified realm."""
    logger.info("Requesting admin token for '%s' in realm '%s'", username, realm)
    return _request_token(
        kc_url,
        realm,
        {
            "grant_type": "password",
            "client_id": "admin-cli",
            "username": username,
            "password": password,
        },
        timeout,
    )


def create_client_with_token(
    kc_url: str,
    token: str,
    client_id: str = "",
    timeout: float = REQUEST_TIMEOUT,
) -> KeycloakClient:
    """Create a pre-authenticated KeycloakClient.

    Args:
        kc_url: Keycloak base URL
        token: Pre-obtained access token
        client_id: Id of the application the calls are made for
        timeout: Per-request timeout in seconds

    Returns:
        KeycloakClient instance with token pre-set
    """
    return KeycloakClient(kc_url, token=token, client_id=client_id, timeout=timeout)
