"""Keycloak representation codecs.

Decodes Keycloak admin API records into typed values and encodes them back
into upload payloads.

Usage:
    user = User.from_dict({"id": "abc", "username": "alice", "enabled": True})
    payload = User(username="bob", email="bob@example.com").to_dict()

Decoded values are "base" records: their ``roles``/``groups``/``members``
collections are ``None`` until a service enriches them with lists.
Identity is the Keycloak ``id``; two values with the same id compare equal
whatever their other fields hold.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


def _identity_eq(self, other) -> bool:
    if self is other:
        return True
    if type(self) is not type(other):
        return NotImplemented
    return self.id is not None and self.id == other.id


def _identity_hash(self) -> int:
    return hash((type(self).__name__, self.id))


@dataclass(eq=False)
class Credential:
    """Write-only credential sent on user creation or password reset."""
    value: str
    temporary: bool = False
    type: str = "password"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "value": self.value, "temporary": self.temporary}


@dataclass(eq=False)
class Role:
    """Realm or client role."""
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    composite: Optional[bool] = None
    client_role: Optional[bool] = None
    container_id: Optional[str] = None

    __eq__ = _identity_eq
    __hash__ = _identity_hash

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Role"]:
        if not data or not data.get("id"):
            return None
        return cls(
            id=data["id"],
            name=data.get("name"),
            description=data.get("description"),
            composite=data.get("composite"),
            client_role=data.get("clientRole"),
            container_id=data.get("containerId"),
        )

    @classmethod
    def all_from(cls, data: Optional[Iterable[Dict[str, Any]]]) -> List["Role"]:
        return [role for role in (cls.from_dict(item) for item in data or []) if role is not None]

    def to_dict(self) -> Dict[str, Any]:
        payload = {
            "name": self.name,
            "description": self.description,
            "composite": self.composite,
            "clientRole": self.client_role,
        }
        return {key: value for key, value in payload.items() if value is not None}

    def reference(self) -> Dict[str, str]:
        """Return the ``{id, name}`` pair used in role-mapping payloads."""
        return {"id": self.id, "name": self.name}


@dataclass(eq=False)
class User:
    """Keycloak user (principal).

    ``roles`` and ``groups`` stay ``None`` on base records and become lists
    once the user has been enriched.
    """
    username: str
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    enabled: Optional[bool] = None
    email_verified: Optional[bool] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)
    roles: Optional[List[Role]] = None
    groups: Optional[List["Group"]] = None
    credentials: Optional[List[Credential]] = field(default=None, repr=False)

    __eq__ = _identity_eq
    __hash__ = _identity_hash

    @property
    def is_enriched(self) -> bool:
        return self.roles is not None and self.groups is not None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["User"]:
        # Every persisted user has an id and a username
        if not data or not data.get("id") or not data.get("username"):
            return None
        return cls(
            id=data["id"],
            username=data["username"],
            first_name=data.get("firstName"),
            last_name=data.get("lastName"),
            email=data.get("email"),
            enabled=data.get("enabled"),
            email_verified=data.get("emailVerified"),
            attributes=dict(data.get("attributes") or {}),
        )

    @classmethod
    def all_from(cls, data: Optional[Iterable[Dict[str, Any]]]) -> List["User"]:
        return [user for user in (cls.from_dict(item) for item in data or []) if user is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Build the upload payload (no id, no enrichment collections)."""
        payload: Dict[str, Any] = {
            "username": self.username,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "enabled": self.enabled,
            "emailVerified": self.email_verified,
        }
        payload = {key: value for key, value in payload.items() if value is not None}
        if self.attributes:
            payload["attributes"] = self.attributes
        if self.credentials:
            payload["credentials"] = [cred.to_dict() for cred in self.credentials]
        return payload

    def with_password(self, password: str, temporary: bool = False) -> "User":
        """Attach a password credential for creation."""
        self.credentials = [Credential(value=password, temporary=temporary)]
        return self


@dataclass(eq=False)
class Group:
    """Keycloak group.

    ``roles`` and ``members`` stay ``None`` on base records and become lists
    once the group has been enriched.
    """
    name: str
    id: Optional[str] = None
    path: Optional[str] = None
    attributes: Dict[str, List[str]] = field(default_factory=dict)
    roles: Optional[List[Role]] = None
    members: Optional[List[User]] = None

    __eq__ = _identity_eq
    __hash__ = _identity_hash

    @property
    def is_enriched(self) -> bool:
        return self.roles is not None and self.members is not None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Group"]:
        if not data or not data.get("id") or not data.get("name"):
            return None
        return cls(
            id=data["id"],
            name=data["name"],
            path=data.get("path"),
            attributes=dict(data.get("attributes") or {}),
        )

    @classmethod
    def all_from(cls, data: Optional[Iterable[Dict[str, Any]]]) -> List["Group"]:
        return [group for group in (cls.from_dict(item) for item in data or []) if group is not None]

    @classmethod
    def upload(cls, name: str, attributes: Optional[Dict[str, List[str]]] = None) -> "Group":
        """Build a not-yet-created group."""
        return cls(name=name, attributes=dict(attributes or {}))

    @classmethod
    def tenant(cls, name: str, prefix: str, attributes: Optional[Dict[str, List[str]]] = None) -> "Group":
        """Build a tenant group: the ``tenant`` attribute holds the name without ``prefix``."""
        tenant_name = name[len(prefix):] if prefix and name.startswith(prefix) else name
        merged = dict(attributes or {})
        merged["tenant"] = [tenant_name]
        return cls(name=name, attributes=merged)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if self.name:
            payload["name"] = self.name
        if self.attributes:
            payload["attributes"] = self.attributes
        return payload


def dedupe_by_id(items: Iterable[Any]) -> List[Any]:
    """Drop later entries whose id was already seen, keeping first-seen order."""
    seen: set[str] = set()
    result = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        result.append(item)
    return result
