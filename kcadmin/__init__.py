"""Keycloak administration client: users, groups and roles over the admin API."""

__version__ = "0.1.0"
