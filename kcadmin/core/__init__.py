"""Core Business Logic Module

Keycloak administration logic, independent of any CLI or web front-end.

Module Structure:
    - keycloak/ : Keycloak Admin API client, services and codecs

Public APIs (kcadmin.core.keycloak):
    - KeycloakAdmin (services wired around one client)
    - UserService, GroupService, RoleService, EffectiveRoleService
    - User, Group, Role, Credential
    - fetch_all (paginated listing)
    - KeycloakError and its subclasses
"""
