"""Effective role holders: direct assignees plus members of assigned groups."""
from __future__ import annotations
import asyncio
import logging
from typing import List, Tuple

from .concurrency import gather_settled
from .exceptions import EffectiveRoleResolutionError
from .groups import GroupService
from .representations import Group, User, dedupe_by_id
from .roles import RoleService

logger = logging.getLogger(__name__)


class EffectiveRoleService:
    """Resolve every user holding a role, directly or through a group."""

    def __init__(self, roles: RoleService, groups: GroupService):
        self.roles = roles
        self.groups = groups

    async def get_effective_users(self, realm: str, role_name: str) -> List[User]:
        """Return every user holding ``role_name``, each id at most once.

        Direct assignees and assigned groups are fetched concurrently, then
        the members of every assigned group are fetched concurrently. All
        membership lookups run to completion before failures are reported.

        Ordering: group-derived users first (group order, then member
        order), then direct assignees not already present. On an id
        collision the first copy seen is kept.

        Raises:
            EffectiveRoleResolutionError: If any membership lookup failed;
                ``failures`` holds one entry per failing group
            KeycloakAPIError: If either direct-assignment query failed
        """
        direct_users, groups = await gather_settled(
            self.roles.get_users_with_role(realm, role_name),
            self.roles.get_groups_with_role(realm, role_name),
        )
        member_lists, failures = await self._members_of(realm, groups)
        if failures:
            logger.warning(
                "Resolving role '%s': %d of %d group membership lookup(s) failed",
                role_name, len(failures), len(groups),
            )
            raise EffectiveRoleResolutionError(role_name, failures)

        group_members = [member for members in member_lists for member in members]
        return dedupe_by_id(group_members + direct_users)

    async def _members_of(
        self, realm: str, groups: List[Group]
    ) -> Tuple[List[List[User]], List[BaseException]]:
        outcomes = await asyncio.gather(
            *(self.groups.get_members_by_id(realm, group.id) for group in groups),
            return_exceptions=True,
        )
        members = [outcome for outcome in outcomes if not isinstance(outcome, BaseException)]
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        return members, failures
