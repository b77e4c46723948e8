"""
Role-management policy: who may assign, revoke or delete which roles.

Only the acting principal's ``direct_roles`` are consulted. Hierarchy
expansion is deliberately absent here so that inherited authority never
turns into management rights.
"""

from typing import Iterable, Optional, Set

from authz.config.logging import get_logger
from authz.core.exceptions import ForbiddenOperation, InvalidPrincipal
from authz.core.principal import Principal
from authz.core.roles import ANONYMOUS_USERNAME, ROLE_ADMIN, ROLE_MODERATOR, ROLE_SUPER_ADMIN, ROLE_USER

logger = get_logger(__name__)


class RoleManagementPolicy:
    """Enforces the management rules for create, update-roles and delete."""

    def __init__(
        self,
        base_role: str = ROLE_USER,
        super_admin_role: str = ROLE_SUPER_ADMIN,
        anonymous_username: str = ANONYMOUS_USERNAME,
    ):
        self.base_role = base_role
        self.super_admin_role = super_admin_role
        self.anonymous_username = anonymous_username
        # Highest first
        self.priority = [super_admin_role, ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER]

    def acting_role(self, actor: Optional[Principal]) -> str:
        """Highest-priority role among the actor's direct roles."""
        self.require_actor(actor)
        for role in self.priority:
            if role in actor.direct_roles:
                return role
        return ROLE_USER

    def require_actor(self, actor: Optional[Principal]) -> Principal:
        if not isinstance(actor, Principal) or actor.is_anonymous(self.anonymous_username):
            raise InvalidPrincipal("Error: Invalid authentication principal!")
        return actor

    def resolve_requested_roles(self, role_names: Optional[Iterable[str]]) -> Set[str]:
        """
        Normalise a requested role set.

        An empty or missing set means the base role. Asking for the
        super-admin role is always refused.
        """
        requested = {name.strip() for name in role_names or () if name and name.strip()}
        if not requested:
            return {self.base_role}

        if self.super_admin_role in requested:
            raise ForbiddenOperation("Error: Cannot create or assign SUPER_ADMIN role!")

        return requested

    def check_can_manage(self, actor: Optional[Principal], role_names: Iterable[str]) -> None:
        """
        Verify that ``actor`` may manage users holding ``role_names``.

        Raises:
            InvalidPrincipal: If the actor is missing or unauthenticated.
            ForbiddenOperation: If any role is outside the actor's reach.
        """
        acting_role = self.acting_role(actor)
        role_names = set(role_names)

        if acting_role == self.super_admin_role:
            return

        if acting_role == ROLE_ADMIN:
            forbidden = role_names & {ROLE_ADMIN, self.super_admin_role}
            if forbidden:
                self._reject(actor, acting_role, forbidden, "Error: Admin cannot manage Admins or Super Admins!")
            return

        if acting_role == ROLE_MODERATOR:
            forbidden = role_names - {ROLE_USER}
            if forbidden:
                self._reject(actor, acting_role, forbidden, "Error: Moderator can only manage Users!")
            return

        self._reject(actor, acting_role, role_names, "Error: Users cannot manage other users!")

    def _reject(self, actor: Principal, acting_role: str, roles: Set[str], message: str) -> None:
        logger.warning(
            "Role management operation rejected",
            extra={
                "actor": actor.username,
                "acting_role": acting_role,
                "target_roles": sorted(roles),
            },
        )
        raise ForbiddenOperation(message)
