"""
Authenticated principals.

A principal carries two distinct role views:

- ``direct_roles``: the roles actually assigned to the user. The
  role-management policy reads only this field.
- ``effective_authorities``: roles plus permissions. For a super-admin the
  permission part is the full permission catalog.

Hierarchy expansion is never stored on the principal; the decision engine
does it per request.
"""

from typing import Any, Collection, FrozenSet, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from authz.core.roles import ANONYMOUS_USERNAME, ROLE_SUPER_ADMIN


class Principal(BaseModel):
    """The identity making a request."""
    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    username: str
    email: Optional[str] = None
    direct_roles: FrozenSet[str] = Field(default_factory=frozenset)
    effective_authorities: FrozenSet[str] = Field(default_factory=frozenset)
    authenticated: bool = True

    @classmethod
    def anonymous(cls, username: str = ANONYMOUS_USERNAME) -> "Principal":
        """The sentinel identity used for requests without credentials."""
        return cls(username=username, authenticated=False)

    def is_anonymous(self, anonymous_username: str = ANONYMOUS_USERNAME) -> bool:
        return not self.authenticated or self.username == anonymous_username

    def has_authority(self, authority: str) -> bool:
        return authority in self.effective_authorities


def _names(items: Iterable[Any]) -> FrozenSet[str]:
    return frozenset(item.name for item in items)


class PrincipalBuilder:
    """Builds principals from stored users."""

    def __init__(self, super_admin_role: str = ROLE_SUPER_ADMIN):
        self.super_admin_role = super_admin_role

    def is_super_admin(self, user: Any) -> bool:
        return self.super_admin_role in _names(user.roles)

    def build(self, user: Any, all_permission_names: Optional[Collection[str]] = None) -> Principal:
        """
        Build a principal for ``user``.

        Args:
            user: Object exposing ``id``, ``username``, ``email`` and
                ``roles`` (each role with ``name`` and ``permissions``).
            all_permission_names: Full permission catalog. Only consulted
                when the user is a super-admin.

        Returns:
            Principal with both role views populated.
        """
        direct_roles = _names(user.roles)

        if self.super_admin_role in direct_roles and all_permission_names is not None:
            authorities = direct_roles | frozenset(all_permission_names)
        else:
            permission_names = frozenset(
                permission.name
                for role in user.roles
                for permission in role.permissions
            )
            authorities = direct_roles | permission_names

        return Principal(
            user_id=user.id,
            username=user.username,
            email=user.email,
            direct_roles=direct_roles,
            effective_authorities=authorities,
        )
