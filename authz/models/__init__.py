"""ORM models for users, roles, permissions and endpoint rules."""

from authz.models.permission import Permission
from authz.models.role import Role, role_permissions
from authz.models.user import User, user_roles
from authz.models.endpoint_rule import EndpointRule

__all__ = [
    "Permission",
    "Role",
    "role_permissions",
    "User",
    "user_roles",
    "EndpointRule",
]
