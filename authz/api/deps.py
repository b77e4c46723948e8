"""
FastAPI dependencies shared by the v1 endpoints.

The middleware has already authenticated and authorized the request; these
helpers only hand the route the pieces it needs.
"""

from typing import Callable

from fastapi import Depends, Request

from authz.container import ServiceContainer
from authz.core.exceptions import ForbiddenOperation, InvalidPrincipal
from authz.core.principal import Principal
from authz.services.permission_service import PermissionService
from authz.services.role_service import RoleService
from authz.services.rule_service import EndpointRuleService
from authz.services.user_service import UserService


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_current_principal(
    request: Request,
    container: ServiceContainer = Depends(get_container),
) -> Principal:
    """
    The authenticated caller.

    Raises:
        InvalidPrincipal: If the request carries no authenticated principal.
    """
    principal = getattr(request.state, "principal", None)
    if principal is None or principal.is_anonymous(container.config.security.anonymous_username):
        raise InvalidPrincipal("Error: Invalid authentication principal!")
    return principal


def require_any_role(*roles: str) -> Callable[..., Principal]:
    """
    Route guard on top of the dynamic rules.

    The caller's direct roles are expanded through the role hierarchy, so
    ``require_any_role("ROLE_MODERATOR")`` also admits admins.
    """
    async def _check(
        principal: Principal = Depends(get_current_principal),
        container: ServiceContainer = Depends(get_container),
    ) -> Principal:
        held = container.hierarchy.expand(principal.direct_roles)
        if container.config.security.super_admin_role in held:
            return principal
        if not held.intersection(roles):
            raise ForbiddenOperation(f"Error: Requires one of {sorted(roles)}")
        return principal

    return _check


def get_user_service(container: ServiceContainer = Depends(get_container)) -> UserService:
    return container.users


def get_permission_service(container: ServiceContainer = Depends(get_container)) -> PermissionService:
    return container.permissions


def get_role_service(container: ServiceContainer = Depends(get_container)) -> RoleService:
    return container.roles


def get_rule_service(container: ServiceContainer = Depends(get_container)) -> EndpointRuleService:
    return container.rules
