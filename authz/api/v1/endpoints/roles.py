"""Role endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from authz.api.deps import get_current_principal, get_role_service, require_any_role
from authz.core.principal import Principal
from authz.core.roles import ROLE_ADMIN
from authz.schemas import CreateRoleRequest, MessageResponse, RoleResponse
from authz.services.role_service import RoleService

router = APIRouter(prefix="/roles", tags=["Roles"])


@router.get("", response_model=List[RoleResponse], summary="List roles with their permissions")
def list_roles(
    _: Principal = Depends(get_current_principal),
    roles: RoleService = Depends(get_role_service),
) -> List[RoleResponse]:
    return roles.list_roles()


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED, summary="Create a role")
def create_role(
    request: CreateRoleRequest,
    _: Principal = Depends(require_any_role(ROLE_ADMIN)),
    roles: RoleService = Depends(get_role_service),
) -> RoleResponse:
    return roles.create_role(request.name, request.description, request.permissions)


@router.delete("/{role_name}", response_model=MessageResponse, summary="Delete an unused role")
def delete_role(
    role_name: str,
    _: Principal = Depends(require_any_role(ROLE_ADMIN)),
    roles: RoleService = Depends(get_role_service),
) -> MessageResponse:
    roles.delete_role(role_name)
    return MessageResponse(message="Role deleted successfully!")
