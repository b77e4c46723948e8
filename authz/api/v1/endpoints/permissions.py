"""Permission catalog endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from authz.api.deps import get_current_principal, get_permission_service, require_any_role
from authz.core.principal import Principal
from authz.core.roles import ROLE_ADMIN
from authz.schemas import CreatePermissionRequest, MessageResponse, PermissionResponse
from authz.services.permission_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get("", response_model=List[PermissionResponse], summary="List permissions")
def list_permissions(
    _: Principal = Depends(get_current_principal),
    permissions: PermissionService = Depends(get_permission_service),
) -> List[PermissionResponse]:
    return permissions.list_permissions()


@router.post(
    "",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a permission",
)
def create_permission(
    request: CreatePermissionRequest,
    _: Principal = Depends(require_any_role(ROLE_ADMIN)),
    permissions: PermissionService = Depends(get_permission_service),
) -> PermissionResponse:
    return permissions.create_permission(request.name, request.description)


@router.delete("/{permission_id}", response_model=MessageResponse, summary="Delete a permission")
def delete_permission(
    permission_id: int,
    _: Principal = Depends(require_any_role(ROLE_ADMIN)),
    permissions: PermissionService = Depends(get_permission_service),
) -> MessageResponse:
    permissions.delete_permission(permission_id)
    return MessageResponse(message="Permission deleted successfully!")
