"""
User management endpoints.

Moderators and above may reach these routes; which users and roles a
caller may actually touch is decided by the role-management policy.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from authz.api.deps import get_user_service, require_any_role
from authz.core.principal import Principal
from authz.core.roles import ROLE_MODERATOR
from authz.schemas import CreateUserRequest, MessageResponse, UpdateUserRolesRequest, UserResponse
from authz.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

require_manager = require_any_role(ROLE_MODERATOR)


@router.get("", response_model=List[UserResponse], summary="List users")
def list_users(
    _: Principal = Depends(require_manager),
    users: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    return users.list_users()


@router.get("/{user_id}", response_model=UserResponse, summary="Get a user")
def get_user(
    user_id: int,
    _: Principal = Depends(require_manager),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return users.get_user(user_id)


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    description="Creates a user with the requested roles, or ROLE_USER when none are given.",
)
def create_user(
    request: CreateUserRequest,
    actor: Principal = Depends(require_manager),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return users.create_user(
        actor,
        username=request.username,
        email=request.email,
        password=request.password,
        role_names=request.roles,
    )


@router.put("/{user_id}/roles", response_model=UserResponse, summary="Replace a user's roles")
def update_user_roles(
    user_id: int,
    request: UpdateUserRolesRequest,
    actor: Principal = Depends(require_manager),
    users: UserService = Depends(get_user_service),
) -> UserResponse:
    return users.update_user_roles(actor, user_id, request.roles)


@router.delete("/{user_id}", response_model=MessageResponse, summary="Delete a user")
def delete_user(
    user_id: int,
    actor: Principal = Depends(require_manager),
    users: UserService = Depends(get_user_service),
) -> MessageResponse:
    users.delete_user(actor, user_id)
    return MessageResponse(message="User deleted successfully!")
