"""Pydantic schemas for API request/response serialization."""

from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---- Users ----
class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=20)
    email: str = Field(..., max_length=50, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    password: str = Field(..., min_length=6, max_length=40)
    roles: Optional[Set[str]] = None


class UpdateUserRolesRequest(BaseModel):
    roles: Optional[Set[str]] = None


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    roles: List[str]

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            roles=sorted(role.name for role in user.roles),
        )


# ---- Permissions ----
class CreatePermissionRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Permission name must not be blank")
        return v


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None


# ---- Roles ----
class CreateRoleRequest(BaseModel):
    name: str = Field(..., min_length=6, max_length=50, pattern=r"^ROLE_[A-Z0-9_]+$")
    description: Optional[str] = Field(None, max_length=255)
    permissions: Set[str] = Field(default_factory=set)


class RoleResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    permissions: List[str]

    @classmethod
    def from_role(cls, role) -> "RoleResponse":
        return cls(
            id=role.id,
            name=role.name,
            description=role.description,
            permissions=[permission.name for permission in role.permissions],
        )


# ---- Endpoint rules ----
class CreateEndpointRuleRequest(BaseModel):
    url_pattern: str = Field(..., min_length=1, max_length=255)
    http_method: str = Field(..., min_length=3, max_length=10)
    role: str = Field(..., min_length=1, max_length=50)


class EndpointRuleResponse(BaseModel):
    id: int
    url_pattern: str
    http_method: str
    role: str


# ---- Principal ----
class PrincipalResponse(BaseModel):
    user_id: Optional[int] = None
    username: str
    email: Optional[str] = None
    direct_roles: List[str]
    effective_authorities: List[str]


class MessageResponse(BaseModel):
    message: str
