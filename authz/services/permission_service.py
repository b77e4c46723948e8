"""Permission catalog management."""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from authz.config.logging import get_logger
from authz.core.exceptions import ConflictError, NotFoundError
from authz.db.repositories import PermissionRepository
from authz.db.session import Database
from authz.models import Permission
from authz.schemas import PermissionResponse

logger = get_logger(__name__)


class PermissionService:
    """List, create and delete named permissions."""

    def __init__(self, database: Database):
        self.database = database

    def list_permissions(self) -> List[PermissionResponse]:
        with self.database.session_scope() as session:
            return [PermissionResponse.model_validate(p) for p in PermissionRepository(session).list()]

    def create_permission(self, name: str, description: Optional[str] = None) -> PermissionResponse:
        """
        Raises:
            ConflictError: If a permission with this name exists.
        """
        with self.database.session_scope() as session:
            permissions = PermissionRepository(session)
            if permissions.get_by_name(name) is not None:
                raise ConflictError("Error: Permission name is already taken!")

            try:
                permission = permissions.save(Permission(name=name, description=description))
            except IntegrityError as e:
                raise ConflictError("Error: Permission name is already taken!") from e
            logger.info(f"Created permission: {name}")
            return PermissionResponse.model_validate(permission)

    def delete_permission(self, permission_id: int) -> None:
        """
        Delete a permission and detach it from every role.

        Raises:
            NotFoundError: If the permission does not exist.
        """
        with self.database.session_scope() as session:
            permissions = PermissionRepository(session)
            permission = permissions.get_by_id(permission_id)
            if permission is None:
                raise NotFoundError("Error: Permission not found!")

            name = permission.name
            permissions.delete(permission)

        logger.info(f"Deleted permission: {name}")
