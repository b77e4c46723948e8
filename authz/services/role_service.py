"""Role management: list, create and delete roles."""

from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError

from authz.config.logging import get_logger
from authz.core.exceptions import ConflictError, ForbiddenOperation, NotFoundError
from authz.db.repositories import PermissionRepository, RoleRepository
from authz.db.session import Database
from authz.models import Role
from authz.schemas import RoleResponse

logger = get_logger(__name__)


class RoleService:
    """Roles are admin-managed and rarely change."""

    def __init__(self, database: Database, protected_roles: Iterable[str] = ()):
        self.database = database
        self.protected_roles = frozenset(protected_roles)

    def list_roles(self) -> List[RoleResponse]:
        with self.database.session_scope() as session:
            return [RoleResponse.from_role(role) for role in RoleRepository(session).list()]

    def create_role(
        self,
        name: str,
        description: Optional[str] = None,
        permission_names: Iterable[str] = (),
    ) -> RoleResponse:
        """
        Raises:
            ConflictError: If the role exists.
            NotFoundError: If a listed permission does not exist.
        """
        with self.database.session_scope() as session:
            roles = RoleRepository(session)
            if roles.get_by_name(name) is not None:
                raise ConflictError(f"Error: Role {name} already exists!")

            wanted = set(permission_names)
            permissions = PermissionRepository(session).find_by_names(wanted)
            missing = wanted - {p.name for p in permissions}
            if missing:
                raise NotFoundError(f"Error: Permission {sorted(missing)[0]} is not found.")

            try:
                role = roles.save(Role(name=name, description=description, permissions=permissions))
            except IntegrityError as e:
                raise ConflictError(f"Error: Role {name} already exists!") from e
            logger.info(f"Created role: {name}")
            return RoleResponse.from_role(role)

    def delete_role(self, name: str) -> None:
        """
        Delete an unreferenced, non-system role.

        Raises:
            NotFoundError: If the role does not exist.
            ForbiddenOperation: If the role is a system role.
            ConflictError: If a user or endpoint rule still references it.
        """
        with self.database.session_scope() as session:
            roles = RoleRepository(session)
            role = roles.get_by_name(name)
            if role is None:
                raise NotFoundError(f"Error: Role {name} is not found.")

            if name in self.protected_roles:
                raise ForbiddenOperation(f"Error: Cannot delete system role {name}!")

            if roles.is_referenced(role):
                raise ConflictError(f"Error: Role {name} is still assigned to users or endpoint rules!")

            roles.delete(role)

        logger.info(f"Deleted role: {name}")
