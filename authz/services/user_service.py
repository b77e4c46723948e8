"""
User management: list, create, update roles and delete.

Every mutating operation takes the acting principal explicitly and runs in
a single transaction. Checks happen in a fixed order (existence and
duplicates, then role lookup, then the management policy) and nothing is
written unless all of them pass.
"""

from typing import Iterable, List, Optional, Set

from sqlalchemy.exc import IntegrityError

from authz.config.logging import get_logger
from authz.core.exceptions import ConflictError, NotFoundError
from authz.core.policy import RoleManagementPolicy
from authz.core.principal import Principal
from authz.db.repositories import RoleRepository, UserRepository
from authz.db.session import Database
from authz.models import Role, User
from authz.schemas import UserResponse
from authz.services.auth_service import hash_password

logger = get_logger(__name__)


class UserService:
    """Handles user management under the role-management policy."""

    def __init__(self, database: Database, policy: RoleManagementPolicy):
        self.database = database
        self.policy = policy

    def list_users(self) -> List[UserResponse]:
        with self.database.session_scope() as session:
            return [UserResponse.from_user(user) for user in UserRepository(session).list()]

    def get_user(self, user_id: int) -> UserResponse:
        with self.database.session_scope() as session:
            user = UserRepository(session).get_by_id(user_id)
            if user is None:
                raise NotFoundError("Error: User not found!")
            return UserResponse.from_user(user)

    def create_user(
        self,
        actor: Principal,
        username: str,
        email: str,
        password: str,
        role_names: Optional[Iterable[str]] = None,
    ) -> UserResponse:
        """
        Create a user.

        Raises:
            InvalidPrincipal: If ``actor`` is missing or unauthenticated.
            ConflictError: If the username or email is taken.
            NotFoundError: If a requested role does not exist.
            ForbiddenOperation: If the actor may not assign the roles.
        """
        self.policy.require_actor(actor)

        with self.database.session_scope() as session:
            users = UserRepository(session)

            if users.exists_by_username(username):
                raise ConflictError("Error: Username is already taken!")

            if users.exists_by_email(email):
                raise ConflictError("Error: Email is already in use!")

            roles = self._resolve_roles(session, role_names)
            self.policy.check_can_manage(actor, {role.name for role in roles})

            user = User(
                username=username,
                email=email,
                hashed_password=hash_password(password),
                roles=roles,
            )
            try:
                users.save(user)
            except IntegrityError as e:
                raise ConflictError("Error: Username or email is already in use!") from e

            logger.info(
                "User created",
                extra={"actor": actor.username, "target_user": username, "roles": sorted(r.name for r in roles)},
            )
            return UserResponse.from_user(user)

    def update_user_roles(
        self,
        actor: Principal,
        user_id: int,
        role_names: Optional[Iterable[str]] = None,
    ) -> UserResponse:
        """
        Replace a user's role set.

        The actor must be allowed to manage both the user's current roles
        and the proposed ones.

        Raises:
            InvalidPrincipal: If ``actor`` is missing or unauthenticated.
            NotFoundError: If the user or a requested role does not exist.
            ForbiddenOperation: If the policy rejects either role set.
        """
        self.policy.require_actor(actor)

        with self.database.session_scope() as session:
            user = UserRepository(session).get_by_id(user_id)
            if user is None:
                raise NotFoundError("Error: User not found!")

            roles = self._resolve_roles(session, role_names)

            self.policy.check_can_manage(actor, user.role_names)
            self.policy.check_can_manage(actor, {role.name for role in roles})

            previous = sorted(user.role_names)
            user.roles = roles
            session.flush()

            logger.info(
                "User roles updated",
                extra={
                    "actor": actor.username,
                    "target_user": user.username,
                    "previous_roles": previous,
                    "roles": sorted(user.role_names),
                },
            )
            return UserResponse.from_user(user)

    def delete_user(self, actor: Principal, user_id: int) -> None:
        """
        Delete a user the actor is allowed to manage.

        Raises:
            InvalidPrincipal: If ``actor`` is missing or unauthenticated.
            NotFoundError: If the user does not exist.
            ForbiddenOperation: If the actor may not manage the user's current roles.
        """
        self.policy.require_actor(actor)

        with self.database.session_scope() as session:
            users = UserRepository(session)
            user = users.get_by_id(user_id)
            if user is None:
                raise NotFoundError("Error: User not found!")

            self.policy.check_can_manage(actor, user.role_names)

            username = user.username
            users.delete(user)

        logger.info("User deleted", extra={"actor": actor.username, "target_user": username})

    def _resolve_roles(self, session, role_names: Optional[Iterable[str]]) -> List[Role]:
        """Look up the requested roles, falling back to the base role."""
        requested: Set[str] = self.policy.resolve_requested_roles(role_names)
        found = RoleRepository(session).find_by_names(requested)

        missing = requested - {role.name for role in found}
        if missing:
            raise NotFoundError(f"Error: Role {sorted(missing)[0]} is not found.")

        return found
