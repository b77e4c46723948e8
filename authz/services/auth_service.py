"""
Authentication: password hashing, credential checks and principal loading.

Credentials are checked on every request (HTTP Basic); no tokens are
issued. The principal is rebuilt from the database each time, so role
changes take effect on the caller's next request.
"""

from typing import Optional

from passlib.context import CryptContext

from authz.config.logging import get_logger
from authz.core.exceptions import InvalidPrincipal, NotFoundError
from authz.core.principal import Principal, PrincipalBuilder
from authz.db.repositories import PermissionRepository, UserRepository
from authz.db.session import Database

logger = get_logger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Verified against when the username is unknown, to keep timing uniform
_DUMMY_HASH = pwd_context.hash("not-a-real-password")


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


class PrincipalLoader:
    """Loads users and turns them into principals in one read transaction."""

    def __init__(self, database: Database, builder: PrincipalBuilder):
        self.database = database
        self.builder = builder

    def build_for_user(self, session, user) -> Principal:
        # The full permission catalog is only fetched for super-admins
        all_permissions = None
        if self.builder.is_super_admin(user):
            all_permissions = PermissionRepository(session).all_names()
        return self.builder.build(user, all_permissions)

    def load_by_username(self, username: str) -> Principal:
        """
        Raises:
            NotFoundError: If no user has this username.
        """
        with self.database.session_scope() as session:
            user = UserRepository(session).get_by_username(username)
            if user is None:
                raise NotFoundError(f"User Not Found with username: {username}")
            return self.build_for_user(session, user)

    def load_by_id(self, user_id: int) -> Principal:
        """
        Raises:
            NotFoundError: If no user has this id.
        """
        with self.database.session_scope() as session:
            user = UserRepository(session).get_by_id(user_id)
            if user is None:
                raise NotFoundError(f"User Not Found with id: {user_id}")
            return self.build_for_user(session, user)


class Authenticator:
    """Checks username/password pairs and returns the caller's principal."""

    def __init__(self, database: Database, builder: PrincipalBuilder):
        self.database = database
        self.builder = builder
        self.loader = PrincipalLoader(database, builder)

    def authenticate(self, username: Optional[str], password: Optional[str]) -> Principal:
        """
        Verify credentials.

        Raises:
            InvalidPrincipal: If the username is unknown or the password is wrong.
        """
        if not username or password is None:
            raise InvalidPrincipal("Missing credentials")

        with self.database.session_scope() as session:
            user = UserRepository(session).get_by_username(username)

            if user is None:
                verify_password(password, _DUMMY_HASH)
                logger.warning("Authentication failed: unknown user", extra={"username": username})
                raise InvalidPrincipal("Invalid username or password")

            if not verify_password(password, user.hashed_password):
                logger.warning("Authentication failed: bad password", extra={"username": username})
                raise InvalidPrincipal("Invalid username or password")

            return self.loader.build_for_user(session, user)
