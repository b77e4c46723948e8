"""
Keyed-storage repositories over SQLAlchemy sessions.

User, role and permission repositories work inside a caller-supplied
session so a service can compose several of them into one transaction.
The endpoint rule repository owns its sessions: the decision engine calls
``find_all`` once per request and gets a fresh, committed snapshot.
"""

from typing import Callable, Iterable, List, Optional

from sqlalchemy import delete, exists, select
from sqlalchemy.orm import Session

from authz.config.logging import get_logger
from authz.core.rules import EndpointRuleStore, EndpointRuleView
from authz.models import EndpointRule, Permission, Role, User, user_roles

logger = get_logger(__name__)


class UserRepository:
    """Lookup and persistence for users."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.username == username)).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.session.scalars(select(User).where(User.email == email)).first()

    def exists_by_username(self, username: str) -> bool:
        return self.session.scalar(select(exists().where(User.username == username)))

    def exists_by_email(self, email: str) -> bool:
        return self.session.scalar(select(exists().where(User.email == email)))

    def list(self) -> List[User]:
        return list(self.session.scalars(select(User).order_by(User.id)))

    def save(self, user: User) -> User:
        self.session.add(user)
        self.session.flush()
        return user

    def delete(self, user: User) -> None:
        self.session.delete(user)
        self.session.flush()


class RoleRepository:
    """Lookup and persistence for roles."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_name(self, name: str) -> Optional[Role]:
        return self.session.scalars(select(Role).where(Role.name == name)).first()

    def find_by_names(self, names: Iterable[str]) -> List[Role]:
        names = list(names)
        if not names:
            return []
        return list(self.session.scalars(select(Role).where(Role.name.in_(names)).order_by(Role.name)))

    def list(self) -> List[Role]:
        return list(self.session.scalars(select(Role).order_by(Role.id)))

    def is_referenced(self, role: Role) -> bool:
        """True if any user or endpoint rule still points at ``role``."""
        used_by_user = self.session.scalar(select(exists().where(user_roles.c.role_id == role.id)))
        used_by_rule = self.session.scalar(select(exists().where(EndpointRule.role_id == role.id)))
        return bool(used_by_user or used_by_rule)

    def save(self, role: Role) -> Role:
        self.session.add(role)
        self.session.flush()
        return role

    def delete(self, role: Role) -> None:
        self.session.delete(role)
        self.session.flush()


class PermissionRepository:
    """Lookup and persistence for permissions."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, permission_id: int) -> Optional[Permission]:
        return self.session.get(Permission, permission_id)

    def get_by_name(self, name: str) -> Optional[Permission]:
        return self.session.scalars(select(Permission).where(Permission.name == name)).first()

    def find_by_names(self, names: Iterable[str]) -> List[Permission]:
        names = list(names)
        if not names:
            return []
        return list(self.session.scalars(select(Permission).where(Permission.name.in_(names))))

    def list(self) -> List[Permission]:
        return list(self.session.scalars(select(Permission).order_by(Permission.id)))

    def all_names(self) -> List[str]:
        """The full permission catalog, by name."""
        return list(self.session.scalars(select(Permission.name).order_by(Permission.name)))

    def save(self, permission: Permission) -> Permission:
        self.session.add(permission)
        self.session.flush()
        return permission

    def delete(self, permission: Permission) -> None:
        self.session.delete(permission)
        self.session.flush()


class EndpointRuleRepository(EndpointRuleStore):
    """
    Persistent endpoint rule collection.

    Every call runs in its own short transaction; readers only ever see
    committed rule sets.
    """

    def __init__(self, session_scope: Callable):
        self._session_scope = session_scope

    def find_all(self) -> List[EndpointRuleView]:
        with self._session_scope() as session:
            rules = session.scalars(select(EndpointRule).order_by(EndpointRule.id))
            return [rule.to_view() for rule in rules]

    def get(self, rule_id: int) -> Optional[EndpointRuleView]:
        with self._session_scope() as session:
            rule = session.get(EndpointRule, rule_id)
            return rule.to_view() if rule else None

    def add_in(self, session: Session, url_pattern: str, http_method: str, role: Role) -> EndpointRuleView:
        """Add a rule inside an existing transaction."""
        rule = EndpointRule(url_pattern=url_pattern, http_method=http_method.upper(), role=role)
        session.add(rule)
        session.flush()
        logger.info(f"Added endpoint rule {rule.http_method} {rule.url_pattern} -> {role.name}")
        return rule.to_view()

    def remove(self, rule_id: int) -> bool:
        with self._session_scope() as session:
            result = session.execute(delete(EndpointRule).where(EndpointRule.id == rule_id))
            removed = result.rowcount > 0

        if removed:
            logger.info(f"Removed endpoint rule {rule_id}")
        return removed
