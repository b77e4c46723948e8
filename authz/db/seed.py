"""
Idempotent startup seeding.

Creates the system roles, the configured permission catalog and role
grants, the default endpoint rules and an optional bootstrap super-admin.
Existing rows are left alone, so seeding on every start is safe.
"""

from typing import Dict

from sqlalchemy import select

from authz.config import SeedConfig
from authz.config.logging import get_logger
from authz.core.roles import ROLE_PRIORITY
from authz.db.repositories import PermissionRepository, RoleRepository, UserRepository
from authz.db.session import Database
from authz.models import EndpointRule, Permission, Role, User
from authz.services.auth_service import hash_password

logger = get_logger(__name__)


def seed_database(database: Database, seed: SeedConfig, super_admin_role: str) -> Dict[str, int]:
    """
    Create missing seed data.

    Returns:
        Counts of rows created per kind
    """
    created = {"permissions": 0, "roles": 0, "endpoint_rules": 0, "users": 0}

    if not seed.enabled:
        logger.info("Database seeding disabled")
        return created

    with database.session_scope() as session:
        permissions = PermissionRepository(session)
        roles = RoleRepository(session)

        permission_names = set(seed.permissions)
        for granted in seed.roles.values():
            permission_names.update(granted)

        for name in sorted(permission_names):
            if permissions.get_by_name(name) is None:
                permissions.save(Permission(name=name))
                created["permissions"] += 1

        role_names = list(dict.fromkeys(list(ROLE_PRIORITY) + [super_admin_role] + list(seed.roles)))
        for name in role_names:
            role = roles.get_by_name(name)
            if role is None:
                role = roles.save(Role(name=name))
                created["roles"] += 1

            for permission_name in seed.roles.get(name, []):
                permission = permissions.get_by_name(permission_name)
                if permission not in role.permissions:
                    role.permissions.append(permission)

        for rule_seed in seed.endpoint_rules:
            method = rule_seed.http_method.upper()
            role = roles.get_by_name(rule_seed.role)
            if role is None:
                logger.warning(f"Skipping endpoint rule for unknown role {rule_seed.role}")
                continue

            existing = session.scalars(
                select(EndpointRule).where(
                    EndpointRule.url_pattern == rule_seed.url_pattern,
                    EndpointRule.http_method == method,
                    EndpointRule.role_id == role.id,
                )
            ).first()
            if existing is None:
                session.add(EndpointRule(url_pattern=rule_seed.url_pattern, http_method=method, role=role))
                session.flush()
                created["endpoint_rules"] += 1

        bootstrap = seed.super_admin
        if bootstrap is not None:
            users = UserRepository(session)
            if not users.exists_by_username(bootstrap.username):
                users.save(
                    User(
                        username=bootstrap.username,
                        email=bootstrap.email,
                        hashed_password=hash_password(bootstrap.password),
                        roles=[roles.get_by_name(super_admin_role)],
                    )
                )
                created["users"] += 1

    logger.info("Database seeded", extra={"created": created})
    return created
