"""
Explicit wiring of the service's collaborators.

Everything the transport layer needs is built once from an ``AppConfig``
and passed around as a ``ServiceContainer``; nothing is looked up from
module-level globals at request time.
"""

from dataclasses import dataclass

from authz.config import AppConfig
from authz.config.db_config import get_database_settings, validate_database_config
from authz.config.logging import get_logger
from authz.core.decision import AuthorizationDecisionEngine
from authz.core.hierarchy import RoleHierarchy
from authz.core.policy import RoleManagementPolicy
from authz.core.principal import PrincipalBuilder
from authz.core.roles import ROLE_PRIORITY
from authz.db.repositories import EndpointRuleRepository
from authz.db.session import Database
from authz.services.auth_service import Authenticator, PrincipalLoader
from authz.services.permission_service import PermissionService
from authz.services.role_service import RoleService
from authz.services.rule_service import EndpointRuleService
from authz.services.user_service import UserService

logger = get_logger(__name__)


@dataclass
class ServiceContainer:
    """All long-lived collaborators of one application instance."""
    config: AppConfig
    database: Database
    hierarchy: RoleHierarchy
    rule_store: EndpointRuleRepository
    engine: AuthorizationDecisionEngine
    principal_builder: PrincipalBuilder
    principal_loader: PrincipalLoader
    authenticator: Authenticator
    policy: RoleManagementPolicy
    users: UserService
    permissions: PermissionService
    roles: RoleService
    rules: EndpointRuleService


def build_container(config: AppConfig, apply_env_overrides: bool = True) -> ServiceContainer:
    """Create every collaborator for ``config``."""
    database_config = config.database
    if apply_env_overrides:
        database_config = get_database_settings().apply_to(database_config)
    validate_database_config(database_config, workers=config.server.workers)

    security = config.security
    database = Database(database_config)
    hierarchy = RoleHierarchy.from_config(security.role_hierarchy)
    rule_store = EndpointRuleRepository(database.session_scope)

    engine = AuthorizationDecisionEngine(
        rule_store=rule_store,
        hierarchy=hierarchy,
        super_admin_role=security.super_admin_role,
        anonymous_username=security.anonymous_username,
        enforce_matched_rules=security.enforce_matched_rules,
    )

    builder = PrincipalBuilder(super_admin_role=security.super_admin_role)
    policy = RoleManagementPolicy(
        base_role=security.base_role,
        super_admin_role=security.super_admin_role,
        anonymous_username=security.anonymous_username,
    )

    logger.info(
        "Authorization engine configured",
        extra={
            "hierarchy": hierarchy.as_dict(),
            "enforce_matched_rules": security.enforce_matched_rules,
        },
    )

    return ServiceContainer(
        config=config,
        database=database,
        hierarchy=hierarchy,
        rule_store=rule_store,
        engine=engine,
        principal_builder=builder,
        principal_loader=PrincipalLoader(database, builder),
        authenticator=Authenticator(database, builder),
        policy=policy,
        users=UserService(database, policy),
        permissions=PermissionService(database),
        roles=RoleService(database, protected_roles=set(ROLE_PRIORITY) | {security.super_admin_role}),
        rules=EndpointRuleService(database, rule_store),
    )
