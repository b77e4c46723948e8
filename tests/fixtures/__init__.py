"""Test fixtures for authorization service tests."""

from typing import Callable, Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from authz.config import AppConfig, DatabaseConfig, EndpointRuleSeed, LoggingConfig, SeedConfig
from authz.container import ServiceContainer, build_container
from authz.core.decision import AuthorizationDecisionEngine
from authz.core.hierarchy import RoleHierarchy
from authz.core.principal import Principal
from authz.core.roles import DEFAULT_ROLE_HIERARCHY, ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER
from authz.core.rules import InMemoryEndpointRuleStore
from authz.db.repositories import RoleRepository
from authz.db.seed import seed_database
from authz.main import create_app
from authz.models import User
from authz.services.auth_service import hash_password

TEST_PASSWORD = "password123"
SUPER_ADMIN_USERNAME = "superadmin"
SUPER_ADMIN_PASSWORD = "superpass123"


def make_principal(username: str, *roles: str, permissions: Iterable[str] = (), user_id: int = 1) -> Principal:
    """Build an authenticated principal without touching the database."""
    return Principal(
        user_id=user_id,
        username=username,
        email=f"{username}@example.com",
        direct_roles=frozenset(roles),
        effective_authorities=frozenset(roles) | frozenset(permissions),
    )


@pytest.fixture
def seed_config() -> SeedConfig:
    """Seed data mirroring the shipped defaults, trimmed to what tests use."""
    return SeedConfig(
        permissions=["users:read", "users:write", "rules:write"],
        roles={
            ROLE_MODERATOR: ["users:read", "users:write"],
            ROLE_ADMIN: ["users:read", "users:write", "rules:write"],
        },
        endpoint_rules=[
            EndpointRuleSeed(url_pattern="/api/v1/users/**", http_method=method, role=ROLE_MODERATOR)
            for method in ("GET", "POST", "PUT", "DELETE")
        ],
        super_admin={
            "username": SUPER_ADMIN_USERNAME,
            "email": "superadmin@example.com",
            "password": SUPER_ADMIN_PASSWORD,
        },
    )


@pytest.fixture
def app_config(seed_config) -> AppConfig:
    """Configuration backed by a private in-memory SQLite database."""
    return AppConfig(
        database=DatabaseConfig(url="sqlite://"),
        logging=LoggingConfig(level="WARNING"),
        seed=seed_config,
    )


@pytest.fixture
def container(app_config) -> ServiceContainer:
    """Fully wired, seeded services over a fresh database."""
    container = build_container(app_config, apply_env_overrides=False)
    container.database.create_all()
    seed_database(container.database, app_config.seed, super_admin_role=app_config.security.super_admin_role)
    yield container
    container.database.dispose()


@pytest.fixture(scope="session")
def password_hash() -> str:
    """bcrypt is slow; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture
def create_user(container, password_hash) -> Callable[..., Principal]:
    """Insert a user with the given roles and return its principal."""
    def _create(username: str, *roles: str, email: Optional[str] = None) -> Principal:
        with container.database.session_scope() as session:
            user = User(
                username=username,
                email=email or f"{username}@example.com",
                hashed_password=password_hash,
                roles=RoleRepository(session).find_by_names(roles),
            )
            session.add(user)
        return container.principal_loader.load_by_username(username)

    return _create


@pytest.fixture
def super_admin(container) -> Principal:
    return container.principal_loader.load_by_username(SUPER_ADMIN_USERNAME)


@pytest.fixture
def admin(create_user) -> Principal:
    return create_user("admin", ROLE_ADMIN)


@pytest.fixture
def moderator(create_user) -> Principal:
    return create_user("moderator", ROLE_MODERATOR)


@pytest.fixture
def regular_user(create_user) -> Principal:
    return create_user("regular", ROLE_USER)


@pytest.fixture
def rule_store() -> InMemoryEndpointRuleStore:
    return InMemoryEndpointRuleStore()


@pytest.fixture
def hierarchy() -> RoleHierarchy:
    return RoleHierarchy(DEFAULT_ROLE_HIERARCHY)


@pytest.fixture
def decision_engine(rule_store, hierarchy) -> AuthorizationDecisionEngine:
    return AuthorizationDecisionEngine(rule_store=rule_store, hierarchy=hierarchy)


@pytest.fixture
def app(app_config):
    """Application instance over its own in-memory database."""
    return create_app(app_config, configure_logging=False)


@pytest.fixture
def test_client(app):
    """Create a test client for the FastAPI app (runs startup seeding)."""
    with TestClient(app) as client:
        yield client


@pytest.fixture
def api_user(app, test_client, password_hash) -> Callable[..., tuple]:
    """Insert a user into the app's database; returns ``(username, password)`` for Basic auth."""
    def _create(username: str, *roles: str) -> tuple:
        database = app.state.container.database
        with database.session_scope() as session:
            session.add(
                User(
                    username=username,
                    email=f"{username}@example.com",
                    hashed_password=password_hash,
                    roles=RoleRepository(session).find_by_names(roles),
                )
            )
        return username, TEST_PASSWORD

    return _create
