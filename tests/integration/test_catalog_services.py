"""Integration tests for permission and role management."""

from unittest.mock import patch

import pytest

from authz.core.exceptions import ConflictError, ForbiddenOperation, NotFoundError
from authz.core.roles import ROLE_ADMIN, ROLE_MODERATOR, ROLE_SUPER_ADMIN, ROLE_USER
from authz.db.repositories import PermissionRepository, RoleRepository


class TestPermissionService:
    """Test cases for PermissionService."""

    def test_list_includes_seeded_permissions(self, container):
        names = {p.name for p in container.permissions.list_permissions()}

        assert {"users:read", "users:write", "rules:write"} <= names

    def test_create_permission(self, container):
        created = container.permissions.create_permission("reports:read", "Read reports")

        assert created.id is not None
        assert created.name == "reports:read"
        assert created.description == "Read reports"

    def test_duplicate_permission_name(self, container):
        with pytest.raises(ConflictError, match="Permission name is already taken"):
            container.permissions.create_permission("users:read")

    def test_concurrent_duplicate_permission_conflicts(self, container):
        # another writer inserted the name after the duplicate check
        with patch.object(PermissionRepository, "get_by_name", return_value=None):
            with pytest.raises(ConflictError, match="Permission name is already taken"):
                container.permissions.create_permission("users:read")

        names = [p.name for p in container.permissions.list_permissions()]
        assert names.count("users:read") == 1

    def test_new_permission_reaches_super_admin_catalog(self, container, super_admin):
        container.permissions.create_permission("reports:read")

        reloaded = container.principal_loader.load_by_id(super_admin.user_id)

        assert "reports:read" in reloaded.effective_authorities

    def test_delete_permission_detaches_it_from_roles(self, container, moderator):
        permission = next(p for p in container.permissions.list_permissions() if p.name == "users:write")

        container.permissions.delete_permission(permission.id)

        reloaded = container.principal_loader.load_by_id(moderator.user_id)
        assert "users:write" not in reloaded.effective_authorities
        assert "users:read" in reloaded.effective_authorities

    def test_delete_unknown_permission(self, container):
        with pytest.raises(NotFoundError, match="Permission not found"):
            container.permissions.delete_permission(9999)


class TestRoleService:
    """Test cases for RoleService."""

    def test_system_roles_are_seeded(self, container):
        names = {role.name for role in container.roles.list_roles()}

        assert {ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER} <= names

    def test_create_role_with_permissions(self, container):
        role = container.roles.create_role("ROLE_AUDITOR", "Read-only auditing", {"users:read"})

        assert role.name == "ROLE_AUDITOR"
        assert role.permissions == ["users:read"]

    def test_create_duplicate_role(self, container):
        with pytest.raises(ConflictError):
            container.roles.create_role(ROLE_ADMIN)

    def test_concurrent_duplicate_role_conflicts(self, container):
        with patch.object(RoleRepository, "get_by_name", return_value=None):
            with pytest.raises(ConflictError, match="already exists"):
                container.roles.create_role(ROLE_ADMIN)

    def test_create_role_with_unknown_permission(self, container):
        with pytest.raises(NotFoundError, match="Permission ghost:read is not found"):
            container.roles.create_role("ROLE_GHOST", permission_names={"ghost:read"})

        assert "ROLE_GHOST" not in {role.name for role in container.roles.list_roles()}

    def test_new_role_is_assignable(self, container, super_admin):
        container.roles.create_role("ROLE_AUDITOR", permission_names={"users:read"})

        created = container.users.create_user(
            super_admin, "auditor", "auditor@example.com", "secret123", {"ROLE_AUDITOR"}
        )

        assert created.roles == ["ROLE_AUDITOR"]

    def test_delete_unused_role(self, container):
        container.roles.create_role("ROLE_TEMP")

        container.roles.delete_role("ROLE_TEMP")

        assert "ROLE_TEMP" not in {role.name for role in container.roles.list_roles()}

    def test_system_role_cannot_be_deleted(self, container):
        with pytest.raises(ForbiddenOperation):
            container.roles.delete_role(ROLE_MODERATOR)

    def test_role_in_use_cannot_be_deleted(self, container, create_user):
        container.roles.create_role("ROLE_AUDITOR")
        create_user("auditor", "ROLE_AUDITOR")

        with pytest.raises(ConflictError):
            container.roles.delete_role("ROLE_AUDITOR")

    def test_role_referenced_by_rule_cannot_be_deleted(self, container):
        container.roles.create_role("ROLE_AUDITOR")
        container.rules.add_rule("/api/v1/audit/**", "GET", "ROLE_AUDITOR")

        with pytest.raises(ConflictError):
            container.roles.delete_role("ROLE_AUDITOR")

    def test_delete_unknown_role(self, container):
        with pytest.raises(NotFoundError):
            container.roles.delete_role("ROLE_GHOST")
