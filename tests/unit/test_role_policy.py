"""Unit tests for the role-management policy."""

import pytest

from authz.core.exceptions import ForbiddenOperation, InvalidPrincipal
from authz.core.policy import RoleManagementPolicy
from authz.core.principal import Principal
from authz.core.roles import ROLE_ADMIN, ROLE_MODERATOR, ROLE_SUPER_ADMIN, ROLE_USER
from tests.fixtures import make_principal


@pytest.fixture
def policy():
    return RoleManagementPolicy()


class TestActingRole:
    """The highest direct role decides what an actor may do."""

    def test_highest_role_wins(self, policy):
        actor = make_principal("multi", ROLE_USER, ROLE_MODERATOR, ROLE_ADMIN)

        assert policy.acting_role(actor) == ROLE_ADMIN

    def test_actor_without_system_roles_acts_as_user(self, policy):
        actor = make_principal("custom", "ROLE_AUDITOR")

        assert policy.acting_role(actor) == ROLE_USER

    def test_inherited_authority_does_not_count(self, policy):
        actor = Principal(
            username="sneaky",
            direct_roles=frozenset({ROLE_USER}),
            effective_authorities=frozenset({ROLE_USER, ROLE_ADMIN}),
        )

        assert policy.acting_role(actor) == ROLE_USER


class TestRequireActor:
    """Missing or anonymous actors are rejected."""

    def test_none_actor(self, policy):
        with pytest.raises(InvalidPrincipal, match="Invalid authentication principal"):
            policy.check_can_manage(None, {ROLE_USER})

    def test_anonymous_actor(self, policy):
        with pytest.raises(InvalidPrincipal):
            policy.check_can_manage(Principal.anonymous(), {ROLE_USER})

    def test_authenticated_anonymous_username_is_rejected(self, policy):
        actor = make_principal("anonymousUser", ROLE_ADMIN)

        with pytest.raises(InvalidPrincipal):
            policy.check_can_manage(actor, {ROLE_USER})

    def test_custom_anonymous_username(self):
        policy = RoleManagementPolicy(anonymous_username="guest")

        with pytest.raises(InvalidPrincipal):
            policy.require_actor(make_principal("guest", ROLE_ADMIN))
        policy.require_actor(make_principal("anonymousUser", ROLE_ADMIN))


class TestResolveRequestedRoles:
    """Normalisation of requested role sets."""

    @pytest.mark.parametrize("requested", [None, [], set(), ["", "  "]])
    def test_empty_request_defaults_to_base_role(self, policy, requested):
        assert policy.resolve_requested_roles(requested) == {ROLE_USER}

    def test_custom_base_role(self):
        assert RoleManagementPolicy(base_role="ROLE_MEMBER").resolve_requested_roles(None) == {"ROLE_MEMBER"}

    def test_super_admin_can_never_be_requested(self, policy):
        with pytest.raises(ForbiddenOperation, match="Cannot create or assign SUPER_ADMIN role"):
            policy.resolve_requested_roles({ROLE_USER, ROLE_SUPER_ADMIN})

    def test_names_are_stripped(self, policy):
        assert policy.resolve_requested_roles([" ROLE_MODERATOR "]) == {ROLE_MODERATOR}


class TestCheckCanManage:
    """Who may manage users holding which roles."""

    def test_super_admin_manages_anything(self, policy):
        actor = make_principal("root", ROLE_SUPER_ADMIN)

        policy.check_can_manage(actor, {ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER})
        policy.check_can_manage(actor, {ROLE_SUPER_ADMIN})

    def test_admin_manages_moderators_and_users(self, policy):
        actor = make_principal("boss", ROLE_ADMIN)

        policy.check_can_manage(actor, {ROLE_MODERATOR, ROLE_USER})
        policy.check_can_manage(actor, {"ROLE_AUDITOR"})

    @pytest.mark.parametrize("target", [ROLE_ADMIN, ROLE_SUPER_ADMIN])
    def test_admin_cannot_manage_admins(self, policy, target):
        actor = make_principal("boss", ROLE_ADMIN)

        with pytest.raises(ForbiddenOperation, match="Admin cannot manage Admins or Super Admins"):
            policy.check_can_manage(actor, {ROLE_USER, target})

    def test_moderator_manages_users(self, policy):
        policy.check_can_manage(make_principal("mod", ROLE_MODERATOR), {ROLE_USER})

    @pytest.mark.parametrize("target", [ROLE_MODERATOR, ROLE_ADMIN, "ROLE_AUDITOR"])
    def test_moderator_cannot_manage_above_user(self, policy, target):
        actor = make_principal("mod", ROLE_MODERATOR)

        with pytest.raises(ForbiddenOperation, match="Moderator can only manage Users"):
            policy.check_can_manage(actor, {target})

    def test_user_cannot_manage_anyone(self, policy):
        with pytest.raises(ForbiddenOperation):
            policy.check_can_manage(make_principal("alice", ROLE_USER), {ROLE_USER})

    def test_policy_ignores_hierarchy(self, policy):
        # authorities are not roles for management purposes
        actor = make_principal("boss", ROLE_ADMIN, permissions=[ROLE_SUPER_ADMIN])

        with pytest.raises(ForbiddenOperation):
            policy.check_can_manage(actor, {ROLE_ADMIN})


class TestRenamedSuperAdminRole:
    """The configured super-admin role name replaces the built-in one."""

    @pytest.fixture
    def policy(self):
        return RoleManagementPolicy(super_admin_role="ROLE_ROOT")

    def test_renamed_role_can_never_be_requested(self, policy):
        with pytest.raises(ForbiddenOperation, match="Cannot create or assign SUPER_ADMIN role"):
            policy.resolve_requested_roles({"ROLE_ROOT"})

    def test_renamed_role_ranks_highest(self, policy):
        actor = make_principal("root", ROLE_ADMIN, "ROLE_ROOT")

        assert policy.acting_role(actor) == "ROLE_ROOT"
        policy.check_can_manage(actor, {ROLE_ADMIN})

    def test_admin_cannot_manage_renamed_role(self, policy):
        actor = make_principal("boss", ROLE_ADMIN)

        with pytest.raises(ForbiddenOperation, match="Admin cannot manage Admins or Super Admins"):
            policy.check_can_manage(actor, {"ROLE_ROOT"})

    def test_builtin_name_is_no_longer_special(self, policy):
        actor = make_principal("impostor", ROLE_SUPER_ADMIN)

        assert policy.acting_role(actor) == ROLE_USER
