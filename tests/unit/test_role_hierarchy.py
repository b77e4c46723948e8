"""Unit tests for role hierarchy expansion."""

from authz.core.hierarchy import RoleHierarchy
from authz.core.roles import DEFAULT_ROLE_HIERARCHY, ROLE_ADMIN, ROLE_MODERATOR, ROLE_SUPER_ADMIN, ROLE_USER


class TestExpand:
    """Test cases for RoleHierarchy.expand."""

    def test_expand_includes_inputs(self, hierarchy):
        assert ROLE_USER in hierarchy.expand({ROLE_USER})

    def test_expand_follows_chain(self, hierarchy):
        assert hierarchy.expand({ROLE_SUPER_ADMIN}) == {
            ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MODERATOR, ROLE_USER
        }

    def test_expand_moderator(self, hierarchy):
        assert hierarchy.expand({ROLE_MODERATOR}) == {ROLE_MODERATOR, ROLE_USER}

    def test_expand_is_idempotent(self, hierarchy):
        once = hierarchy.expand({ROLE_ADMIN, "users:read"})
        assert hierarchy.expand(once) == once

    def test_unknown_roles_pass_through(self, hierarchy):
        assert hierarchy.expand({"ROLE_AUDITOR"}) == {"ROLE_AUDITOR"}

    def test_empty_input(self, hierarchy):
        assert hierarchy.expand(set()) == frozenset()

    def test_expand_terminates_on_cycles(self):
        hierarchy = RoleHierarchy({"ROLE_A": ["ROLE_B"], "ROLE_B": ["ROLE_C"], "ROLE_C": ["ROLE_A"]})

        assert hierarchy.expand({"ROLE_B"}) == {"ROLE_A", "ROLE_B", "ROLE_C"}

    def test_expand_handles_multiple_parents(self):
        hierarchy = RoleHierarchy({"ROLE_A": ["ROLE_C"], "ROLE_B": ["ROLE_C", "ROLE_D"]})

        assert hierarchy.expand({"ROLE_A", "ROLE_B"}) == {"ROLE_A", "ROLE_B", "ROLE_C", "ROLE_D"}


class TestFromConfig:
    """Test cases for building a hierarchy from configuration."""

    def test_from_mapping(self):
        hierarchy = RoleHierarchy.from_config(DEFAULT_ROLE_HIERARCHY)

        assert hierarchy.implied_by(ROLE_ADMIN) == {ROLE_MODERATOR}

    def test_from_definition_lines(self):
        hierarchy = RoleHierarchy.from_config([
            "ROLE_SUPER_ADMIN > ROLE_ADMIN",
            "ROLE_ADMIN > ROLE_MODERATOR",
        ])

        assert hierarchy.expand({ROLE_SUPER_ADMIN}) == {ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MODERATOR}

    def test_from_multiline_string_with_chains(self):
        hierarchy = RoleHierarchy.from_config("ROLE_A > ROLE_B > ROLE_C\nROLE_X > ROLE_Y\n")

        assert hierarchy.expand({"ROLE_A"}) == {"ROLE_A", "ROLE_B", "ROLE_C"}
        assert hierarchy.expand({"ROLE_X"}) == {"ROLE_X", "ROLE_Y"}

    def test_lines_without_separator_are_ignored(self):
        hierarchy = RoleHierarchy.from_config(["ROLE_A", "", "ROLE_B > ROLE_C"])

        assert hierarchy.as_dict() == {"ROLE_B": ["ROLE_C"]}

    def test_none_gives_empty_hierarchy(self):
        hierarchy = RoleHierarchy.from_config(None)

        assert hierarchy.expand({ROLE_ADMIN}) == {ROLE_ADMIN}
        assert hierarchy.as_dict() == {}
