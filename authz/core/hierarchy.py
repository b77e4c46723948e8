"""
Role hierarchy resolution.

The hierarchy is a static directed graph built once at startup: each role
maps to the roles it directly implies. Expansion walks the graph with a
visited set, so a malformed (cyclic) configuration still terminates.
"""

from typing import Dict, FrozenSet, Iterable, List, Mapping, Set, Union

from authz.config.logging import get_logger

logger = get_logger(__name__)


class RoleHierarchy:
    """Immutable adjacency map of role -> directly implied roles."""

    def __init__(self, implications: Mapping[str, Iterable[str]] = None):
        self._implies: Dict[str, FrozenSet[str]] = {
            role: frozenset(implied) for role, implied in (implications or {}).items()
        }

    @classmethod
    def from_config(cls, source: Union[Mapping[str, Iterable[str]], Iterable[str], str, None]) -> "RoleHierarchy":
        """
        Build a hierarchy from configuration.

        Accepts either a mapping ``{role: [implied, ...]}`` or Spring-style
        definitions such as ``"ROLE_ADMIN > ROLE_MODERATOR"`` (one per list
        item or per line). Chains like ``A > B > C`` are allowed.
        """
        if source is None:
            return cls()

        if isinstance(source, Mapping):
            return cls(source)

        if isinstance(source, str):
            source = source.splitlines()

        edges: Dict[str, Set[str]] = {}
        for line in source:
            parts = [part.strip() for part in line.split(">")]
            parts = [part for part in parts if part]
            if len(parts) < 2:
                if parts:
                    logger.warning("Ignoring role hierarchy line without '>'", extra={"line": line})
                continue
            for higher, lower in zip(parts, parts[1:]):
                edges.setdefault(higher, set()).add(lower)

        return cls(edges)

    def expand(self, roles: Iterable[str]) -> FrozenSet[str]:
        """Return the closure of ``roles`` under the implies relation, inputs included."""
        reachable: Set[str] = set()
        pending: List[str] = list(roles)

        while pending:
            role = pending.pop()
            if role in reachable:
                continue
            reachable.add(role)
            pending.extend(self._implies.get(role, ()))

        return frozenset(reachable)

    def implied_by(self, role: str) -> FrozenSet[str]:
        """Roles directly implied by ``role``."""
        return self._implies.get(role, frozenset())

    def as_dict(self) -> Dict[str, List[str]]:
        """Sorted plain-dict view, used for diagnostics."""
        return {role: sorted(implied) for role, implied in sorted(self._implies.items())}

    def __repr__(self) -> str:
        return f"RoleHierarchy({self.as_dict()!r})"
