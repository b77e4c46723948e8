"""
Endpoint rules as seen by the decision engine.

The engine never touches ORM objects: stores hand it immutable
``EndpointRuleView`` snapshots in a fixed order (ascending rule id, i.e.
insertion order).
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class EndpointRuleView:
    """Requests matching ``http_method`` + ``url_pattern`` require ``role_name``."""
    id: int
    url_pattern: str
    http_method: str
    role_name: str

    def __str__(self) -> str:
        return f"{self.http_method.upper()} {self.url_pattern} -> {self.role_name}"


class EndpointRuleStore(ABC):
    """Read side of the endpoint rule collection."""

    @abstractmethod
    def find_all(self) -> List[EndpointRuleView]:
        """Return the current rule set ordered by rule id."""


class InMemoryEndpointRuleStore(EndpointRuleStore):
    """
    Copy-on-write rule store.

    Writers build a new tuple under a lock and swap it in; readers grab the
    current tuple reference without locking, so a reader always sees a
    complete snapshot.
    """

    def __init__(self, rules: Optional[Iterable[EndpointRuleView]] = None):
        self._lock = threading.Lock()
        self._rules: Tuple[EndpointRuleView, ...] = tuple(sorted(rules or (), key=lambda r: r.id))
        self._next_id = max((r.id for r in self._rules), default=0) + 1

    def find_all(self) -> List[EndpointRuleView]:
        return list(self._rules)

    def add(self, url_pattern: str, http_method: str, role_name: str) -> EndpointRuleView:
        with self._lock:
            rule = EndpointRuleView(
                id=self._next_id,
                url_pattern=url_pattern,
                http_method=http_method.upper(),
                role_name=role_name,
            )
            self._next_id += 1
            self._rules = self._rules + (rule,)
        return rule

    def remove(self, rule_id: int) -> bool:
        with self._lock:
            remaining = tuple(r for r in self._rules if r.id != rule_id)
            removed = len(remaining) != len(self._rules)
            self._rules = remaining
        return removed
