"""
Authorization decision engine.

Combines the role hierarchy, the endpoint rule store and the path matcher
into an allow/deny decision for a single request:

1. Missing, unauthenticated or anonymous principals are denied.
2. The principal's authorities are expanded through the role hierarchy.
3. The super-admin role bypasses all rules.
4. Rules are scanned in id order. The first matching rule whose role the
   principal holds grants access. A matching rule the principal does not
   satisfy does not deny on its own; later rules may still grant.
5. If nothing granted, authenticated non-anonymous principals are allowed
   (permissive fallback). ``enforce_matched_rules`` turns "matched but not
   satisfied" into a deny instead.

The engine holds no per-request state and re-reads the rule store on every
call, so it is safe to share between worker threads.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from authz.config.logging import get_logger
from authz.core import matcher
from authz.core.hierarchy import RoleHierarchy
from authz.core.principal import Principal
from authz.core.roles import ANONYMOUS_USERNAME, ROLE_SUPER_ADMIN
from authz.core.rules import EndpointRuleStore, EndpointRuleView

logger = get_logger(__name__)


class AccessEffect(Enum):
    """Outcome of an authorization decision."""
    ALLOW = "allow"
    DENY = "deny"


@dataclass
class AccessResult:
    """Authorization decision with the reason it was reached."""
    effect: AccessEffect
    reason: str
    matched_rule: Optional[EndpointRuleView] = None
    required_roles: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def granted(self) -> bool:
        return self.effect is AccessEffect.ALLOW


class AuthorizationDecisionEngine:
    """Decides whether a principal may call ``method path``."""

    def __init__(
        self,
        rule_store: EndpointRuleStore,
        hierarchy: RoleHierarchy,
        super_admin_role: str = ROLE_SUPER_ADMIN,
        anonymous_username: str = ANONYMOUS_USERNAME,
        enforce_matched_rules: bool = False,
    ):
        self.rule_store = rule_store
        self.hierarchy = hierarchy
        self.super_admin_role = super_admin_role
        self.anonymous_username = anonymous_username
        self.enforce_matched_rules = enforce_matched_rules

    def decide(self, principal: Optional[Principal], path: str, method: str) -> AccessEffect:
        """Return ``ALLOW`` or ``DENY`` for the request."""
        return self.evaluate(principal, path, method).effect

    def evaluate(self, principal: Optional[Principal], path: str, method: str) -> AccessResult:
        """Same as :meth:`decide` but keeps the reason and the granting rule."""
        start_time = time.perf_counter()
        result = self._evaluate(principal, path, method)

        logger.debug(
            "Authorization decision",
            extra={
                "username": principal.username if principal else None,
                "method": method,
                "path": path,
                "effect": result.effect.value,
                "reason": result.reason,
                "rule_id": result.matched_rule.id if result.matched_rule else None,
                "elapsed_ms": round((time.perf_counter() - start_time) * 1000, 3),
            },
        )
        return result

    def _evaluate(self, principal: Optional[Principal], path: str, method: str) -> AccessResult:
        if principal is None or principal.is_anonymous(self.anonymous_username):
            return AccessResult(AccessEffect.DENY, "Not authenticated")

        effective_roles = self.hierarchy.expand(principal.direct_roles | principal.effective_authorities)

        if self.super_admin_role in effective_roles:
            return AccessResult(AccessEffect.ALLOW, "Super admin bypass")

        unsatisfied: List[str] = []
        for rule in self.rule_store.find_all():
            if not matcher.method_matches(rule.http_method, method):
                continue
            if not matcher.match(rule.url_pattern, path):
                continue

            if rule.role_name in effective_roles:
                return AccessResult(
                    AccessEffect.ALLOW,
                    f"Granted by rule {rule}",
                    matched_rule=rule,
                    required_roles=[rule.role_name],
                )
            unsatisfied.append(rule.role_name)

        if unsatisfied:
            reason = f"Requires one of {sorted(set(unsatisfied))}"
            if self.enforce_matched_rules:
                return AccessResult(AccessEffect.DENY, reason, required_roles=sorted(set(unsatisfied)))
            return AccessResult(
                AccessEffect.ALLOW,
                f"{reason}; allowed by authenticated fallback",
                required_roles=sorted(set(unsatisfied)),
            )

        return AccessResult(AccessEffect.ALLOW, "No matching rule; authenticated fallback")
