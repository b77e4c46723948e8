"""Endpoint rule management."""

from typing import List

from authz.config.logging import get_logger
from authz.core.exceptions import NotFoundError, ValidationError
from authz.core.matcher import validate_pattern
from authz.db.repositories import EndpointRuleRepository, RoleRepository
from authz.db.session import Database
from authz.schemas import EndpointRuleResponse

logger = get_logger(__name__)

HTTP_METHODS = frozenset({"GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE"})


def _to_response(rule) -> EndpointRuleResponse:
    return EndpointRuleResponse(
        id=rule.id,
        url_pattern=rule.url_pattern,
        http_method=rule.http_method,
        role=rule.role_name,
    )


class EndpointRuleService:
    """
    Add, remove and list endpoint rules.

    Changes are committed before the call returns, so the next
    authorization check (including the caller's own) already sees them.
    """

    def __init__(self, database: Database, rules: EndpointRuleRepository):
        self.database = database
        self.rules = rules

    def list_rules(self) -> List[EndpointRuleResponse]:
        return [_to_response(rule) for rule in self.rules.find_all()]

    def add_rule(self, url_pattern: str, http_method: str, role_name: str) -> EndpointRuleResponse:
        """
        Raises:
            ValidationError: If the pattern or method is malformed.
            NotFoundError: If the role does not exist.
        """
        validate_pattern(url_pattern)

        method = http_method.strip().upper()
        if method not in HTTP_METHODS:
            raise ValidationError(f"Error: Unsupported HTTP method {http_method}")

        with self.database.session_scope() as session:
            role = RoleRepository(session).get_by_name(role_name)
            if role is None:
                raise NotFoundError(f"Error: Role {role_name} is not found.")

            rule = self.rules.add_in(session, url_pattern, method, role)

        return _to_response(rule)

    def remove_rule(self, rule_id: int) -> None:
        """
        Raises:
            NotFoundError: If no rule has this id.
        """
        if not self.rules.remove(rule_id):
            raise NotFoundError("Error: Endpoint rule not found!")
