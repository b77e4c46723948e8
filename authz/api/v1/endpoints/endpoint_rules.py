"""
Endpoint rule endpoints.

Rules take effect on the next request; there is no cache to invalidate.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from authz.api.deps import get_rule_service, require_any_role
from authz.core.principal import Principal
from authz.core.roles import ROLE_ADMIN
from authz.schemas import CreateEndpointRuleRequest, EndpointRuleResponse, MessageResponse
from authz.services.rule_service import EndpointRuleService

router = APIRouter(prefix="/endpoint-rules", tags=["Endpoint Rules"])

require_admin = require_any_role(ROLE_ADMIN)


@router.get("", response_model=List[EndpointRuleResponse], summary="List endpoint rules in evaluation order")
def list_rules(
    _: Principal = Depends(require_admin),
    rules: EndpointRuleService = Depends(get_rule_service),
) -> List[EndpointRuleResponse]:
    return rules.list_rules()


@router.post(
    "",
    response_model=EndpointRuleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add an endpoint rule",
)
def add_rule(
    request: CreateEndpointRuleRequest,
    _: Principal = Depends(require_admin),
    rules: EndpointRuleService = Depends(get_rule_service),
) -> EndpointRuleResponse:
    return rules.add_rule(request.url_pattern, request.http_method, request.role)


@router.delete("/{rule_id}", response_model=MessageResponse, summary="Remove an endpoint rule")
def remove_rule(
    rule_id: int,
    _: Principal = Depends(require_admin),
    rules: EndpointRuleService = Depends(get_rule_service),
) -> MessageResponse:
    rules.remove_rule(rule_id)
    return MessageResponse(message="Endpoint rule deleted successfully!")
