"""The caller's own principal."""

from fastapi import APIRouter, Depends

from authz.api.deps import get_current_principal
from authz.core.principal import Principal
from authz.schemas import PrincipalResponse

router = APIRouter(tags=["Principal"])


@router.get("/me", response_model=PrincipalResponse, summary="Describe the authenticated caller")
def read_me(principal: Principal = Depends(get_current_principal)) -> PrincipalResponse:
    return PrincipalResponse(
        user_id=principal.user_id,
        username=principal.username,
        email=principal.email,
        direct_roles=sorted(principal.direct_roles),
        effective_authorities=sorted(principal.effective_authorities),
    )
