from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from practice_access.api.deps import get_db, get_principal, rate_limit_login
from practice_access.schemas import LoginRequest, PrincipalResponse, TokenResponse, UserResponse
from practice_access.services import tenant_auth
from practice_access.services.device_policy import skip_device_check
from practice_access.services.principal import Principal, SuperAdminPrincipal, principal_role

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
@skip_device_check
def login(payload: LoginRequest, request: Request, db: Session = Depends(get_db)) -> TokenResponse:
    rate_limit_login(request, payload.email)
    result = tenant_auth.login(db, payload.email, payload.password)
    user = result.user
    return TokenResponse(
        access_token=result.access_token,
        expires_at=result.token.expires_at,
        user=UserResponse(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            role=user.role,
            practice_id=user.practice_id,
        ),
    )


@router.get("/me", response_model=PrincipalResponse)
def me(principal: Principal = Depends(get_principal)) -> PrincipalResponse:
    is_super_admin = isinstance(principal, SuperAdminPrincipal)
    return PrincipalResponse(
        id=principal.super_admin_id if is_super_admin else principal.user_id,
        email=principal.email,
        role=principal_role(principal).value,
        practice_id=principal.practice_id,
        is_super_admin=is_super_admin,
    )
