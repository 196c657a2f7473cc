from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from practice_access.config import get_settings
from practice_access.db import SessionLocal
from practice_access.models import SuperAdmin, User, UserRole
from practice_access.services.device_policy import evaluate_device_policy, is_device_check_skipped
from practice_access.services.principal import (
    Principal,
    SuperAdminPrincipal,
    principal_from_token,
    principal_role,
)
from practice_access.services.rate_limit import LoginRateLimiter
from practice_access.services.tokens import TokenExpired, TokenInvalid, decode_access_token

settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)
login_limiter = LoginRateLimiter(settings.rate_limit_login_per_minute, 60)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


def rate_limit_login(request: Request, email: str) -> None:
    key = f"{get_client_ip(request) or 'unknown'}:{email.strip().lower()}"
    if not login_limiter.hit(key):
        raise HTTPException(status_code=429, detail="Too many login attempts")


def resolve_principal(credentials: HTTPAuthorizationCredentials | None, db: Session) -> Principal:
    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Missing bearer token")

    try:
        principal = principal_from_token(decode_access_token(credentials.credentials))
    except TokenExpired:
        raise HTTPException(status_code=401, detail="Token expired")
    except TokenInvalid:
        raise HTTPException(status_code=401, detail="Token invalid")

    if isinstance(principal, SuperAdminPrincipal) and principal.practice_id is None:
        admin = db.get(SuperAdmin, principal.super_admin_id)
        if not admin or not admin.is_active:
            raise HTTPException(status_code=401, detail="Super admin not found")
        return principal

    user_id = principal.super_admin_id if isinstance(principal, SuperAdminPrincipal) else principal.user_id
    user = db.get(User, user_id)
    if not user or not user.is_active or user.practice_id != principal.practice_id:
        raise HTTPException(status_code=401, detail="User not found")
    if not user.practice.is_active:
        raise HTTPException(status_code=403, detail="Practice disabled")
    return principal


def get_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    return resolve_principal(credentials, db)


def require_trusted_device(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> None:
    """Application-wide device gate; endpoints opt out with @skip_device_check."""
    if is_device_check_skipped(request.scope.get("endpoint")):
        return

    principal = resolve_principal(credentials, db)
    evaluate_device_policy(
        db,
        principal,
        request.headers.get(settings.device_header),
        ip_address=get_client_ip(request),
    )


def require_roles(*roles: UserRole):
    allowed = set(roles)

    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal_role(principal) not in allowed:
            raise HTTPException(status_code=403, detail="Insufficient role")
        return principal

    return dependency


def require_tenant_scope(principal: Principal = Depends(get_principal)) -> Principal:
    if principal.practice_id is None:
        raise HTTPException(status_code=403, detail="Practice scope required")
    return principal


def require_super_admin(principal: Principal = Depends(get_principal)) -> SuperAdminPrincipal:
    if not isinstance(principal, SuperAdminPrincipal) or principal.practice_id is not None:
        raise HTTPException(status_code=403, detail="Super admin access required")
    return principal

