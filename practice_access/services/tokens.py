from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from practice_access.config import get_settings
from practice_access.models import SuperAdmin, User, UserRole
from practice_access.utils.time import utcnow

SUPER_ADMIN_CLAIM = "super_admin"


class TokenError(Exception):
    pass


class TokenExpired(TokenError):
    pass


class TokenInvalid(TokenError):
    pass


@dataclass(frozen=True)
class TokenData:
    subject: str
    issued_at: datetime
    expires_at: datetime
    claims: dict[str, Any] = field(default_factory=dict)


def create_access_token(
    subject: str,
    claims: dict[str, Any] | None = None,
    issued_at: datetime | None = None,
    ttl: timedelta | None = None,
    secret: str | None = None,
    algorithm: str | None = None,
) -> tuple[str, TokenData]:
    settings = None
    issued_at = issued_at or utcnow()
    if ttl is None or secret is None or algorithm is None:
        settings = get_settings()
    ttl = ttl if ttl is not None else timedelta(hours=settings.token_ttl_hours)
    expires_at = issued_at + ttl
    claims = dict(claims or {})

    payload = {
        **claims,
        "sub": subject,
        "iat": int(issued_at.timestamp()),
        "exp": int(expires_at.timestamp()),
    }

    token = jwt.encode(
        payload,
        secret or settings.jwt_secret,
        algorithm=algorithm or settings.jwt_algorithm,
    )
    return token, TokenData(subject=subject, issued_at=issued_at, expires_at=expires_at, claims=claims)


def create_tenant_token(user: User, issued_at: datetime | None = None) -> tuple[str, TokenData]:
    settings = get_settings()
    return create_access_token(
        str(user.id),
        claims={
            "email": user.email,
            "practice_id": str(user.practice_id),
            "role": user.role.value,
        },
        issued_at=issued_at,
        ttl=timedelta(hours=settings.token_ttl_hours),
    )


def create_super_admin_token(admin: SuperAdmin, issued_at: datetime | None = None) -> tuple[str, TokenData]:
    settings = get_settings()
    return create_access_token(
        str(admin.id),
        claims={
            "email": admin.email,
            "role": UserRole.SUPER_ADMIN.value,
            SUPER_ADMIN_CLAIM: True,
        },
        issued_at=issued_at,
        ttl=timedelta(hours=settings.super_admin_token_ttl_hours),
    )


def decode_access_token(
    token: str,
    secret: str | None = None,
    algorithm: str | None = None,
) -> TokenData:
    settings = None
    if secret is None or algorithm is None:
        settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            secret or settings.jwt_secret,
            algorithms=[algorithm or settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise TokenExpired("Token expired") from exc
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid("Token invalid") from exc

    subject = payload.pop("sub", None)
    issued_at = payload.pop("iat", None)
    expires_at = payload.pop("exp", None)

    if not subject or not issued_at or not expires_at:
        raise TokenInvalid("Token payload missing required claims")

    return TokenData(
        subject=subject,
        issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
        expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
        claims=payload,
    )
