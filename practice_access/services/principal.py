"""Caller identities resolved from access tokens.

A request is made either by a tenant user, scoped to one practice, or by a
super-admin, who has no tenant scope. The distinction is decided once, when
the token is decoded, so policy code can match on the type instead of
inspecting raw claims.
"""
import uuid
from dataclasses import dataclass

from practice_access.models import UserRole
from practice_access.services.tokens import SUPER_ADMIN_CLAIM, TokenData, TokenInvalid


@dataclass(frozen=True)
class TenantPrincipal:
    user_id: uuid.UUID
    practice_id: uuid.UUID
    role: UserRole
    email: str | None = None


@dataclass(frozen=True)
class SuperAdminPrincipal:
    super_admin_id: uuid.UUID
    email: str | None = None
    # Set only for tenant accounts that carry the SUPER_ADMIN role.
    practice_id: uuid.UUID | None = None


Principal = TenantPrincipal | SuperAdminPrincipal


def _parse_uuid(value: object, claim: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError) as exc:
        raise TokenInvalid(f"Token claim {claim} invalid") from exc


def principal_from_token(token: TokenData) -> Principal:
    claims = token.claims
    subject = _parse_uuid(token.subject, "sub")
    email = claims.get("email")

    if claims.get(SUPER_ADMIN_CLAIM) is True:
        return SuperAdminPrincipal(super_admin_id=subject, email=email)

    practice_claim = claims.get("practice_id")
    if not practice_claim:
        raise TokenInvalid("Token payload missing practice_id")
    practice_id = _parse_uuid(practice_claim, "practice_id")

    try:
        role = UserRole(claims.get("role"))
    except ValueError as exc:
        raise TokenInvalid("Token claim role invalid") from exc

    if role is UserRole.SUPER_ADMIN:
        return SuperAdminPrincipal(super_admin_id=subject, email=email, practice_id=practice_id)
    return TenantPrincipal(user_id=subject, practice_id=practice_id, role=role, email=email)


def principal_role(principal: Principal) -> UserRole:
    if isinstance(principal, SuperAdminPrincipal):
        return UserRole.SUPER_ADMIN
    return principal.role


def principal_user_id(principal: Principal) -> uuid.UUID | None:
    """The tenant user behind a principal, if it is a tenant account."""
    if isinstance(principal, TenantPrincipal):
        return principal.user_id
    if principal.practice_id is not None:
        return principal.super_admin_id
    return None
