from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from practice_access.models import UserRole


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=256)


class UserResponse(BaseModel):
    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    practice_id: UUID | None = None
    is_super_admin: bool = False


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserResponse


class PrincipalResponse(BaseModel):
    id: UUID
    email: str | None = None
    role: UserRole
    practice_id: UUID | None = None
    is_super_admin: bool
