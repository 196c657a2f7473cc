from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

from practice_access.models import DeviceStatus

Fingerprint = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]


class DeviceRegisterRequest(BaseModel):
    device_fingerprint: Fingerprint
    device_name: str = Field(..., min_length=1, max_length=255)
    device_type: str = Field(..., min_length=1, max_length=32)


class DeviceRevokeRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class DeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    practice_id: UUID
    device_fingerprint: str
    device_name: str
    device_type: str
    status: DeviceStatus
    approved_by_id: UUID | None = None
    approved_by_super_admin_id: UUID | None = None
    approved_at: datetime | None = None
    revoked_at: datetime | None = None
    revoked_reason: str | None = None
    last_used_at: datetime | None = None
    last_used_by_user_id: UUID | None = None
    ip_address: str | None = None
    created_at: datetime


class DeviceCheckResponse(BaseModel):
    registered: bool
    approved: bool
    status: DeviceStatus | None = None
    device_name: str | None = None
