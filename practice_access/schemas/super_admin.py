from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from practice_access.models import DeviceStatus, SubscriptionTier, SuperAdminAction, UserRole


class PracticeCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    ods_code: str = Field(..., min_length=1, max_length=16)
    email: str = Field(..., min_length=3, max_length=255)
    phone: str = Field(..., min_length=1, max_length=32)
    address_line1: str = Field(..., min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(..., min_length=1, max_length=128)
    county: str | None = Field(default=None, max_length=128)
    postcode: str = Field(..., min_length=1, max_length=16)
    subscription_tier: SubscriptionTier | None = None
    max_staff_included: int | None = Field(default=None, ge=1, le=1000)


class PracticeAdminCreateRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=256)
    first_name: str = Field(..., min_length=1, max_length=128)
    last_name: str = Field(..., min_length=1, max_length=128)
    phone: str | None = Field(default=None, max_length=32)


class SubscriptionUpdateRequest(BaseModel):
    subscription_tier: SubscriptionTier | None = None
    max_staff_included: int | None = Field(default=None, ge=1, le=1000)
    extra_staff_count: int | None = Field(default=None, ge=0, le=1000)
    subscription_end_date: datetime | None = None


class PracticeStatusUpdateRequest(BaseModel):
    is_active: bool


class SuperAdminCreateRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8, max_length=256)
    first_name: str = Field(..., min_length=1, max_length=128)
    last_name: str = Field(..., min_length=1, max_length=128)


class PracticeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    ods_code: str
    email: str
    phone: str
    city: str
    postcode: str
    is_active: bool
    subscription_tier: SubscriptionTier
    max_staff_included: int
    extra_staff_count: int
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    created_at: datetime


class PracticeSummaryResponse(PracticeResponse):
    user_count: int = 0
    device_count: int = 0


class PracticeUserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    last_login_at: datetime | None = None


class PracticeDeviceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    device_name: str
    device_type: str
    status: DeviceStatus
    last_used_at: datetime | None = None
    created_at: datetime


class PracticeDetailResponse(PracticeResponse):
    address_line1: str
    address_line2: str | None = None
    county: str | None = None
    users: list[PracticeUserResponse] = []
    devices: list[PracticeDeviceResponse] = []


class ActivityLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    super_admin_id: UUID
    super_admin_email: str | None = None
    action: SuperAdminAction
    practice_id: UUID | None = None
    details: dict[str, Any] | None = None
    created_at: datetime
