from pydantic import BaseModel, Field

from practice_access.schemas.auth import UserResponse
from practice_access.schemas.devices import DeviceResponse, Fingerprint
from practice_access.schemas.super_admin import PracticeResponse


class PracticeRegistrationRequest(BaseModel):
    practice_name: str = Field(..., min_length=1, max_length=255)
    practice_email: str = Field(..., min_length=3, max_length=255)
    practice_phone: str = Field(..., min_length=1, max_length=32)
    ods_code: str = Field(..., min_length=1, max_length=16)
    address_line1: str = Field(..., min_length=1, max_length=255)
    address_line2: str | None = Field(default=None, max_length=255)
    city: str = Field(..., min_length=1, max_length=128)
    county: str | None = Field(default=None, max_length=128)
    postcode: str = Field(..., min_length=1, max_length=16)
    admin_email: str = Field(..., min_length=3, max_length=255)
    admin_password: str = Field(..., min_length=8, max_length=256)
    admin_first_name: str = Field(..., min_length=1, max_length=128)
    admin_last_name: str = Field(..., min_length=1, max_length=128)
    device_fingerprint: Fingerprint
    device_name: str = Field(..., min_length=1, max_length=255)
    device_type: str = Field(..., min_length=1, max_length=32)


class PracticeRegistrationResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    practice: PracticeResponse
    user: UserResponse
    device: DeviceResponse
