from practice_access.schemas.auth import LoginRequest, PrincipalResponse, TokenResponse, UserResponse
from practice_access.schemas.devices import (
    DeviceCheckResponse,
    DeviceRegisterRequest,
    DeviceResponse,
    DeviceRevokeRequest,
)
from practice_access.schemas.onboarding import PracticeRegistrationRequest, PracticeRegistrationResponse
from practice_access.schemas.super_admin import (
    ActivityLogResponse,
    PracticeAdminCreateRequest,
    PracticeCreateRequest,
    PracticeDetailResponse,
    PracticeResponse,
    PracticeStatusUpdateRequest,
    PracticeSummaryResponse,
    PracticeUserResponse,
    SubscriptionUpdateRequest,
    SuperAdminCreateRequest,
)

__all__ = [
    "ActivityLogResponse",
    "DeviceCheckResponse",
    "DeviceRegisterRequest",
    "DeviceResponse",
    "DeviceRevokeRequest",
    "LoginRequest",
    "PracticeAdminCreateRequest",
    "PracticeCreateRequest",
    "PracticeDetailResponse",
    "PracticeRegistrationRequest",
    "PracticeRegistrationResponse",
    "PracticeResponse",
    "PracticeStatusUpdateRequest",
    "PracticeSummaryResponse",
    "PracticeUserResponse",
    "PrincipalResponse",
    "SubscriptionUpdateRequest",
    "SuperAdminCreateRequest",
    "TokenResponse",
    "UserResponse",
]
