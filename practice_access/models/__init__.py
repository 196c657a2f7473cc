from practice_access.models.device import Device, DeviceStatus
from practice_access.models.practice import Practice, SubscriptionTier
from practice_access.models.super_admin import SuperAdmin, SuperAdminAction, SuperAdminActivityLog
from practice_access.models.user import User, UserRole

__all__ = [
    "Device",
    "DeviceStatus",
    "Practice",
    "SubscriptionTier",
    "SuperAdmin",
    "SuperAdminAction",
    "SuperAdminActivityLog",
    "User",
    "UserRole",
]
