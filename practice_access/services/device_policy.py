"""Device trust gate for tenant-scoped requests.

Rules are evaluated in a fixed order and the first match decides:

1. routes marked with ``skip_device_check`` are allowed;
2. super-admins are allowed without any device lookup;
3. a request without a fingerprint is denied;
4. a fingerprint approved for the caller's practice is allowed, and its last
   use is recorded; any other fingerprint is denied with a message that only
   describes the device state when the device belongs to the caller's
   practice.
"""
import logging
from dataclasses import dataclass
from typing import Callable, TypeVar

from sqlalchemy.orm import Session

from practice_access.errors import DeviceForbidden
from practice_access.models import Device, DeviceStatus
from practice_access.services import devices
from practice_access.services.principal import Principal, SuperAdminPrincipal

logger = logging.getLogger(__name__)

SKIP_DEVICE_CHECK_ATTR = "__skip_device_check__"

DEVICE_NOT_REGISTERED = "Device not registered. Please access from an approved practice device."
DEVICE_PENDING = "Device registration pending approval. Please contact your practice administrator."
DEVICE_REVOKED = "Device access has been revoked. Please contact your practice administrator."
DEVICE_UNAUTHORIZED = "Unauthorized device. Please access from an approved practice device."

F = TypeVar("F", bound=Callable)


def skip_device_check(func: F) -> F:
    """Mark an endpoint as exempt from the device trust gate."""
    setattr(func, SKIP_DEVICE_CHECK_ATTR, True)
    return func


def is_device_check_skipped(endpoint: Callable | None) -> bool:
    return bool(endpoint is not None and getattr(endpoint, SKIP_DEVICE_CHECK_ATTR, False))


@dataclass(frozen=True)
class PolicyDecision:
    allowed: bool
    reason: str
    device: Device | None = None


def denial_for(device: Device | None, principal: Principal) -> DeviceForbidden:
    if device is None or device.practice_id != principal.practice_id:
        return DeviceForbidden(DEVICE_UNAUTHORIZED)
    if device.status == DeviceStatus.PENDING:
        return DeviceForbidden(DEVICE_PENDING)
    if device.status == DeviceStatus.REVOKED:
        return DeviceForbidden(DEVICE_REVOKED)
    return DeviceForbidden(DEVICE_UNAUTHORIZED)


def evaluate_device_policy(
    db: Session,
    principal: Principal,
    fingerprint: str | None,
    *,
    skip_device_check: bool = False,
    ip_address: str | None = None,
) -> PolicyDecision:
    """Decide whether the request may proceed; raises DeviceForbidden on denial."""
    if skip_device_check:
        return PolicyDecision(allowed=True, reason="skipped")

    if isinstance(principal, SuperAdminPrincipal):
        return PolicyDecision(allowed=True, reason="super_admin")

    fingerprint = devices.normalize_fingerprint(fingerprint)
    if not fingerprint:
        logger.info("Device check denied for user %s: no fingerprint", principal.user_id)
        raise DeviceForbidden(DEVICE_NOT_REGISTERED)

    device = devices.find_approved(db, principal.practice_id, fingerprint)
    if device is None:
        error = denial_for(devices.find_by_fingerprint(db, fingerprint), principal)
        logger.info("Device check denied for user %s: %s", principal.user_id, error.detail)
        raise error

    devices.touch_last_used(db, fingerprint, principal.user_id, ip_address)
    return PolicyDecision(allowed=True, reason="approved", device=device)
