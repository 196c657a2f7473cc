import logging
from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from practice_access.errors import ConflictError, UnauthorizedError
from practice_access.models import Device, Practice, SubscriptionTier, User, UserRole
from practice_access.schemas import PracticeRegistrationRequest
from practice_access.services import devices
from practice_access.services.passwords import (
    hash_password,
    legacy_passwords_allowed,
    reject_password,
    verify_password,
)
from practice_access.services.tokens import TokenData, create_tenant_token
from practice_access.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantLogin:
    access_token: str
    token: TokenData
    user: User


@dataclass(frozen=True)
class PracticeRegistration:
    access_token: str
    practice: Practice
    user: User
    device: Device


def login(db: Session, email: str, password: str) -> TenantLogin:
    user = db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
    if not user or not user.is_active or not user.practice or not user.practice.is_active:
        reject_password(password)
        raise UnauthorizedError("Invalid credentials")

    allow_legacy = legacy_passwords_allowed(user.created_at)
    if not verify_password(password, user.password, allow_legacy=allow_legacy):
        raise UnauthorizedError("Invalid credentials")

    now = utcnow()
    user.last_login_at = now
    db.commit()
    db.refresh(user)

    access_token, token = create_tenant_token(user, issued_at=now)
    return TenantLogin(access_token=access_token, token=token, user=user)


def register_practice(
    db: Session,
    payload: PracticeRegistrationRequest,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> PracticeRegistration:
    """Create a practice, its first admin and an approved first device."""
    if db.query(Practice).filter(func.lower(Practice.email) == payload.practice_email.strip().lower()).first():
        raise ConflictError("A practice with this email already exists")
    if db.query(Practice).filter(Practice.ods_code == payload.ods_code).first():
        raise ConflictError("A practice with this ODS code already exists")
    admin_email = payload.admin_email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == admin_email).first():
        raise ConflictError("A user with this email already exists")
    if devices.find_by_fingerprint(db, payload.device_fingerprint):
        raise ConflictError("Device registered to another practice")

    now = utcnow()
    practice = Practice(
        name=payload.practice_name,
        email=payload.practice_email.strip().lower(),
        phone=payload.practice_phone,
        ods_code=payload.ods_code,
        address_line1=payload.address_line1,
        address_line2=payload.address_line2,
        city=payload.city,
        county=payload.county,
        postcode=payload.postcode,
        subscription_tier=SubscriptionTier.BASIC,
        max_staff_included=3,
        extra_staff_count=0,
        subscription_start_date=now,
        is_active=True,
    )
    admin = User(
        practice=practice,
        email=admin_email,
        password=hash_password(payload.admin_password),
        first_name=payload.admin_first_name,
        last_name=payload.admin_last_name,
        role=UserRole.PRACTICE_ADMIN,
        is_active=True,
    )
    device = Device(
        practice=practice,
        device_fingerprint=payload.device_fingerprint,
        device_name=payload.device_name,
        device_type=payload.device_type,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add_all([practice, admin, device])
    try:
        db.flush()
        # The first device is trusted by the admin who registers the practice.
        devices.mark_approved(device, approver_id=admin.id)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Practice registration conflicts with existing records") from exc

    db.refresh(practice)
    db.refresh(admin)
    db.refresh(device)
    access_token, _ = create_tenant_token(admin, issued_at=now)
    logger.info("Practice %s registered with admin %s", practice.id, admin.id)
    return PracticeRegistration(access_token=access_token, practice=practice, user=admin, device=device)
