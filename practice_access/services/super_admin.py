import enum
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from practice_access.config import get_settings
from practice_access.errors import ConflictError, NotFoundError, UnauthorizedError
from practice_access.models import (
    Device,
    Practice,
    SubscriptionTier,
    SuperAdmin,
    SuperAdminAction,
    SuperAdminActivityLog,
    User,
    UserRole,
)
from practice_access.schemas import (
    PracticeAdminCreateRequest,
    PracticeCreateRequest,
    SubscriptionUpdateRequest,
    SuperAdminCreateRequest,
)
from practice_access.services import devices
from practice_access.services.passwords import (
    hash_password,
    legacy_passwords_allowed,
    reject_password,
    verify_password,
)
from practice_access.services.tokens import TokenData, create_super_admin_token
from practice_access.utils.time import utcnow

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("practice_access.audit")

INVALID_CREDENTIALS = "Invalid credentials"


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    token: TokenData
    admin: SuperAdmin


@dataclass(frozen=True)
class PracticeSummary:
    practice: Practice
    user_count: int
    device_count: int


def _jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def record_activity(
    db: Session,
    super_admin_id: uuid.UUID,
    action: SuperAdminAction,
    practice_id: uuid.UUID | None = None,
    details: dict[str, Any] | None = None,
) -> SuperAdminActivityLog:
    """Stage an activity entry in the caller's transaction."""
    entry = SuperAdminActivityLog(
        super_admin_id=super_admin_id,
        action=action,
        practice_id=practice_id,
        details=_jsonable(details) if details is not None else None,
    )
    db.add(entry)
    return entry


def commit_audited(db: Session, super_admin_id: uuid.UUID, action: SuperAdminAction) -> None:
    """Commit a privileged change together with its activity entry.

    Either both are stored or neither is.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        audit_logger.error(
            "Audited action %s by super admin %s failed to commit", action.value, super_admin_id, exc_info=True
        )
        raise


def login(db: Session, email: str, password: str, ip_address: str | None = None) -> LoginResult:
    admin = db.query(SuperAdmin).filter(func.lower(SuperAdmin.email) == email.strip().lower()).first()
    if not admin or not admin.is_active:
        reject_password(password)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    allow_legacy = legacy_passwords_allowed(admin.created_at)
    if not verify_password(password, admin.password, allow_legacy=allow_legacy):
        raise UnauthorizedError(INVALID_CREDENTIALS)

    now = utcnow()
    admin.last_login_at = now
    admin.last_login_ip = ip_address
    record_activity(db, admin.id, SuperAdminAction.LOGIN, details={"ipAddress": ip_address})
    commit_audited(db, admin.id, SuperAdminAction.LOGIN)
    db.refresh(admin)

    access_token, token = create_super_admin_token(admin, issued_at=now)
    logger.info("Super admin %s logged in", admin.id)
    return LoginResult(access_token=access_token, token=token, admin=admin)


def get_practice_or_404(db: Session, practice_id: uuid.UUID) -> Practice:
    practice = db.get(Practice, practice_id)
    if not practice:
        raise NotFoundError("Practice not found")
    return practice


def list_practices(db: Session) -> list[PracticeSummary]:
    user_counts = (
        db.query(User.practice_id, func.count(User.id)).group_by(User.practice_id).all()
    )
    device_counts = (
        db.query(Device.practice_id, func.count(Device.id)).group_by(Device.practice_id).all()
    )
    users_by_practice = dict(user_counts)
    devices_by_practice = dict(device_counts)
    practices = db.query(Practice).order_by(Practice.name.asc()).all()
    return [
        PracticeSummary(
            practice=practice,
            user_count=users_by_practice.get(practice.id, 0),
            device_count=devices_by_practice.get(practice.id, 0),
        )
        for practice in practices
    ]


def get_practice_details(db: Session, practice_id: uuid.UUID, super_admin_id: uuid.UUID) -> Practice:
    practice = (
        db.query(Practice)
        .options(selectinload(Practice.users), selectinload(Practice.devices))
        .filter(Practice.id == practice_id)
        .first()
    )
    if not practice:
        raise NotFoundError("Practice not found")

    record_activity(db, super_admin_id, SuperAdminAction.VIEW_PRACTICE, practice.id)
    commit_audited(db, super_admin_id, SuperAdminAction.VIEW_PRACTICE)
    db.refresh(practice)
    return practice


def create_practice(db: Session, super_admin_id: uuid.UUID, payload: PracticeCreateRequest) -> Practice:
    existing = db.query(Practice).filter(Practice.ods_code == payload.ods_code).first()
    if existing:
        raise ConflictError("Practice already exists")

    practice = Practice(
        name=payload.name,
        ods_code=payload.ods_code,
        email=payload.email,
        phone=payload.phone,
        address_line1=payload.address_line1,
        address_line2=payload.address_line2,
        city=payload.city,
        county=payload.county,
        postcode=payload.postcode,
        subscription_tier=payload.subscription_tier or SubscriptionTier.BASIC,
        max_staff_included=payload.max_staff_included or 3,
        extra_staff_count=0,
        subscription_start_date=utcnow(),
    )
    db.add(practice)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Practice already exists") from exc

    record_activity(
        db,
        super_admin_id,
        SuperAdminAction.CREATE_PRACTICE,
        practice.id,
        {"name": practice.name, "odsCode": practice.ods_code},
    )
    commit_audited(db, super_admin_id, SuperAdminAction.CREATE_PRACTICE)
    db.refresh(practice)
    logger.info("Practice %s created by super admin %s", practice.id, super_admin_id)
    return practice


def create_practice_admin(
    db: Session,
    super_admin_id: uuid.UUID,
    practice_id: uuid.UUID,
    payload: PracticeAdminCreateRequest,
) -> User:
    practice = get_practice_or_404(db, practice_id)
    email = payload.email.strip().lower()
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise ConflictError("User already exists")

    user = User(
        practice_id=practice.id,
        email=email,
        password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        role=UserRole.PRACTICE_ADMIN,
        is_active=True,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("User already exists") from exc

    record_activity(
        db,
        super_admin_id,
        SuperAdminAction.CREATE_PRACTICE_ADMIN,
        practice.id,
        {"userId": user.id, "email": user.email},
    )
    commit_audited(db, super_admin_id, SuperAdminAction.CREATE_PRACTICE_ADMIN)
    db.refresh(user)
    return user


def update_subscription(
    db: Session,
    super_admin_id: uuid.UUID,
    practice_id: uuid.UUID,
    payload: SubscriptionUpdateRequest,
) -> Practice:
    practice = get_practice_or_404(db, practice_id)
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field == "subscription_end_date"
    }
    for field, value in changes.items():
        setattr(practice, field, value)

    record_activity(db, super_admin_id, SuperAdminAction.UPDATE_SUBSCRIPTION, practice.id, changes)
    commit_audited(db, super_admin_id, SuperAdminAction.UPDATE_SUBSCRIPTION)
    db.refresh(practice)
    return practice


def set_practice_active(db: Session, super_admin_id: uuid.UUID, practice_id: uuid.UUID, is_active: bool) -> Practice:
    practice = get_practice_or_404(db, practice_id)
    practice.is_active = is_active

    action = SuperAdminAction.ACTIVATE_PRACTICE if is_active else SuperAdminAction.DEACTIVATE_PRACTICE
    record_activity(db, super_admin_id, action, practice.id)
    commit_audited(db, super_admin_id, action)
    db.refresh(practice)
    return practice


def approve_device(db: Session, super_admin_id: uuid.UUID, device_id: uuid.UUID) -> Device:
    device = devices.approve_any(db, device_id, super_admin_id)
    record_activity(
        db,
        super_admin_id,
        SuperAdminAction.APPROVE_DEVICE,
        device.practice_id,
        {"deviceId": device.id, "deviceName": device.device_name},
    )
    commit_audited(db, super_admin_id, SuperAdminAction.APPROVE_DEVICE)
    db.refresh(device)
    return device


def list_activity(
    db: Session,
    super_admin_id: uuid.UUID | None = None,
    practice_id: uuid.UUID | None = None,
    limit: int = 100,
) -> list[SuperAdminActivityLog]:
    limit = max(1, min(limit, get_settings().activity_log_max_limit))
    try:
        query = db.query(SuperAdminActivityLog).options(selectinload(SuperAdminActivityLog.super_admin))
        if super_admin_id:
            query = query.filter(SuperAdminActivityLog.super_admin_id == super_admin_id)
        if practice_id:
            query = query.filter(SuperAdminActivityLog.practice_id == practice_id)
        return query.order_by(SuperAdminActivityLog.created_at.desc()).limit(limit).all()
    except SQLAlchemyError:
        # Missing table (not migrated yet) reads as an empty log.
        db.rollback()
        logger.exception("Failed to read super admin activity log")
        return []


def create_super_admin(db: Session, payload: SuperAdminCreateRequest) -> SuperAdmin:
    email = payload.email.strip().lower()
    if db.query(SuperAdmin).filter(func.lower(SuperAdmin.email) == email).first():
        raise ConflictError("Super admin already exists")

    admin = SuperAdmin(
        email=email,
        password=hash_password(payload.password),
        first_name=payload.first_name,
        last_name=payload.last_name,
        is_active=True,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Super admin already exists") from exc
    db.refresh(admin)
    return admin
