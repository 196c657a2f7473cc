import logging
import uuid
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from practice_access.errors import ConflictError, NotFoundError
from practice_access.models import Device, DeviceStatus
from practice_access.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeviceCheck:
    registered: bool
    approved: bool
    status: DeviceStatus | None = None
    device_name: str | None = None


def normalize_fingerprint(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def find_by_fingerprint(db: Session, fingerprint: str) -> Device | None:
    return db.query(Device).filter(Device.device_fingerprint == fingerprint).first()


def find_approved(db: Session, practice_id: uuid.UUID, fingerprint: str) -> Device | None:
    return (
        db.query(Device)
        .filter(
            Device.practice_id == practice_id,
            Device.device_fingerprint == fingerprint,
            Device.status == DeviceStatus.APPROVED,
        )
        .first()
    )


def get_for_practice(db: Session, device_id: uuid.UUID, practice_id: uuid.UUID) -> Device:
    device = db.query(Device).filter(Device.id == device_id, Device.practice_id == practice_id).first()
    if not device:
        raise NotFoundError("Device not found")
    return device


def list_for_practice(db: Session, practice_id: uuid.UUID) -> list[Device]:
    return (
        db.query(Device)
        .filter(Device.practice_id == practice_id)
        .order_by(Device.created_at.desc())
        .all()
    )


def _claim_existing(existing: Device, practice_id: uuid.UUID) -> Device:
    if existing.practice_id != practice_id:
        raise ConflictError("Device registered to another practice")
    return existing


def register(
    db: Session,
    practice_id: uuid.UUID,
    fingerprint: str,
    name: str,
    device_type: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Device:
    fingerprint = normalize_fingerprint(fingerprint)
    if not fingerprint:
        raise ValueError("Device fingerprint is required")
    existing = find_by_fingerprint(db, fingerprint)
    if existing:
        return _claim_existing(existing, practice_id)

    device = Device(
        practice_id=practice_id,
        device_fingerprint=fingerprint,
        device_name=name,
        device_type=device_type,
        status=DeviceStatus.PENDING,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(device)
    try:
        db.commit()
    except IntegrityError:
        # Lost a concurrent registration for the same fingerprint.
        db.rollback()
        winner = find_by_fingerprint(db, fingerprint)
        if not winner:
            raise
        return _claim_existing(winner, practice_id)

    db.refresh(device)
    logger.info("Device %s registered for practice %s (pending)", device.id, practice_id)
    return device


def mark_approved(
    device: Device,
    approver_id: uuid.UUID | None = None,
    super_admin_id: uuid.UUID | None = None,
) -> Device:
    device.status = DeviceStatus.APPROVED
    device.approved_at = utcnow()
    device.approved_by_id = approver_id
    device.approved_by_super_admin_id = super_admin_id
    return device


def approve(db: Session, device_id: uuid.UUID, practice_id: uuid.UUID, approver_id: uuid.UUID) -> Device:
    device = get_for_practice(db, device_id, practice_id)
    mark_approved(device, approver_id=approver_id)
    db.commit()
    db.refresh(device)
    logger.info("Device %s approved by %s", device.id, approver_id)
    return device


def approve_any(db: Session, device_id: uuid.UUID, super_admin_id: uuid.UUID) -> Device:
    """Approve a device in any practice. The caller commits."""
    device = db.get(Device, device_id)
    if not device:
        raise NotFoundError("Device not found")
    return mark_approved(device, super_admin_id=super_admin_id)


def revoke(db: Session, device_id: uuid.UUID, practice_id: uuid.UUID, reason: str | None = None) -> Device:
    device = get_for_practice(db, device_id, practice_id)
    device.status = DeviceStatus.REVOKED
    device.revoked_at = utcnow()
    device.revoked_reason = reason
    db.commit()
    db.refresh(device)
    logger.info("Device %s revoked", device.id)
    return device


def delete(db: Session, device_id: uuid.UUID, practice_id: uuid.UUID) -> None:
    device = get_for_practice(db, device_id, practice_id)
    db.delete(device)
    db.commit()
    logger.info("Device %s deleted from practice %s", device_id, practice_id)


def touch_last_used(
    db: Session,
    fingerprint: str,
    user_id: uuid.UUID | None,
    ip_address: str | None = None,
) -> bool:
    """Record last use of a device. Failures are logged, never raised."""
    try:
        device = find_by_fingerprint(db, fingerprint)
        if not device:
            return False
        device.last_used_at = utcnow()
        device.last_used_by_user_id = user_id
        if ip_address:
            device.ip_address = ip_address
        db.commit()
        return True
    except SQLAlchemyError:
        db.rollback()
        logger.warning("Failed to record last use of device %s", fingerprint, exc_info=True)
        return False


def device_status_for_practice(db: Session, practice_id: uuid.UUID, fingerprint: str) -> DeviceCheck:
    fingerprint = normalize_fingerprint(fingerprint)
    if not fingerprint:
        return DeviceCheck(registered=False, approved=False)
    device = (
        db.query(Device)
        .filter(Device.practice_id == practice_id, Device.device_fingerprint == fingerprint)
        .first()
    )
    if not device:
        return DeviceCheck(registered=False, approved=False)
    return DeviceCheck(
        registered=True,
        approved=device.status == DeviceStatus.APPROVED,
        status=device.status,
        device_name=device.device_name,
    )
