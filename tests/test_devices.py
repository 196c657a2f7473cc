import uuid

import pytest
from sqlalchemy.exc import OperationalError

from practice_access.errors import ConflictError, NotFoundError
from practice_access.models import Device, DeviceStatus, UserRole
from practice_access.services import devices
from tests.factories import make_device, make_practice, make_user


def test_register_creates_pending_device(db):
    practice = make_practice(db, "P1")

    device = devices.register(db, practice.id, "F1", "Front desk", "desktop", "10.0.0.1", "Mozilla/5.0")

    assert device.status == DeviceStatus.PENDING
    assert device.practice_id == practice.id
    assert device.ip_address == "10.0.0.1"
    assert device.user_agent == "Mozilla/5.0"


def test_register_same_practice_returns_existing(db):
    practice = make_practice(db, "P1")
    first = devices.register(db, practice.id, "F1", "Front desk", "desktop")

    second = devices.register(db, practice.id, "F1", "Renamed", "tablet")

    assert second.id == first.id
    assert second.device_name == "Front desk"
    assert db.query(Device).count() == 1


def test_register_strips_fingerprint(db):
    practice = make_practice(db, "P1")
    first = devices.register(db, practice.id, "  F1\t", "Front desk", "desktop")

    again = devices.register(db, practice.id, "F1", "Front desk", "desktop")

    assert first.device_fingerprint == "F1"
    assert again.id == first.id


@pytest.mark.parametrize("fingerprint", ["", "   "])
def test_register_rejects_blank_fingerprint(db, fingerprint):
    practice = make_practice(db, "P1")

    with pytest.raises(ValueError):
        devices.register(db, practice.id, fingerprint, "Front desk", "desktop")

    assert db.query(Device).count() == 0


def test_register_fingerprint_owned_by_other_practice_conflicts(db):
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    original = devices.register(db, p1.id, "F2", "Reception", "desktop")

    with pytest.raises(ConflictError):
        devices.register(db, p2.id, "F2", "Intruder", "mobile")

    assert db.query(Device).count() == 1
    db.refresh(original)
    assert original.practice_id == p1.id
    assert original.device_name == "Reception"


def test_register_race_loser_gets_conflict(db, session_factory, monkeypatch):
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    other = session_factory()
    try:
        devices.register(other, p1.id, "F3", "Winner", "desktop")
    finally:
        other.close()

    # The loser's pre-check misses the row the winner just wrote.
    real_find = devices.find_by_fingerprint
    calls = {"count": 0}

    def stale_find(session, fingerprint):
        calls["count"] += 1
        if calls["count"] == 1:
            return None
        return real_find(session, fingerprint)

    monkeypatch.setattr(devices, "find_by_fingerprint", stale_find)

    with pytest.raises(ConflictError):
        devices.register(db, p2.id, "F3", "Loser", "desktop")

    assert db.query(Device).filter(Device.device_fingerprint == "F3").count() == 1


def test_list_for_practice_is_scoped_and_newest_first(db):
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    devices.register(db, p1.id, "A", "First", "desktop")
    devices.register(db, p1.id, "B", "Second", "desktop")
    devices.register(db, p2.id, "C", "Elsewhere", "desktop")

    listed = devices.list_for_practice(db, p1.id)

    assert [device.device_fingerprint for device in listed] == ["B", "A"]


def test_approve_stamps_approver(db):
    practice = make_practice(db, "P1")
    admin = make_user(db, practice, "admin@p1.test", UserRole.PRACTICE_ADMIN)
    device = make_device(db, practice, "F1")

    approved = devices.approve(db, device.id, practice.id, admin.id)

    assert approved.status == DeviceStatus.APPROVED
    assert approved.approved_by_id == admin.id
    assert approved.approved_at is not None


def test_approve_twice_is_idempotent(db):
    practice = make_practice(db, "P1")
    admin = make_user(db, practice, "admin@p1.test", UserRole.PRACTICE_ADMIN)
    device = make_device(db, practice, "F1")

    devices.approve(db, device.id, practice.id, admin.id)
    again = devices.approve(db, device.id, practice.id, admin.id)

    assert again.status == DeviceStatus.APPROVED


def test_reapprove_after_revoke(db):
    practice = make_practice(db, "P1")
    admin = make_user(db, practice, "admin@p1.test", UserRole.PRACTICE_ADMIN)
    device = make_device(db, practice, "F1", DeviceStatus.APPROVED)

    devices.revoke(db, device.id, practice.id, "lost device")
    restored = devices.approve(db, device.id, practice.id, admin.id)

    assert restored.status == DeviceStatus.APPROVED
    assert restored.approved_by_id == admin.id


def test_revoke_records_reason(db):
    practice = make_practice(db, "P1")
    device = make_device(db, practice, "F1", DeviceStatus.APPROVED)

    revoked = devices.revoke(db, device.id, practice.id, "lost device")

    assert revoked.status == DeviceStatus.REVOKED
    assert revoked.revoked_reason == "lost device"
    assert revoked.revoked_at is not None
    assert devices.find_by_fingerprint(db, "F1").revoked_reason == "lost device"


@pytest.mark.parametrize("operation", ["approve", "revoke", "delete"])
def test_mutations_require_ownership(db, operation):
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    admin = make_user(db, p2, "admin@p2.test", UserRole.PRACTICE_ADMIN)
    device = make_device(db, p1, "F1")

    with pytest.raises(NotFoundError):
        if operation == "approve":
            devices.approve(db, device.id, p2.id, admin.id)
        elif operation == "revoke":
            devices.revoke(db, device.id, p2.id)
        else:
            devices.delete(db, device.id, p2.id)

    db.refresh(device)
    assert device.status == DeviceStatus.PENDING


def test_unknown_device_is_not_found(db):
    practice = make_practice(db, "P1")

    with pytest.raises(NotFoundError):
        devices.revoke(db, uuid.uuid4(), practice.id)


def test_delete_removes_device(db):
    practice = make_practice(db, "P1")
    device = make_device(db, practice, "F1")

    devices.delete(db, device.id, practice.id)

    assert devices.find_by_fingerprint(db, "F1") is None


def test_touch_last_used_updates_usage(db):
    practice = make_practice(db, "P1")
    user = make_user(db, practice, "gp@p1.test", UserRole.GP)
    make_device(db, practice, "F1", DeviceStatus.APPROVED)

    assert devices.touch_last_used(db, "F1", user.id, "192.168.1.5") is True

    device = devices.find_by_fingerprint(db, "F1")
    assert device.last_used_at is not None
    assert device.last_used_by_user_id == user.id
    assert device.ip_address == "192.168.1.5"


def test_touch_last_used_swallows_datastore_errors(db, monkeypatch):
    practice = make_practice(db, "P1")
    make_device(db, practice, "F1", DeviceStatus.APPROVED)

    def failing_commit():
        raise OperationalError("UPDATE devices", {}, Exception("database is locked"))

    monkeypatch.setattr(db, "commit", failing_commit)

    assert devices.touch_last_used(db, "F1", None) is False


def test_device_status_for_practice_hides_other_tenants(db):
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    make_device(db, p1, "F1", DeviceStatus.APPROVED)

    own = devices.device_status_for_practice(db, p1.id, "F1")
    foreign = devices.device_status_for_practice(db, p2.id, "F1")

    assert own.registered is True and own.approved is True
    assert own.status == DeviceStatus.APPROVED
    assert foreign.registered is False and foreign.status is None


def test_device_status_for_practice_normalizes_fingerprint(db):
    practice = make_practice(db, "P1")
    make_device(db, practice, "F1", DeviceStatus.APPROVED)

    padded = devices.device_status_for_practice(db, practice.id, " F1 ")
    blank = devices.device_status_for_practice(db, practice.id, "  ")

    assert padded.approved is True
    assert blank.registered is False
