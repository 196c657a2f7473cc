import uuid
from datetime import datetime, timezone

import bcrypt
import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from practice_access.errors import ConflictError, NotFoundError, UnauthorizedError
from practice_access.models import (
    DeviceStatus,
    Practice,
    SubscriptionTier,
    SuperAdminAction,
    SuperAdminActivityLog,
    UserRole,
)
from practice_access.schemas import (
    PracticeAdminCreateRequest,
    PracticeCreateRequest,
    SubscriptionUpdateRequest,
    SuperAdminCreateRequest,
)
from practice_access.services import super_admin
from practice_access.services.passwords import verify_password
from practice_access.services.principal import SuperAdminPrincipal, principal_from_token
from practice_access.services.tokens import decode_access_token
from tests.factories import PASSWORD, make_device, make_practice, make_super_admin, make_user


def activity(db) -> list[SuperAdminActivityLog]:
    return db.query(SuperAdminActivityLog).all()


def practice_payload(ods_code: str = "Y01234") -> PracticeCreateRequest:
    return PracticeCreateRequest(
        name="Riverside Surgery",
        ods_code=ods_code,
        email="office@riverside.test",
        phone="0113 496 0000",
        address_line1="2 River Road",
        city="Leeds",
        postcode="LS2 2BB",
    )


def test_login_issues_super_admin_token_and_logs(db):
    admin = make_super_admin(db)

    result = super_admin.login(db, admin.email, PASSWORD, ip_address="203.0.113.7")

    principal = principal_from_token(decode_access_token(result.access_token))
    assert isinstance(principal, SuperAdminPrincipal)
    assert principal.super_admin_id == admin.id
    assert principal.practice_id is None

    entries = activity(db)
    assert len(entries) == 1
    assert entries[0].action == SuperAdminAction.LOGIN
    assert entries[0].super_admin_id == admin.id
    assert entries[0].details == {"ipAddress": "203.0.113.7"}

    db.refresh(admin)
    assert admin.last_login_at is not None
    assert admin.last_login_ip == "203.0.113.7"


def test_login_inactive_admin_rejected_without_audit(db):
    admin = make_super_admin(db, is_active=False)

    with pytest.raises(UnauthorizedError) as exc_info:
        super_admin.login(db, admin.email, PASSWORD)

    assert exc_info.value.detail == "Invalid credentials"
    assert activity(db) == []


@pytest.mark.parametrize("email,password", [("root@platform.test", "wrong"), ("nobody@platform.test", PASSWORD)])
def test_login_bad_credentials_share_one_message(db, email, password):
    make_super_admin(db)

    with pytest.raises(UnauthorizedError) as exc_info:
        super_admin.login(db, email, password)

    assert exc_info.value.detail == "Invalid credentials"
    assert activity(db) == []


def test_login_with_legacy_seed_password(db):
    admin = make_super_admin(db, legacy=True)

    result = super_admin.login(db, admin.email, PASSWORD)

    assert result.admin.id == admin.id


def test_login_with_legacy_password_after_cutoff_rejected(db, monkeypatch):
    admin = make_super_admin(db, legacy=True)
    settings = super_admin.get_settings()
    monkeypatch.setattr(settings, "legacy_password_cutoff", datetime(2000, 1, 1, tzinfo=timezone.utc))

    with pytest.raises(UnauthorizedError):
        super_admin.login(db, admin.email, PASSWORD)


def test_create_practice_defaults_and_audit(db):
    admin = make_super_admin(db)

    practice = super_admin.create_practice(db, admin.id, practice_payload())

    assert practice.subscription_tier == SubscriptionTier.BASIC
    assert practice.max_staff_included == 3
    assert practice.subscription_start_date is not None
    [entry] = activity(db)
    assert entry.action == SuperAdminAction.CREATE_PRACTICE
    assert entry.practice_id == practice.id
    assert entry.details == {"name": "Riverside Surgery", "odsCode": "Y01234"}


def test_create_practice_duplicate_ods_code_conflicts(db):
    admin = make_super_admin(db)
    super_admin.create_practice(db, admin.id, practice_payload())

    with pytest.raises(ConflictError):
        super_admin.create_practice(db, admin.id, practice_payload())

    assert len(activity(db)) == 1


def test_create_practice_admin(db):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1")

    user = super_admin.create_practice_admin(
        db,
        admin.id,
        practice.id,
        PracticeAdminCreateRequest(
            email="Manager@P1.test", password="long-enough", first_name="Pat", last_name="Lee"
        ),
    )

    assert user.role == UserRole.PRACTICE_ADMIN
    assert user.email == "manager@p1.test"
    assert verify_password("long-enough", user.password)
    [entry] = activity(db)
    assert entry.action == SuperAdminAction.CREATE_PRACTICE_ADMIN
    assert entry.details == {"userId": str(user.id), "email": "manager@p1.test"}


def test_create_practice_admin_unknown_practice(db):
    admin = make_super_admin(db)
    payload = PracticeAdminCreateRequest(email="a@b.test", password="long-enough", first_name="A", last_name="B")

    with pytest.raises(NotFoundError):
        super_admin.create_practice_admin(db, admin.id, uuid.uuid4(), payload)


def test_update_subscription_only_touches_given_fields(db):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1")

    updated = super_admin.update_subscription(
        db,
        admin.id,
        practice.id,
        SubscriptionUpdateRequest(subscription_tier=SubscriptionTier.PREMIUM, extra_staff_count=2),
    )

    assert updated.subscription_tier == SubscriptionTier.PREMIUM
    assert updated.extra_staff_count == 2
    assert updated.max_staff_included == 3
    [entry] = activity(db)
    assert entry.action == SuperAdminAction.UPDATE_SUBSCRIPTION
    assert entry.details == {"subscription_tier": "PREMIUM", "extra_staff_count": 2}


@pytest.mark.parametrize(
    "is_active,action",
    [(False, SuperAdminAction.DEACTIVATE_PRACTICE), (True, SuperAdminAction.ACTIVATE_PRACTICE)],
)
def test_set_practice_active(db, is_active, action):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1", is_active=not is_active)

    updated = super_admin.set_practice_active(db, admin.id, practice.id, is_active)

    assert updated.is_active is is_active
    [entry] = activity(db)
    assert entry.action == action
    assert entry.practice_id == practice.id


def test_set_practice_active_unknown_practice(db):
    admin = make_super_admin(db)

    with pytest.raises(NotFoundError):
        super_admin.set_practice_active(db, admin.id, uuid.uuid4(), False)

    assert activity(db) == []


def test_audit_failure_rolls_back_action(db, monkeypatch):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1")

    def failing_commit():
        raise OperationalError("INSERT INTO super_admin_activity_logs", {}, Exception("disk full"))

    monkeypatch.setattr(db, "commit", failing_commit)
    with pytest.raises(OperationalError):
        super_admin.set_practice_active(db, admin.id, practice.id, False)
    monkeypatch.undo()

    assert db.get(Practice, practice.id).is_active is True
    assert activity(db) == []


def test_approve_device_across_practices(db):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1")
    device = make_device(db, practice, "F1", DeviceStatus.REVOKED)

    approved = super_admin.approve_device(db, admin.id, device.id)

    assert approved.status == DeviceStatus.APPROVED
    assert approved.approved_by_super_admin_id == admin.id
    assert approved.approved_at is not None
    [entry] = activity(db)
    assert entry.action == SuperAdminAction.APPROVE_DEVICE
    assert entry.practice_id == practice.id
    assert entry.details == {"deviceId": str(device.id), "deviceName": "Desk F1"}


def test_approve_unknown_device(db):
    admin = make_super_admin(db)

    with pytest.raises(NotFoundError):
        super_admin.approve_device(db, admin.id, uuid.uuid4())


def test_practice_details_logs_view(db):
    admin = make_super_admin(db)
    practice = make_practice(db, "P1")
    make_user(db, practice, "gp@p1.test", UserRole.GP)
    make_device(db, practice, "F1")

    details = super_admin.get_practice_details(db, practice.id, admin.id)

    assert [user.email for user in details.users] == ["gp@p1.test"]
    assert [device.device_fingerprint for device in details.devices] == ["F1"]
    [entry] = activity(db)
    assert entry.action == SuperAdminAction.VIEW_PRACTICE


def test_list_practices_counts(db):
    p1 = make_practice(db, "P1", name="Beta Surgery")
    make_practice(db, "P2", name="Alpha Clinic")
    make_user(db, p1, "gp@p1.test", UserRole.GP)
    make_device(db, p1, "F1")
    make_device(db, p1, "F2")

    summaries = super_admin.list_practices(db)

    assert [summary.practice.name for summary in summaries] == ["Alpha Clinic", "Beta Surgery"]
    assert (summaries[1].user_count, summaries[1].device_count) == (1, 2)
    assert (summaries[0].user_count, summaries[0].device_count) == (0, 0)


def test_list_activity_filters_and_orders(db):
    first = make_super_admin(db, "first@platform.test")
    second = make_super_admin(db, "second@platform.test")
    p1 = make_practice(db, "P1")
    p2 = make_practice(db, "P2")
    super_admin.set_practice_active(db, first.id, p1.id, False)
    super_admin.set_practice_active(db, second.id, p2.id, False)
    super_admin.set_practice_active(db, first.id, p2.id, True)

    everything = super_admin.list_activity(db)
    by_first = super_admin.list_activity(db, super_admin_id=first.id)
    for_p2 = super_admin.list_activity(db, practice_id=p2.id)
    limited = super_admin.list_activity(db, limit=1)

    assert [entry.action for entry in everything] == [
        SuperAdminAction.ACTIVATE_PRACTICE,
        SuperAdminAction.DEACTIVATE_PRACTICE,
        SuperAdminAction.DEACTIVATE_PRACTICE,
    ]
    assert {entry.super_admin_id for entry in by_first} == {first.id}
    assert len(by_first) == 2
    assert {entry.practice_id for entry in for_p2} == {p2.id}
    assert len(for_p2) == 2
    assert len(limited) == 1


def test_list_activity_without_table_is_empty():
    engine = create_engine("sqlite://", poolclass=StaticPool)
    session = Session(engine)
    try:
        assert super_admin.list_activity(session) == []
    finally:
        session.close()
        engine.dispose()


def test_create_super_admin_rejects_duplicates(db):
    payload = SuperAdminCreateRequest(
        email="Root@Platform.test", password="long-enough", first_name="R", last_name="A"
    )
    admin = super_admin.create_super_admin(db, payload)

    assert admin.email == "root@platform.test"
    with pytest.raises(ConflictError):
        super_admin.create_super_admin(db, payload)


@pytest.mark.parametrize("email,is_active", [("ghost@platform.test", True), ("root@platform.test", False)])
def test_login_miss_still_checks_a_password_hash(db, monkeypatch, email, is_active):
    make_super_admin(db, is_active=is_active)
    calls = []
    real_checkpw = bcrypt.checkpw

    def counting_checkpw(password, hashed):
        calls.append(password)
        return real_checkpw(password, hashed)

    monkeypatch.setattr(bcrypt, "checkpw", counting_checkpw)

    with pytest.raises(UnauthorizedError):
        super_admin.login(db, email, PASSWORD)

    assert calls == [PASSWORD.encode("utf-8")]
