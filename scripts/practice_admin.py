import argparse
import getpass
import uuid

from pydantic import ValidationError
from sqlalchemy import func

from practice_access.db import SessionLocal
from practice_access.errors import PracticeAccessError
from practice_access.models import Practice, SuperAdmin
from practice_access.schemas import SuperAdminCreateRequest
from practice_access.services import devices, super_admin


def parse_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def get_practice(db, ods_code: str) -> Practice | None:
    return db.query(Practice).filter(Practice.ods_code == ods_code).first()


def create_super_admin(db, email: str, first_name: str, last_name: str, password: str | None) -> int:
    password = password or getpass.getpass("Password: ")
    try:
        payload = SuperAdminCreateRequest(
            email=email, password=password, first_name=first_name, last_name=last_name
        )
        admin = super_admin.create_super_admin(db, payload)
    except ValidationError as exc:
        print(f"Invalid input: {exc.errors()[0]['msg']}")
        return 1
    except PracticeAccessError as exc:
        print(exc.detail)
        return 1
    print(f"Super admin created: {admin.id}")
    return 0


def list_practices(db) -> int:
    summaries = super_admin.list_practices(db)
    if not summaries:
        print("No practices found")
        return 0
    for summary in summaries:
        practice = summary.practice
        state = "active" if practice.is_active else "inactive"
        print(
            f"{practice.ods_code}\t{practice.name}\t{state}\t{practice.subscription_tier.value}"
            f"\tusers={summary.user_count}\tdevices={summary.device_count}"
        )
    return 0


def list_devices(db, ods_code: str) -> int:
    practice = get_practice(db, ods_code)
    if not practice:
        print("Practice not found")
        return 1
    rows = devices.list_for_practice(db, practice.id)
    if not rows:
        print("No devices found")
        return 0
    for device in rows:
        last_used = device.last_used_at.isoformat() if device.last_used_at else "-"
        print(f"{device.id}\t{device.device_name}\t{device.device_type}\t{device.status.value}\t{last_used}")
    return 0


def approve_device(db, device_id: str, super_admin_email: str) -> int:
    device_uuid = parse_uuid(device_id)
    if not device_uuid:
        print("Invalid device id")
        return 1
    admin = db.query(SuperAdmin).filter(func.lower(SuperAdmin.email) == super_admin_email.strip().lower()).first()
    if not admin or not admin.is_active:
        print("Super admin not found")
        return 1
    try:
        device = super_admin.approve_device(db, admin.id, device_uuid)
    except PracticeAccessError as exc:
        print(exc.detail)
        return 1
    print(f"Device approved: {device.device_name}")
    return 0


def revoke_device(db, ods_code: str, device_id: str, reason: str | None) -> int:
    device_uuid = parse_uuid(device_id)
    if not device_uuid:
        print("Invalid device id")
        return 1
    practice = get_practice(db, ods_code)
    if not practice:
        print("Practice not found")
        return 1
    try:
        device = devices.revoke(db, device_uuid, practice.id, reason)
    except PracticeAccessError as exc:
        print(exc.detail)
        return 1
    print(f"Device revoked: {device.device_name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Admin console for practices and devices")
    subparsers = parser.add_subparsers(dest="command", required=True)

    create_admin_parser = subparsers.add_parser("create-super-admin")
    create_admin_parser.add_argument("--email", required=True)
    create_admin_parser.add_argument("--first-name", required=True)
    create_admin_parser.add_argument("--last-name", required=True)
    create_admin_parser.add_argument("--password", default=None)

    subparsers.add_parser("list-practices")

    list_devices_parser = subparsers.add_parser("list-devices")
    list_devices_parser.add_argument("--ods-code", required=True)

    approve_device_parser = subparsers.add_parser("approve-device")
    approve_device_parser.add_argument("--device-id", required=True)
    approve_device_parser.add_argument("--super-admin-email", required=True)

    revoke_device_parser = subparsers.add_parser("revoke-device")
    revoke_device_parser.add_argument("--ods-code", required=True)
    revoke_device_parser.add_argument("--device-id", required=True)
    revoke_device_parser.add_argument("--reason", default=None)

    return parser


def main() -> int:
    parser = build_parser()
    args = parser.parse_args()

    db = SessionLocal()
    try:
        if args.command == "create-super-admin":
            return create_super_admin(db, args.email, args.first_name, args.last_name, args.password)
        if args.command == "list-practices":
            return list_practices(db)
        if args.command == "list-devices":
            return list_devices(db, args.ods_code)
        if args.command == "approve-device":
            return approve_device(db, args.device_id, args.super_admin_email)
        if args.command == "revoke-device":
            return revoke_device(db, args.ods_code, args.device_id, args.reason)
        print("Unknown command")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
