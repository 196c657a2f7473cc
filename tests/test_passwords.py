from datetime import datetime, timedelta, timezone

from practice_access.config import Settings
from practice_access.services.passwords import (
    encode_legacy_password,
    hash_password,
    legacy_passwords_allowed,
    reject_password,
    verify_password,
)


def make_settings(**overrides) -> Settings:
    values = {"DATABASE_URL": "sqlite://", "JWT_SECRET": "test-secret", **overrides}
    return Settings(**values)


def test_bcrypt_hash_verifies():
    stored = hash_password("s3cret-pass")

    assert stored.startswith("$2")
    assert verify_password("s3cret-pass", stored) is True
    assert verify_password("wrong-pass", stored) is False


def test_legacy_encoding_requires_opt_in():
    stored = encode_legacy_password("SuperAdmin123!")

    assert verify_password("SuperAdmin123!", stored) is False
    assert verify_password("SuperAdmin123!", stored, allow_legacy=True) is True
    assert verify_password("other", stored, allow_legacy=True) is False


def test_legacy_flag_never_weakens_bcrypt_check():
    stored = hash_password("s3cret-pass")

    assert verify_password(stored, stored, allow_legacy=True) is False


def test_legacy_passwords_disabled_by_setting():
    settings = make_settings(ALLOW_LEGACY_PASSWORDS=False)

    assert legacy_passwords_allowed(datetime.now(timezone.utc), settings) is False


def test_legacy_passwords_limited_to_accounts_before_cutoff():
    cutoff = datetime(2026, 1, 1, tzinfo=timezone.utc)
    settings = make_settings(LEGACY_PASSWORD_CUTOFF=cutoff)

    assert legacy_passwords_allowed(cutoff - timedelta(days=1), settings) is True
    assert legacy_passwords_allowed(cutoff + timedelta(seconds=1), settings) is False
    # Naive timestamps as returned by SQLite are treated as UTC.
    assert legacy_passwords_allowed(datetime(2025, 6, 1), settings) is True
    assert legacy_passwords_allowed(None, settings) is False


def test_legacy_passwords_allowed_without_cutoff():
    settings = make_settings()

    assert legacy_passwords_allowed(None, settings) is True


def test_reject_password_is_always_false():
    assert reject_password("s3cret-pass") is False
    assert reject_password("x" * 100) is False
