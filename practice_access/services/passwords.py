import base64
import hmac
from datetime import datetime
from functools import lru_cache

import bcrypt

from practice_access.config import Settings, get_settings
from practice_access.utils.time import ensure_aware

BCRYPT_PREFIX = "$2"


def hash_password(password: str) -> str:
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10))
    return hashed.decode("utf-8")


def is_bcrypt_hash(stored: str) -> bool:
    return stored.startswith(BCRYPT_PREFIX)


def encode_legacy_password(password: str) -> str:
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def legacy_passwords_allowed(created_at: datetime | None, settings: Settings | None = None) -> bool:
    """Whether an account may still log in with a base64-encoded seed password.

    The fallback exists for demo/seed data only. It is disabled outright by
    ALLOW_LEGACY_PASSWORDS=false, and LEGACY_PASSWORD_CUTOFF limits it to
    accounts created on or before the cutoff.
    """
    settings = settings or get_settings()
    if not settings.allow_legacy_passwords:
        return False
    if settings.legacy_password_cutoff is None:
        return True
    if created_at is None:
        return False
    return ensure_aware(created_at) <= ensure_aware(settings.legacy_password_cutoff)


@lru_cache
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"practice-access-dummy", bcrypt.gensalt(rounds=10))


def reject_password(password: str) -> bool:
    """Spend one bcrypt check for an account that does not exist; always False."""
    try:
        bcrypt.checkpw(password.encode("utf-8"), _dummy_hash())
    except ValueError:
        pass
    return False


def verify_password(password: str, stored: str, *, allow_legacy: bool = False) -> bool:
    if is_bcrypt_hash(stored):
        try:
            return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
        except ValueError:
            return False
    if not allow_legacy:
        return False
    return hmac.compare_digest(encode_legacy_password(password), stored)
