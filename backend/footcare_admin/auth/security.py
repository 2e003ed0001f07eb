import secrets
from datetime import datetime, timedelta, timezone

from footcare_admin.config import ADMIN_PASSWORD, SESSION_TTL_HOURS


def verify_password(password: str | None) -> bool:
    if not password or not ADMIN_PASSWORD:
        return False
    return secrets.compare_digest(password.encode("utf-8"), ADMIN_PASSWORD.encode("utf-8"))


def new_token() -> str:
    return f"auth_{secrets.token_urlsafe(32)}"


def token_expiry(hours: int = SESSION_TTL_HOURS) -> datetime:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).replace(tzinfo=None)
