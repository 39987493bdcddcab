import hashlib
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to values read back from backends that drop the offset (SQLite)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hash_phone_number(phone: str) -> str:
    """Hash phone number for logs (one-way hash)"""
    return hashlib.sha256(phone.encode()).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone) -> str:
    return str(phone).strip()
