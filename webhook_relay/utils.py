import re
from datetime import datetime, timezone
from typing import Optional
import secrets

DEFAULT_COUNTRY_CODE = "91"
LOCAL_NUMBER_LENGTH = 10


# =========================
# Phone numbers
# =========================
def normalize_phone(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Canonicalize a phone number to ``+<country code><local number>``.

    Best effort: shapes that are not recognised come back cleaned but otherwise
    untouched, and normalizing an already normalized number is a no-op.
    """
    cleaned = re.sub(r'[^\d+]', '', phone or '')

    if cleaned.startswith(f"+{country_code}"):
        return cleaned
    if cleaned.startswith(country_code) and len(cleaned) == len(country_code) + LOCAL_NUMBER_LENGTH:
        return f"+{cleaned}"
    if len(cleaned) == LOCAL_NUMBER_LENGTH and cleaned.isdigit():
        return f"+{country_code}{cleaned}"
    if len(cleaned) == LOCAL_NUMBER_LENGTH + 1 and cleaned.startswith('0') and cleaned[1:].isdigit():
        return f"+{country_code}{cleaned[1:]}"
    return cleaned


def last_ten_digits(phone: str) -> str:
    """Digits-only suffix used to compare numbers with or without a country code."""
    digits = re.sub(r'\D', '', phone or '')
    return digits[-LOCAL_NUMBER_LENGTH:]


def mask_phone(phone: str) -> str:
    if not phone:
        return ""
    if len(phone) <= 4:
        return "*" * len(phone)
    return phone[:3] + "*" * (len(phone) - 5) + phone[-2:]


# =========================
# OTP / session tokens
# =========================
def generate_otp(length: int = 6) -> str:
    """Generate a numeric OTP of the given length."""
    return ''.join(secrets.choice('0123456789') for _ in range(length))


def generate_session_token(num_bytes: int = 32) -> str:
    """Opaque bearer token, hex encoded."""
    return secrets.token_hex(num_bytes)


# =========================
# Requests
# =========================
def get_client_ip(request) -> str:
    """Client address, preferring the first X-Forwarded-For hop."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# =========================
# Time
# =========================
def utcnow() -> datetime:
    """Current time as an aware UTC datetime; stored timestamps are always aware."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive values (SQLite drops the offset on read), convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
