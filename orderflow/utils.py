"""
Small shared helpers
"""
import secrets
import string
import time
from datetime import datetime, timezone

_ORDER_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from databases without tz support"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def generate_order_number() -> str:
    """Human-facing order number, e.g. ORD-1718000000000-4K9ZQA"""
    timestamp = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_ORDER_SUFFIX_ALPHABET) for _ in range(6))
    return f"ORD-{timestamp}-{suffix}"
