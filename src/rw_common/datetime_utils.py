"""UTC datetime utilities."""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def expires_after(seconds: int, start: datetime | None = None) -> datetime:
    """Expiry timestamp `seconds` after `start` (default: now)."""
    return (start or utc_now()) + timedelta(seconds=seconds)


def iso_or_none(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None
