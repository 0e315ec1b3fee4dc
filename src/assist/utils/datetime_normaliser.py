from datetime import datetime, timezone
from typing import Optional


def from_iso_string(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        raise ValueError("Stored datetime must be timezone-aware")
    return dt.astimezone(timezone.utc)


def to_iso_string(dt: datetime) -> str:
    """Fixed-width UTC form, so stored values sort lexicographically."""
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware")
    return dt.astimezone(timezone.utc).isoformat(timespec="microseconds")


def optional_from_iso(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return from_iso_string(value)


def parse_client_datetime(value: str) -> datetime:
    """Parses a query-string date; bare dates and naive times are taken as UTC."""
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Datetime must be a non-empty string")

    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
