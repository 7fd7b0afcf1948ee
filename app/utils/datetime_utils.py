"""
Timezone-aware datetime helpers.
- Store and compute in UTC in DB.
- Calendar decisions (fiscal year, due dates) use the business timezone from settings.BUSINESS_TZ.
"""
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from app.core.config import settings

UTC = timezone.utc


def business_tz() -> ZoneInfo:
    """Configured business timezone (default Asia/Singapore)."""
    return ZoneInfo(settings.BUSINESS_TZ)


def now_utc() -> datetime:
    """Current time in UTC (timezone-aware). Use for created_at, triggered_at, etc."""
    return datetime.now(UTC)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """If dt is naive, treat as UTC and return timezone-aware UTC. If already aware, convert to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    else:
        dt = dt.astimezone(UTC)
    return dt


def to_local(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert to the business timezone. Naive datetimes are treated as UTC."""
    if dt is None:
        return None
    return ensure_utc(dt).astimezone(business_tz())


def local_today(now: Optional[datetime] = None) -> date:
    """Calendar date in the business timezone."""
    return to_local(now or now_utc()).date()


def iso_8601_utc(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 with Z for UTC."""
    if dt is None:
        return None
    s = ensure_utc(dt).isoformat()
    if s.endswith("+00:00"):
        s = s[:-6] + "Z"
    return s


def iso_local(dt: Optional[datetime]) -> Optional[str]:
    """Serialize as ISO-8601 in the business timezone with its offset. Use for API response datetime fields."""
    if dt is None:
        return None
    return to_local(dt).isoformat()
