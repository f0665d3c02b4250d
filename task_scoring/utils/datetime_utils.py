from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_timezone(value: datetime) -> datetime:
    """naive な datetime は UTC とみなし、aware な値は UTC に変換する"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_reference_time(reference_time: Optional[datetime]) -> datetime:
    if reference_time is None:
        return utc_now()
    return ensure_timezone(reference_time)


def total_days(delta: timedelta) -> float:
    return delta.total_seconds() / 86400


def total_hours(delta: timedelta) -> float:
    return delta.total_seconds() / 3600


def format_datetime(value: datetime) -> str:
    return ensure_timezone(value).isoformat()


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """ISO 8601 文字列を UTC の datetime に変換（不正値は None）"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return ensure_timezone(parsed)
