"""
Timestamp helpers shared by the feed ranker and payload enrichment.
"""

from datetime import datetime, timezone
from typing import Optional


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_millis(value: datetime) -> int:
    return int(as_utc(value).timestamp() * 1000)


def time_ago(value: datetime, now: Optional[datetime] = None) -> str:
    """Compact relative age: 5m ago, 3h ago, 2d ago."""
    now = as_utc(now or datetime.now(timezone.utc))
    minutes = max(0, int((now - as_utc(value)).total_seconds() // 60))
    if minutes < 60:
        return f"{minutes}m ago"
    hours = minutes // 60
    if hours < 24:
        return f"{hours}h ago"
    return f"{hours // 24}d ago"
