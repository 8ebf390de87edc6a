"""
Time helpers shared by the booking core.

All timestamps are handled as timezone-aware UTC. Some database drivers hand
back naive values for ``DateTime(timezone=True)`` columns; ``as_utc`` reads
those as UTC.
"""

from datetime import datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to aware UTC, treating naive values as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
