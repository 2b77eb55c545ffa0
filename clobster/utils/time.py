"""
Time semantics utilities for snapshot vs wall-clock time handling.

Snapshot timestamps are authoritative; wall-clock time is only used when
the data layer supplied none.
"""

from datetime import datetime, timezone
from typing import Optional


def get_market_time(market_ts: Optional[datetime] = None) -> datetime:
    """
    Get the current market time, preferring the snapshot timestamp over wall-clock time.

    Args:
        market_ts: Optional timestamp from the snapshot

    Returns:
        Market time as UTC datetime, falling back to wall-clock time if unavailable
    """
    if market_ts is not None:
        return ensure_utc(market_ts)

    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def format_market_time(ts: Optional[datetime]) -> Optional[str]:
    """ISO-8601 rendering used in log context, None passes through."""
    if ts is None:
        return None
    return ensure_utc(ts).isoformat()
