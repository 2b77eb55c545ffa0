"""
Utility functions module.

Time Semantics:
- Snapshot timestamps supplied by the data layer are authoritative
- Wall-clock time is only a fallback when a snapshot carries none
"""

from .time import ensure_utc, format_market_time, get_market_time

__all__ = ["ensure_utc", "format_market_time", "get_market_time"]
