"""
Data quality error classifications for market snapshots.

These exceptions flag snapshots handed over by the data layer that break
the invariants the analytics rely on.
"""

from typing import Optional

from .base import ClobsterError


class DataQualityError(ClobsterError):
    """Base class for snapshot data issues."""


class MalformedDataError(DataQualityError):
    """Data exists but violates the expected shape or ordering."""

    def __init__(self, message: str, raw_data: Optional[str] = None,
                 expected_format: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.raw_data = raw_data
        self.expected_format = expected_format
