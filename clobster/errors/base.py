"""Root of the clobster exception hierarchy."""

from typing import Any, Optional


class ClobsterError(Exception):
    """Base class for every error raised by the strategy core."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
