"""
Strategy failure classifications.

These exceptions describe faults inside one strategy or misuse of the
strategy lifecycle. The engine contains evaluation faults per strategy so
that one failing strategy never aborts a cycle.
"""

from typing import Optional

from .base import ClobsterError


class StrategyError(ClobsterError):
    """Base class for errors attributable to a single strategy."""

    def __init__(self, message: str, strategy_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.strategy_name = strategy_name


class StrategyEvaluationError(StrategyError):
    """Unexpected fault raised from a strategy's ``evaluate``."""

    def __init__(self, message: str, strategy_name: Optional[str] = None,
                 cause: Optional[BaseException] = None, **kwargs):
        super().__init__(message, strategy_name=strategy_name, **kwargs)
        self.cause = cause

    @property
    def error_type(self) -> Optional[str]:
        """Class name of the wrapped exception."""
        return type(self.cause).__name__ if self.cause is not None else None


class StrategyLifecycleError(StrategyError):
    """Illegal lifecycle transition (e.g. starting a strategy after shutdown)."""

    def __init__(self, message: str, strategy_name: Optional[str] = None,
                 current_state: Optional[str] = None,
                 attempted_transition: Optional[str] = None, **kwargs):
        super().__init__(message, strategy_name=strategy_name, **kwargs)
        self.current_state = current_state
        self.attempted_transition = attempted_transition


class StrategyRegistrationError(StrategyError):
    """Duplicate registration or lookup of an unknown strategy."""
