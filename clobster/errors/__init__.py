"""
Error classification for the strategy core.

This module provides the structured exception hierarchy for bad market
snapshots, bad strategy configuration and faults raised by strategies.
Risk rejections are not exceptions; see ``clobster.strategy.risk``.
"""

from .base import ClobsterError
from .configuration import ConfigurationError
from .data_quality import DataQualityError, MalformedDataError
from .strategy_failures import (
    StrategyError,
    StrategyEvaluationError,
    StrategyLifecycleError,
    StrategyRegistrationError,
)

__all__ = [
    "ClobsterError",
    # Configuration
    "ConfigurationError",
    # Data Quality Errors
    "DataQualityError",
    "MalformedDataError",
    # Strategy Failures
    "StrategyError",
    "StrategyEvaluationError",
    "StrategyLifecycleError",
    "StrategyRegistrationError",
]
