"""Strategy framework: context snapshots, signals, risk gating and the engine."""

from .base import Strategy, StrategyConfig, StrategyMetadata
from .context import (
    MarketSnapshot,
    MarketStatus,
    OrderSnapshot,
    OrderStatus,
    OutcomeSnapshot,
    PositionSnapshot,
    StrategyContext,
)
from .engine import EvaluationResult, StrategyEngine
from .lifecycle import StrategyHandle, StrategyStatus
from .risk import RiskGuard, RiskViolation
from .signal import Signal, SignalIntent, SignalStrength, SignalType
from .strategies import MeanReversionStrategy, MomentumStrategy, SpreadStrategy
from .window import PriceWindow

__all__ = [
    "EvaluationResult",
    "MarketSnapshot",
    "MarketStatus",
    "MeanReversionStrategy",
    "MomentumStrategy",
    "OrderSnapshot",
    "OrderStatus",
    "OutcomeSnapshot",
    "PositionSnapshot",
    "PriceWindow",
    "RiskGuard",
    "RiskViolation",
    "Signal",
    "SignalIntent",
    "SignalStrength",
    "SignalType",
    "SpreadStrategy",
    "Strategy",
    "StrategyConfig",
    "StrategyContext",
    "StrategyEngine",
    "StrategyHandle",
    "StrategyMetadata",
    "StrategyStatus",
]
