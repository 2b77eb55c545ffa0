"""
Strategy capability shared by built-in and user-defined strategies.

A strategy owns whatever private state it needs (price windows, entered
markets). The engine owns strategy instances and only ever talks to them
through the methods below.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional

from ..config.validation import ConfigValidator, ParameterDef
from ..errors import ConfigurationError
from .context import StrategyContext
from .signal import Signal


@dataclass(frozen=True)
class StrategyMetadata:
    """Descriptive information about a strategy."""
    name: str
    description: str = ""
    version: str = "1.0.0"
    author: Optional[str] = None
    tags: tuple[str, ...] = ()


@dataclass(frozen=True)
class StrategyConfig:
    """Per-registration strategy configuration."""
    enabled: bool = True
    include_markets: tuple[str, ...] = ()     # Empty = every market
    exclude_markets: tuple[str, ...] = ()
    parameters: dict[str, Any] = field(default_factory=dict)
    min_signal_interval_secs: int = 0         # Min seconds between evaluations; 0 = every cycle

    def __post_init__(self):
        if self.min_signal_interval_secs < 0:
            raise ConfigurationError(
                "min_signal_interval_secs must be non-negative",
                context={"min_signal_interval_secs": self.min_signal_interval_secs}
            )

    def filter_context(self, context: StrategyContext) -> StrategyContext:
        """Apply include/exclude market lists to a shared context."""
        if self.include_markets:
            context = context.restricted_to(self.include_markets)
        if self.exclude_markets:
            context = context.excluding(self.exclude_markets)
        return context


class Strategy(ABC):
    """
    Base class for trading strategies.

    Subclasses implement ``evaluate`` and usually declare their tunables in
    ``parameters`` and apply them in ``configure``. ``evaluate`` must not
    block; slow setup and teardown belong in the async ``initialize`` and
    ``shutdown`` hooks.
    """

    default_name = "strategy"
    description = ""

    def __init__(self, name: Optional[str] = None):
        self._name = name or self.default_name

    @property
    def name(self) -> str:
        return self._name

    def metadata(self) -> StrategyMetadata:
        return StrategyMetadata(name=self.name, description=self.description)

    def parameters(self) -> dict[str, ParameterDef]:
        """Declared configuration parameters, keyed by name."""
        return {}

    async def initialize(self, config: StrategyConfig) -> None:
        """
        Validate ``config.parameters`` and apply them.

        Raises:
            ConfigurationError: If a parameter is unknown, missing, mistyped
                or out of range, or the combination is inconsistent
        """
        values = ConfigValidator.resolve_parameters(
            self.parameters(), config.parameters, strategy_name=self.name
        )
        self.configure(values)

    def configure(self, values: dict[str, Any]) -> None:
        """Apply validated parameter values."""

    @abstractmethod
    def evaluate(self, context: StrategyContext) -> list[Signal]:
        """Inspect the snapshot and return zero or more signals."""

    def on_market_update(self, context: StrategyContext) -> None:
        pass

    def on_signal_executed(self, signal: Signal, success: bool) -> None:
        pass

    def on_order_filled(self, order_id: str, filled_price: Decimal, filled_size: Decimal) -> None:
        pass

    def on_order_cancelled(self, order_id: str) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
