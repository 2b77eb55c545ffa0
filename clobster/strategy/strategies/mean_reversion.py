"""
Mean reversion strategy.

Bets that an outcome price far below its rolling mean will revert. Each
new price is scored against the window of prior observations

    z = (P - mu) / sigma

and appended afterwards. A Buy is emitted when z <= -entry_z_score and the
position is closed once |z| <= exit_z_score.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Optional

import structlog

from ...config.defaults import MeanReversionParams
from ...config.validation import ParameterDef, ParameterType, ValidationError
from ...errors import ConfigurationError
from ..base import Strategy
from ..context import StrategyContext
from ..signal import Signal, SignalIntent, SignalStrength
from ..window import PriceWindow

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ReversionEntry:
    """Bookkeeping for a market this strategy has bought into."""
    token_id: str
    entry_price: Decimal
    mean_at_entry: Decimal
    z_at_entry: Decimal
    signal_id: str


class MeanReversionStrategy(Strategy):
    """Buys statistically cheap outcomes and exits near the mean."""

    default_name = "mean_reversion"
    description = "Buys outcomes trading far below their rolling mean"

    def __init__(self, name: Optional[str] = None, params: Optional[MeanReversionParams] = None):
        super().__init__(name)
        self.params = params or MeanReversionParams()
        self._windows: dict[str, PriceWindow] = {}
        self._entries: dict[str, ReversionEntry] = {}
        self._pending_exits: dict[str, tuple[str, ReversionEntry]] = {}

    def parameters(self) -> dict[str, ParameterDef]:
        defaults = MeanReversionParams()
        return {
            "window_size": ParameterDef(
                "window_size", ParameterType.INTEGER, defaults.window_size,
                "Rolling window length", min=2, max=10000),
            "min_samples": ParameterDef(
                "min_samples", ParameterType.INTEGER, defaults.min_samples,
                "Observations required before scoring", min=2),
            "entry_z_score": ParameterDef(
                "entry_z_score", ParameterType.DECIMAL, defaults.entry_z_score,
                "Deviation below the mean that triggers a buy", min=Decimal("0")),
            "exit_z_score": ParameterDef(
                "exit_z_score", ParameterType.DECIMAL, defaults.exit_z_score,
                "Band around the mean that closes the position", min=Decimal("0")),
            "position_size": ParameterDef(
                "position_size", ParameterType.DECIMAL, defaults.position_size,
                "Shares per entry", min=Decimal("0")),
            "max_positions": ParameterDef(
                "max_positions", ParameterType.INTEGER, defaults.max_positions,
                "Maximum concurrently entered markets", min=1),
        }

    def configure(self, values: dict[str, Any]) -> None:
        known = {f.name for f in fields(MeanReversionParams)}
        params = MeanReversionParams(**{k: v for k, v in values.items() if k in known})

        errors = []
        if params.min_samples > params.window_size:
            errors.append(ValidationError(
                field="min_samples",
                message="Must not exceed window_size",
                value=params.min_samples
            ))
        if params.exit_z_score >= params.entry_z_score:
            errors.append(ValidationError(
                field="exit_z_score",
                message="Must be below entry_z_score",
                value=params.exit_z_score
            ))
        if errors:
            raise ConfigurationError("Inconsistent mean reversion parameters",
                                     errors=errors, strategy_name=self.name)

        self.params = params
        self._windows.clear()

    @property
    def entered_markets(self) -> set[str]:
        return set(self._entries)

    def z_score(self, token_id: str, price: Decimal) -> Optional[Decimal]:
        """Score `price` against the current window, None before min_samples or on a flat window."""
        window = self._windows.get(token_id)
        if window is None or len(window) < self.params.min_samples:
            return None
        sigma = window.stdev()
        if not sigma:
            return None
        return (price - window.mean()) / sigma

    def evaluate(self, context: StrategyContext) -> list[Signal]:
        signals = []

        for market in context.tradable_markets():
            outcome = market.primary_outcome()
            if outcome is None:
                continue

            price = outcome.price
            window = self._window(outcome.token_id)
            z = self.z_score(outcome.token_id, price)
            mean = window.mean()
            window.push(price)

            if z is None:
                continue

            entry = self._entries.get(market.market_id)
            if entry is not None:
                if abs(z) <= self.params.exit_z_score:
                    signal = (
                        Signal.sell(market.market_id, entry.token_id, self.params.position_size,
                                    created_at=context.timestamp)
                        .with_strategy(self.name)
                        .with_intent(SignalIntent.EXIT)
                        .with_strength(SignalStrength.MEDIUM)
                        .with_limit_price(price)
                        .with_reason(f"Reverted to z={z:.2f} (exit band {self.params.exit_z_score})")
                    )
                    del self._entries[market.market_id]
                    self._pending_exits[signal.signal_id] = (market.market_id, entry)
                    signals.append(signal)
                continue

            if z > -self.params.entry_z_score:
                continue

            if len(self._entries) >= self.params.max_positions:
                logger.debug(
                    "Mean reversion entry suppressed at position cap",
                    strategy=self.name,
                    market_id=market.market_id,
                    max_positions=self.params.max_positions
                )
                continue

            strength = (SignalStrength.STRONG if z <= -self.params.entry_z_score * Decimal("1.5")
                        else SignalStrength.MEDIUM)
            signal = (
                Signal.buy(market.market_id, outcome.token_id, self.params.position_size,
                           created_at=context.timestamp)
                .with_strategy(self.name)
                .with_intent(SignalIntent.ENTRY)
                .with_strength(strength)
                .with_limit_price(price)
                .with_reason(f"Price {price} at z={z:.2f} below mean {mean:.4f} "
                             f"(entry {self.params.entry_z_score})")
            )
            self._entries[market.market_id] = ReversionEntry(
                token_id=outcome.token_id,
                entry_price=price,
                mean_at_entry=mean,
                z_at_entry=z,
                signal_id=signal.signal_id,
            )
            signals.append(signal)

        return signals

    def on_signal_executed(self, signal: Signal, success: bool) -> None:
        pending_exit = self._pending_exits.pop(signal.signal_id, None)
        if success:
            return

        entry = self._entries.get(signal.market_id)
        if signal.is_buy and entry is not None and entry.signal_id == signal.signal_id:
            del self._entries[signal.market_id]
        elif pending_exit is not None:
            market_id, previous = pending_exit
            self._entries.setdefault(market_id, previous)

    def _window(self, token_id: str) -> PriceWindow:
        window = self._windows.get(token_id)
        if window is None:
            window = PriceWindow(self.params.window_size)
            self._windows[token_id] = window
        return window
