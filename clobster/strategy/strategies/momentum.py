"""
Momentum strategy.

Tracks the primary outcome price of every tradable market in a rolling
window and buys when the price has risen by at least ``entry_threshold``
over ``lookback_periods`` observations:

    M = (P_t - P_{t-n}) / P_{t-n}

An entered market is exited when momentum reverses past
``-exit_threshold``, or on the optional stop loss / take profit levels.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog

from ...config.defaults import MomentumParams
from ...config.validation import ParameterDef, ParameterType
from ..base import Strategy
from ..context import MarketSnapshot, StrategyContext
from ..signal import Signal, SignalIntent, SignalStrength
from ..window import PriceWindow

logger = structlog.get_logger(__name__)

ONE = Decimal("1")


@dataclass(frozen=True)
class MomentumEntry:
    """Bookkeeping for a market this strategy has bought into."""
    token_id: str
    entry_price: Decimal
    entry_momentum: Decimal
    signal_id: str


class MomentumStrategy(Strategy):
    """Trend-following entries on rising outcome prices."""

    default_name = "momentum"
    description = "Buys outcomes whose price rose past a threshold over a lookback window"

    def __init__(self, name: Optional[str] = None, params: Optional[MomentumParams] = None):
        super().__init__(name)
        self.params = params or MomentumParams()
        self._windows: dict[str, PriceWindow] = {}
        self._entries: dict[str, MomentumEntry] = {}
        self._pending_exits: dict[str, tuple[str, MomentumEntry]] = {}

    def parameters(self) -> dict[str, ParameterDef]:
        defaults = MomentumParams()
        return {
            "lookback_periods": ParameterDef(
                "lookback_periods", ParameterType.INTEGER, defaults.lookback_periods,
                "Observations between the compared prices", min=1, max=1000),
            "entry_threshold": ParameterDef(
                "entry_threshold", ParameterType.DECIMAL, defaults.entry_threshold,
                "Minimum momentum to enter", min=Decimal("0")),
            "exit_threshold": ParameterDef(
                "exit_threshold", ParameterType.DECIMAL, defaults.exit_threshold,
                "Negative momentum magnitude that triggers an exit", min=Decimal("0")),
            "position_size": ParameterDef(
                "position_size", ParameterType.DECIMAL, defaults.position_size,
                "Shares per entry", min=Decimal("0")),
            "max_positions": ParameterDef(
                "max_positions", ParameterType.INTEGER, defaults.max_positions,
                "Maximum concurrently entered markets", min=1),
            "min_volume": ParameterDef(
                "min_volume", ParameterType.DECIMAL, defaults.min_volume,
                "Minimum 24h volume to consider a market", min=Decimal("0")),
            "stop_loss_pct": ParameterDef(
                "stop_loss_pct", ParameterType.DECIMAL, defaults.stop_loss_pct,
                "Exit when price falls this fraction below entry", min=Decimal("0"),
                max=ONE, nullable=True),
            "take_profit_pct": ParameterDef(
                "take_profit_pct", ParameterType.DECIMAL, defaults.take_profit_pct,
                "Exit when price rises this fraction above entry", min=Decimal("0"),
                nullable=True),
        }

    def configure(self, values: dict[str, Any]) -> None:
        known = {f.name for f in fields(MomentumParams)}
        self.params = MomentumParams(**{k: v for k, v in values.items() if k in known})
        self._windows.clear()

    @property
    def entered_markets(self) -> set[str]:
        return set(self._entries)

    def calculate_momentum(self, token_id: str) -> Optional[Decimal]:
        """Momentum over the full window, None until it holds lookback_periods + 1 prices."""
        window = self._windows.get(token_id)
        if window is None or not window.is_full():
            return None
        past = window.oldest()
        if not past:
            return None
        return (window.latest() - past) / past

    def evaluate(self, context: StrategyContext) -> list[Signal]:
        signals = []

        for market in context.tradable_markets():
            if market.volume_24h < self.params.min_volume:
                continue

            outcome = market.primary_outcome()
            if outcome is None:
                continue

            self._record_price(outcome.token_id, outcome.price)
            momentum = self.calculate_momentum(outcome.token_id)

            entry = self._entries.get(market.market_id)
            if entry is not None:
                signal = self._exit_signal(market, entry, outcome.price, momentum, context.timestamp)
                if signal is not None:
                    signals.append(signal)
                continue

            if momentum is None or momentum < self.params.entry_threshold:
                continue

            if len(self._entries) >= self.params.max_positions:
                logger.debug(
                    "Momentum entry suppressed at position cap",
                    strategy=self.name,
                    market_id=market.market_id,
                    max_positions=self.params.max_positions
                )
                continue

            strength = (SignalStrength.STRONG if momentum >= self.params.entry_threshold * 2
                        else SignalStrength.MEDIUM)
            signal = (
                Signal.buy(market.market_id, outcome.token_id, self.params.position_size,
                           created_at=context.timestamp)
                .with_strategy(self.name)
                .with_intent(SignalIntent.ENTRY)
                .with_strength(strength)
                .with_limit_price(outcome.price)
                .with_reason(f"Bullish momentum {momentum:.2%} over {self.params.lookback_periods} "
                             f"periods (threshold {self.params.entry_threshold:.2%})")
            )
            self._entries[market.market_id] = MomentumEntry(
                token_id=outcome.token_id,
                entry_price=outcome.price,
                entry_momentum=momentum,
                signal_id=signal.signal_id,
            )
            signals.append(signal)

        return signals

    def on_signal_executed(self, signal: Signal, success: bool) -> None:
        pending_exit = self._pending_exits.pop(signal.signal_id, None)
        if success:
            return

        # Undo the bookkeeping done when the signal was emitted
        entry = self._entries.get(signal.market_id)
        if signal.is_buy and entry is not None and entry.signal_id == signal.signal_id:
            del self._entries[signal.market_id]
        elif pending_exit is not None:
            market_id, previous = pending_exit
            self._entries.setdefault(market_id, previous)
        logger.info(
            "Signal not executed, entry bookkeeping restored",
            strategy=self.name,
            market_id=signal.market_id,
            signal_id=signal.signal_id
        )

    def _record_price(self, token_id: str, price: Decimal) -> None:
        window = self._windows.get(token_id)
        if window is None:
            window = PriceWindow(self.params.lookback_periods + 1)
            self._windows[token_id] = window
        window.push(price)

    def _exit_signal(self, market: MarketSnapshot, entry: MomentumEntry, price: Decimal,
                     momentum: Optional[Decimal], timestamp: datetime) -> Optional[Signal]:
        intent = None
        strength = SignalStrength.MEDIUM
        reason = ""

        if self.params.stop_loss_pct is not None and price <= entry.entry_price * (ONE - self.params.stop_loss_pct):
            intent, strength = SignalIntent.STOP_LOSS, SignalStrength.STRONG
            reason = f"Stop loss at {price} (entry {entry.entry_price})"
        elif self.params.take_profit_pct is not None and price >= entry.entry_price * (ONE + self.params.take_profit_pct):
            intent, strength = SignalIntent.TAKE_PROFIT, SignalStrength.STRONG
            reason = f"Take profit at {price} (entry {entry.entry_price})"
        elif (entry.entry_momentum > 0 and momentum is not None
              and momentum <= -self.params.exit_threshold):
            intent = SignalIntent.EXIT
            reason = f"Momentum reversed to {momentum:.2%} (exit threshold {self.params.exit_threshold:.2%})"

        if intent is None:
            return None

        signal = (
            Signal.sell(market.market_id, entry.token_id, self.params.position_size,
                        created_at=timestamp)
            .with_strategy(self.name)
            .with_intent(intent)
            .with_strength(strength)
            .with_limit_price(price)
            .with_reason(reason)
        )
        del self._entries[market.market_id]
        self._pending_exits[signal.signal_id] = (market.market_id, entry)
        return signal
