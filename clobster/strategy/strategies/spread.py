"""
Spread (market making) strategy.

Quotes inside the touch on both sides of a wide enough book, skewed by
current inventory I of the quoted token:

    P_bid = bid + edge - skew_factor * I
    P_ask = ask - edge - skew_factor * I

Being long shifts both quotes down, making further buys less likely and
sells more likely. Inventory is capped at +/- max_position.
"""

from dataclasses import fields
from datetime import timedelta
from decimal import Decimal
from typing import Any, Optional

import structlog

from ...config.defaults import SpreadParams
from ...config.validation import ParameterDef, ParameterType
from ..base import Strategy
from ..context import MarketSnapshot, OutcomeSnapshot, StrategyContext
from ..signal import Signal, SignalIntent, SignalStrength

logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


class SpreadStrategy(Strategy):
    """Two-sided liquidity provision with inventory skew."""

    default_name = "spread"
    description = "Provides liquidity by quoting both sides of wide spreads"

    def __init__(self, name: Optional[str] = None, params: Optional[SpreadParams] = None):
        super().__init__(name)
        self.params = params or SpreadParams()

    def parameters(self) -> dict[str, ParameterDef]:
        defaults = SpreadParams()
        return {
            "min_spread": ParameterDef(
                "min_spread", ParameterType.DECIMAL, defaults.min_spread,
                "Minimum ask - bid required to quote", min=ZERO, max=ONE),
            "edge": ParameterDef(
                "edge", ParameterType.DECIMAL, defaults.edge,
                "Price improvement inside the touch", min=ZERO, max=ONE),
            "skew_factor": ParameterDef(
                "skew_factor", ParameterType.DECIMAL, defaults.skew_factor,
                "Quote shift per unit of inventory", min=ZERO),
            "order_size": ParameterDef(
                "order_size", ParameterType.DECIMAL, defaults.order_size,
                "Shares per quote", min=ZERO),
            "max_position": ParameterDef(
                "max_position", ParameterType.DECIMAL, defaults.max_position,
                "Inventory cap per token", min=ZERO),
            "min_liquidity": ParameterDef(
                "min_liquidity", ParameterType.DECIMAL, defaults.min_liquidity,
                "Minimum market liquidity to quote", min=ZERO),
            "quote_ttl_seconds": ParameterDef(
                "quote_ttl_seconds", ParameterType.INTEGER, defaults.quote_ttl_seconds,
                "Lifetime of each quote", min=1),
        }

    def configure(self, values: dict[str, Any]) -> None:
        known = {f.name for f in fields(SpreadParams)}
        self.params = SpreadParams(**{k: v for k, v in values.items() if k in known})

    def touch(self, context: StrategyContext,
              outcome: OutcomeSnapshot) -> tuple[Optional[Decimal], Optional[Decimal]]:
        """Best bid and ask for an outcome, preferring the live order book."""
        book = context.get_order_book(outcome.token_id)
        if book is not None and not book.is_empty:
            return book.best_bid_price(), book.best_ask_price()
        return outcome.bid, outcome.ask

    def quote_prices(self, bid: Decimal, ask: Decimal,
                     inventory: Decimal) -> tuple[Decimal, Decimal]:
        skew = self.params.skew_factor * inventory
        return bid + self.params.edge - skew, ask - self.params.edge - skew

    def evaluate(self, context: StrategyContext) -> list[Signal]:
        signals = []
        for market in context.tradable_markets():
            signals.extend(self._quote_market(context, market))
        return signals

    def _quote_market(self, context: StrategyContext, market: MarketSnapshot) -> list[Signal]:
        if market.liquidity < self.params.min_liquidity:
            return []

        outcome = market.primary_outcome()
        if outcome is None:
            return []

        bid, ask = self.touch(context, outcome)
        if bid is None or ask is None:
            return []

        spread = ask - bid
        if spread < self.params.min_spread:
            return []

        inventory = context.position_size(outcome.token_id)
        bid_price, ask_price = self.quote_prices(bid, ask, inventory)
        if bid_price >= ask_price:
            logger.debug(
                "Spread quotes crossed after skew",
                strategy=self.name,
                market_id=market.market_id,
                bid_price=str(bid_price),
                ask_price=str(ask_price),
                inventory=str(inventory)
            )
            return []

        ttl = timedelta(seconds=self.params.quote_ttl_seconds)
        reason = f"spread {spread:.4f} at {bid}/{ask}, inventory {inventory}"
        signals = []

        bid_size = min(self.params.order_size, self.params.max_position - inventory)
        if bid_size > ZERO and ZERO < bid_price < ONE:
            signals.append(
                Signal.buy(market.market_id, outcome.token_id, bid_size,
                           created_at=context.timestamp)
                .with_strategy(self.name)
                .with_intent(SignalIntent.ENTRY)
                .with_strength(SignalStrength.LOW)
                .with_limit_price(bid_price)
                .with_expiry(ttl)
                .with_reason(f"Spread bid {bid_price:.4f} ({reason})")
            )

        ask_size = min(self.params.order_size, self.params.max_position + inventory)
        if ask_size > ZERO and ZERO < ask_price < ONE:
            signals.append(
                Signal.sell(market.market_id, outcome.token_id, ask_size,
                            created_at=context.timestamp)
                .with_strategy(self.name)
                .with_intent(SignalIntent.ENTRY)
                .with_strength(SignalStrength.LOW)
                .with_limit_price(ask_price)
                .with_expiry(ttl)
                .with_reason(f"Spread ask {ask_price:.4f} ({reason})")
            )

        return signals

    def on_order_filled(self, order_id: str, filled_price: Decimal, filled_size: Decimal) -> None:
        # Inventory is read from the next context's positions
        logger.debug(
            "Spread order filled",
            strategy=self.name,
            order_id=order_id,
            filled_price=str(filled_price),
            filled_size=str(filled_size)
        )
