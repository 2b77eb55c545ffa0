"""Pytest configuration and shared fixtures."""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from clobster.orderbook import OrderBookDepth
from clobster.strategy.context import (
    MarketSnapshot,
    MarketStatus,
    OutcomeSnapshot,
    PositionSnapshot,
    StrategyContext,
)


@pytest.fixture
def snapshot_time() -> datetime:
    """Fixed snapshot timestamp."""
    return datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_market() -> Callable[..., MarketSnapshot]:
    """Factory for a binary market whose first outcome trades at `price`."""

    def _make(
        market_id: str,
        price: str,
        bid: Optional[str] = None,
        ask: Optional[str] = None,
        volume_24h: str = "10000",
        liquidity: str = "5000",
        status: MarketStatus = MarketStatus.ACTIVE,
    ) -> MarketSnapshot:
        yes_price = Decimal(price)
        return MarketSnapshot(
            market_id=market_id,
            question=f"Will {market_id} resolve yes?",
            status=status,
            outcomes=(
                OutcomeSnapshot(
                    token_id=f"{market_id}-yes",
                    name="Yes",
                    price=yes_price,
                    bid=Decimal(bid) if bid is not None else None,
                    ask=Decimal(ask) if ask is not None else None,
                ),
                OutcomeSnapshot(
                    token_id=f"{market_id}-no",
                    name="No",
                    price=Decimal("1") - yes_price,
                ),
            ),
            volume_24h=Decimal(volume_24h),
            liquidity=Decimal(liquidity),
        )

    return _make


@pytest.fixture
def make_context(snapshot_time) -> Callable[..., StrategyContext]:
    """Factory for a context with a default 1000 balance at the fixed snapshot time."""

    def _make(markets=(), positions=(), orders=(), order_books=(),
              available_balance: str = "1000", **kwargs) -> StrategyContext:
        kwargs.setdefault("timestamp", snapshot_time)
        return StrategyContext.build(
            markets=markets,
            positions=positions,
            orders=orders,
            order_books=order_books,
            available_balance=Decimal(available_balance),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_position() -> Callable[..., PositionSnapshot]:
    """Factory for a position on a market's Yes token."""

    def _make(market_id: str, size: str, avg_price: str = "0.50",
              current_price: str = "0.50") -> PositionSnapshot:
        return PositionSnapshot(
            market_id=market_id,
            token_id=f"{market_id}-yes",
            size=Decimal(size),
            avg_price=Decimal(avg_price),
            current_price=Decimal(current_price),
        )

    return _make


@pytest.fixture
def shallow_book() -> OrderBookDepth:
    """Two-level book: bids 0.09/0.08, asks 0.10/0.12, five shares per level."""
    return OrderBookDepth.from_levels(
        market_id="m1",
        token_id="m1-yes",
        bids=[("0.09", "5"), ("0.08", "5")],
        asks=[("0.10", "5"), ("0.12", "5")],
    )
