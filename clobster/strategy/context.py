"""
Strategy context - the read-only snapshot handed to strategies.

One context is built per evaluation cycle and shared by every strategy in
that cycle. All collections are exposed as read-only mappings so no
strategy can mutate what the others see.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from ..orderbook.depth import ZERO, OrderBookDepth
from ..utils.time import get_market_time
from .signal import SignalType

HUNDRED = Decimal("100")


class MarketStatus(str, Enum):
    """Market trading status."""
    ACTIVE = "active"
    PAUSED = "paused"
    CLOSED = "closed"
    RESOLVED = "resolved"


class OrderStatus(str, Enum):
    """Open order status."""
    OPEN = "open"
    PARTIALLY_FILLED = "partially_filled"
    FILLED = "filled"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class OutcomeSnapshot:
    """One tradable outcome (token) of a market."""
    token_id: str
    name: str
    price: Decimal
    bid: Optional[Decimal] = None
    ask: Optional[Decimal] = None

    @property
    def spread(self) -> Optional[Decimal]:
        if self.bid is None or self.ask is None:
            return None
        return self.ask - self.bid

    @property
    def mid_price(self) -> Decimal:
        """Mid of bid/ask when both are quoted, else the last price."""
        if self.bid is None or self.ask is None:
            return self.price
        return (self.bid + self.ask) / 2


@dataclass(frozen=True)
class MarketSnapshot:
    """Read-only projection of a market and its outcomes."""
    market_id: str
    question: str = ""
    status: MarketStatus = MarketStatus.ACTIVE
    outcomes: tuple[OutcomeSnapshot, ...] = ()
    volume_24h: Decimal = ZERO
    liquidity: Decimal = ZERO
    end_date: Optional[datetime] = None

    def __post_init__(self):
        object.__setattr__(self, "outcomes", tuple(self.outcomes))

    @property
    def is_tradable(self) -> bool:
        return self.status is MarketStatus.ACTIVE

    @property
    def token_ids(self) -> list[str]:
        return [outcome.token_id for outcome in self.outcomes]

    def primary_outcome(self) -> Optional[OutcomeSnapshot]:
        """First outcome ("Yes" on binary markets)."""
        return self.outcomes[0] if self.outcomes else None

    def outcome(self, token_id: str) -> Optional[OutcomeSnapshot]:
        for outcome in self.outcomes:
            if outcome.token_id == token_id:
                return outcome
        return None

    def yes_price(self) -> Optional[Decimal]:
        return self.outcomes[0].price if self.outcomes else None

    def no_price(self) -> Optional[Decimal]:
        return self.outcomes[1].price if len(self.outcomes) > 1 else None


@dataclass(frozen=True)
class PositionSnapshot:
    """Current holding in one token."""
    market_id: str
    token_id: str
    size: Decimal
    avg_price: Decimal
    current_price: Decimal

    @property
    def current_value(self) -> Decimal:
        return self.size * self.current_price

    @property
    def unrealized_pnl(self) -> Decimal:
        return (self.current_price - self.avg_price) * self.size

    @property
    def pnl_percent(self) -> Decimal:
        cost = self.avg_price * self.size
        if cost == ZERO:
            return ZERO
        return self.unrealized_pnl / cost * HUNDRED


@dataclass(frozen=True)
class OrderSnapshot:
    """Resting order as reported by the execution layer."""
    order_id: str
    market_id: str
    token_id: str
    side: SignalType
    price: Decimal
    original_size: Decimal
    filled_size: Decimal = ZERO
    status: OrderStatus = OrderStatus.OPEN
    created_at: Optional[datetime] = None

    @property
    def remaining_size(self) -> Decimal:
        return self.original_size - self.filled_size

    @property
    def is_open(self) -> bool:
        return self.status in (OrderStatus.OPEN, OrderStatus.PARTIALLY_FILLED)

    def fill_percent(self) -> Decimal:
        if self.original_size == ZERO:
            return ZERO
        return self.filled_size / self.original_size * HUNDRED


def _freeze(mapping: Optional[Mapping]) -> Mapping:
    return MappingProxyType(dict(mapping or {}))


@dataclass(frozen=True)
class StrategyContext:
    """
    Immutable snapshot of markets, portfolio and order books for one cycle.

    Mappings are keyed by market id (markets), token id (positions,
    order_books) and order id (orders). Iteration follows insertion order
    but strategies must not rely on it.
    """
    timestamp: datetime = field(default_factory=get_market_time)
    markets: Mapping[str, MarketSnapshot] = field(default_factory=dict)
    positions: Mapping[str, PositionSnapshot] = field(default_factory=dict)
    orders: Mapping[str, OrderSnapshot] = field(default_factory=dict)
    order_books: Mapping[str, OrderBookDepth] = field(default_factory=dict)
    available_balance: Decimal = ZERO
    daily_pnl: Decimal = ZERO
    peak_balance: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, "timestamp", get_market_time(self.timestamp))
        for name in ("markets", "positions", "orders", "order_books"):
            object.__setattr__(self, name, _freeze(getattr(self, name)))

    @classmethod
    def build(
        cls,
        markets: Iterable[MarketSnapshot] = (),
        positions: Iterable[PositionSnapshot] = (),
        orders: Iterable[OrderSnapshot] = (),
        order_books: Iterable[OrderBookDepth] = (),
        available_balance: Decimal = ZERO,
        timestamp: Optional[datetime] = None,
        daily_pnl: Decimal = ZERO,
        peak_balance: Optional[Decimal] = None
    ) -> "StrategyContext":
        """Key snapshot sequences by their identifiers and build a context."""
        return cls(
            timestamp=get_market_time(timestamp),
            markets={m.market_id: m for m in markets},
            positions={p.token_id: p for p in positions},
            orders={o.order_id: o for o in orders},
            order_books={b.token_id: b for b in order_books},
            available_balance=available_balance,
            daily_pnl=daily_pnl,
            peak_balance=peak_balance,
        )

    def restricted_to(self, market_ids: Iterable[str]) -> "StrategyContext":
        """Copy of this context keeping only the given markets."""
        keep = set(market_ids)
        return replace(
            self,
            markets={k: v for k, v in self.markets.items() if k in keep},
        )

    def excluding(self, market_ids: Iterable[str]) -> "StrategyContext":
        """Copy of this context without the given markets."""
        drop = set(market_ids)
        return replace(
            self,
            markets={k: v for k, v in self.markets.items() if k not in drop},
        )

    # Markets

    def tradable_markets(self) -> list[MarketSnapshot]:
        return [m for m in self.markets.values() if m.is_tradable]

    def get_market(self, market_id: str) -> Optional[MarketSnapshot]:
        return self.markets.get(market_id)

    def get_order_book(self, token_id: str) -> Optional[OrderBookDepth]:
        return self.order_books.get(token_id)

    def find_outcome(self, market_id: str, token_id: str) -> Optional[OutcomeSnapshot]:
        market = self.markets.get(market_id)
        if market is None:
            return None
        return market.outcome(token_id)

    # Portfolio

    def get_position(self, token_id: str) -> Optional[PositionSnapshot]:
        return self.positions.get(token_id)

    def position_size(self, token_id: str) -> Decimal:
        position = self.positions.get(token_id)
        return position.size if position else ZERO

    def market_position_size(self, market_id: str) -> Decimal:
        """Total shares held across all outcomes of one market."""
        return sum((p.size for p in self.positions.values() if p.market_id == market_id), ZERO)

    def has_position_in_market(self, market_id: str) -> bool:
        return any(p.market_id == market_id and p.size > ZERO for p in self.positions.values())

    def total_exposure(self) -> Decimal:
        """Sum of size * current price over all positions."""
        return sum((p.current_value for p in self.positions.values()), ZERO)

    @property
    def total_value(self) -> Decimal:
        """Account value: free balance plus marked positions."""
        return self.available_balance + self.total_exposure()

    def drawdown(self) -> Optional[Decimal]:
        """Fractional decline from peak_balance to total_value, None without a peak."""
        if self.peak_balance is None or self.peak_balance <= ZERO:
            return None
        return (self.peak_balance - self.total_value) / self.peak_balance

    def open_orders(self) -> list[OrderSnapshot]:
        return [o for o in self.orders.values() if o.is_open]

    def orders_for_market(self, market_id: str) -> list[OrderSnapshot]:
        return [o for o in self.orders.values() if o.market_id == market_id]
