"""
Order book depth snapshot and derived analytics.

Every query is a pure function of the snapshot. A query that cannot be
answered from the available depth (empty side, book too shallow for the
requested size) returns None instead of raising.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from ..errors import MalformedDataError
from ..utils.time import get_market_time

Number = Union[Decimal, int, float, str]

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal, going through str for floats."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


@dataclass(frozen=True)
class PriceLevel:
    """Single order book level (price, size)."""
    price: Decimal
    size: Decimal

    def __post_init__(self):
        object.__setattr__(self, "price", to_decimal(self.price))
        object.__setattr__(self, "size", to_decimal(self.size))

    def value(self) -> Decimal:
        """Notional value of the level."""
        return self.price * self.size


def _sum_value(levels: Sequence[PriceLevel], depth: int) -> Decimal:
    return sum((level.value() for level in levels[:max(depth, 0)]), ZERO)


def _sum_size(levels: Sequence[PriceLevel], depth: int) -> Decimal:
    return sum((level.size for level in levels[:max(depth, 0)]), ZERO)


def _vwap(levels: Sequence[PriceLevel], target_size: Decimal) -> Optional[Decimal]:
    """Walk levels until target_size is filled; None if the side is too shallow."""
    if target_size <= ZERO:
        return None

    remaining = target_size
    cost = ZERO
    for level in levels:
        take = min(remaining, level.size)
        cost += take * level.price
        remaining -= take
        if remaining <= ZERO:
            return cost / target_size

    return None


def _cumulative(levels: Sequence[PriceLevel]) -> list[tuple[Decimal, Decimal]]:
    running = ZERO
    result = []
    for level in levels:
        running += level.size
        result.append((level.price, running))
    return result


def _normalize_side(raw: Iterable, side: str, descending: bool) -> tuple[PriceLevel, ...]:
    merged: dict[Decimal, Decimal] = {}
    for i, entry in enumerate(raw):
        if isinstance(entry, PriceLevel):
            price, size = entry.price, entry.size
        else:
            try:
                price, size = to_decimal(entry[0]), to_decimal(entry[1])
            except (ValueError, IndexError, TypeError, ArithmeticError) as e:
                raise MalformedDataError(
                    f"Invalid {side} level at index {i}: {e}",
                    raw_data=str(entry)[:100],
                    expected_format="(price, size)"
                ) from e

        if not (price.is_finite() and size.is_finite()):
            raise MalformedDataError(
                f"Invalid {side} level at index {i}: price and size must be finite",
                raw_data=str(entry)[:100],
                expected_format="(price, size)"
            )
        if price <= ZERO:
            raise MalformedDataError(f"Invalid {side} level at index {i}: price must be positive, got {price}")
        if size < ZERO:
            raise MalformedDataError(f"Invalid {side} level at index {i}: size must be non-negative, got {size}")

        # Skip zero-size levels
        if size == ZERO:
            continue

        merged[price] = merged.get(price, ZERO) + size

    return tuple(
        PriceLevel(price=price, size=size)
        for price, size in sorted(merged.items(), key=lambda kv: kv[0], reverse=descending)
    )


@dataclass(frozen=True)
class OrderBookDepth:
    """
    Complete depth snapshot for one tradable token.

    Bids are sorted by price descending and asks ascending, each without
    duplicate prices. An empty side is valid and means no liquidity.
    Snapshots are replaced wholesale on every update.
    """
    market_id: str
    token_id: str
    bids: tuple[PriceLevel, ...] = ()
    asks: tuple[PriceLevel, ...] = ()
    hash: str = ""
    timestamp: datetime = field(default_factory=get_market_time)

    def __post_init__(self):
        object.__setattr__(self, "bids", tuple(self.bids))
        object.__setattr__(self, "asks", tuple(self.asks))
        self._check_sorted(self.bids, "bid", descending=True)
        self._check_sorted(self.asks, "ask", descending=False)

    @staticmethod
    def _check_sorted(levels: tuple[PriceLevel, ...], side: str, descending: bool) -> None:
        for prev, curr in zip(levels, levels[1:]):
            ordered = prev.price > curr.price if descending else prev.price < curr.price
            if not ordered:
                raise MalformedDataError(
                    f"{side} levels must be strictly {'descending' if descending else 'ascending'} "
                    f"by price, got {prev.price} before {curr.price}",
                    expected_format="sorted unique price levels"
                )

    @classmethod
    def from_levels(
        cls,
        market_id: str,
        token_id: str,
        bids: Iterable = (),
        asks: Iterable = (),
        hash: str = "",
        timestamp: Optional[datetime] = None
    ) -> "OrderBookDepth":
        """
        Build a snapshot from raw (price, size) pairs.

        Converts to Decimal, drops zero-size levels, merges duplicate
        prices and sorts each side.

        Raises:
            MalformedDataError: If a level is not a (price, size) pair, has a
                non-positive price or a negative size
        """
        return cls(
            market_id=market_id,
            token_id=token_id,
            bids=_normalize_side(bids, "bid", descending=True),
            asks=_normalize_side(asks, "ask", descending=False),
            hash=hash,
            timestamp=get_market_time(timestamp),
        )

    # Top of book

    def best_bid(self) -> Optional[PriceLevel]:
        return self.bids[0] if self.bids else None

    def best_ask(self) -> Optional[PriceLevel]:
        return self.asks[0] if self.asks else None

    def best_bid_price(self) -> Optional[Decimal]:
        level = self.best_bid()
        return level.price if level else None

    def best_ask_price(self) -> Optional[Decimal]:
        level = self.best_ask()
        return level.price if level else None

    def mid_price(self) -> Optional[Decimal]:
        """Average of best bid and best ask, None unless both sides are present."""
        bid, ask = self.best_bid_price(), self.best_ask_price()
        if bid is None or ask is None:
            return None
        return (bid + ask) / 2

    def spread(self) -> Optional[Decimal]:
        bid, ask = self.best_bid_price(), self.best_ask_price()
        if bid is None or ask is None:
            return None
        return ask - bid

    def spread_percent(self) -> Optional[Decimal]:
        """Spread as a percentage of the mid price."""
        spread = self.spread()
        mid = self.mid_price()
        if spread is None or not mid:
            return None
        return spread / mid * HUNDRED

    # Depth aggregates

    def bid_liquidity(self, depth: int) -> Decimal:
        """Sum of price*size over the first `depth` bid levels."""
        return _sum_value(self.bids, depth)

    def ask_liquidity(self, depth: int) -> Decimal:
        """Sum of price*size over the first `depth` ask levels."""
        return _sum_value(self.asks, depth)

    def total_liquidity(self, depth: int) -> Decimal:
        return self.bid_liquidity(depth) + self.ask_liquidity(depth)

    def bid_volume(self, depth: int) -> Decimal:
        return _sum_size(self.bids, depth)

    def ask_volume(self, depth: int) -> Decimal:
        return _sum_size(self.asks, depth)

    def imbalance(self, depth: int) -> Optional[Decimal]:
        """
        Normalized volume imbalance in [-1, 1].

        Positive values mean bid pressure. None when both sides are empty
        within `depth`.
        """
        bid_vol = self.bid_volume(depth)
        ask_vol = self.ask_volume(depth)
        total = bid_vol + ask_vol
        if total == ZERO:
            return None
        return (bid_vol - ask_vol) / total

    # Execution estimates

    def vwap_buy(self, size: Number) -> Optional[Decimal]:
        """Average price to buy `size` against the asks, None if the book is too shallow."""
        return _vwap(self.asks, to_decimal(size))

    def vwap_sell(self, size: Number) -> Optional[Decimal]:
        """Average price to sell `size` into the bids, None if the book is too shallow."""
        return _vwap(self.bids, to_decimal(size))

    def slippage_buy(self, size: Number) -> Optional[Decimal]:
        """Fractional cost of buying `size` above the best ask."""
        vwap = self.vwap_buy(size)
        best = self.best_ask_price()
        if vwap is None or not best:
            return None
        return (vwap - best) / best

    def slippage_sell(self, size: Number) -> Optional[Decimal]:
        """Fractional cost of selling `size` below the best bid."""
        vwap = self.vwap_sell(size)
        best = self.best_bid_price()
        if vwap is None or not best:
            return None
        return (best - vwap) / best

    def cumulative_bids(self) -> list[tuple[Decimal, Decimal]]:
        """(price, cumulative size) pairs walking down the bids."""
        return _cumulative(self.bids)

    def cumulative_asks(self) -> list[tuple[Decimal, Decimal]]:
        """(price, cumulative size) pairs walking up the asks."""
        return _cumulative(self.asks)

    @property
    def bid_depth(self) -> int:
        return len(self.bids)

    @property
    def ask_depth(self) -> int:
        return len(self.asks)

    @property
    def is_empty(self) -> bool:
        return not self.bids and not self.asks


@dataclass(frozen=True)
class OrderBookStats:
    """Headline metrics of one book, for reporting layers."""
    best_bid: Optional[Decimal]
    best_ask: Optional[Decimal]
    mid_price: Optional[Decimal]
    spread: Optional[Decimal]
    spread_percent: Optional[Decimal]
    bid_liquidity: Decimal
    ask_liquidity: Decimal
    imbalance: Optional[Decimal]
    bid_depth: int
    ask_depth: int

    @classmethod
    def from_book(cls, book: OrderBookDepth, depth: int = 5) -> "OrderBookStats":
        return cls(
            best_bid=book.best_bid_price(),
            best_ask=book.best_ask_price(),
            mid_price=book.mid_price(),
            spread=book.spread(),
            spread_percent=book.spread_percent(),
            bid_liquidity=book.bid_liquidity(depth),
            ask_liquidity=book.ask_liquidity(depth),
            imbalance=book.imbalance(depth),
            bid_depth=book.bid_depth,
            ask_depth=book.ask_depth,
        )
