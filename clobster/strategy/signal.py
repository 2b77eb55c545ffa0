"""
Trading signals produced by strategies.

A signal is a proposed trade intent: immutable once built and carrying no
execution outcome. Fluent ``with_*`` helpers return modified copies.
"""

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

import orjson

from ..orderbook.depth import Number, to_decimal
from ..utils.time import ensure_utc, get_market_time


class SignalType(str, Enum):
    """Trade direction, also used as the side of open orders."""
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "SignalType":
        return SignalType.SELL if self is SignalType.BUY else SignalType.BUY


class SignalStrength(str, Enum):
    """Conviction attached to a signal."""
    LOW = "low"
    MEDIUM = "medium"
    STRONG = "strong"


class SignalIntent(str, Enum):
    """Why the trade is proposed."""
    ENTRY = "entry"
    EXIT = "exit"
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"


def _new_signal_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Signal:
    """Proposed trade intent, not yet validated or executed."""
    signal_type: SignalType
    market_id: str
    token_id: str
    size: Decimal
    limit_price: Optional[Decimal] = None
    strength: SignalStrength = SignalStrength.MEDIUM
    reason: str = ""
    expiry: Optional[timedelta] = None
    intent: SignalIntent = SignalIntent.ENTRY
    strategy_name: Optional[str] = None
    signal_id: str = field(default_factory=_new_signal_id)
    created_at: datetime = field(default_factory=get_market_time)

    def __post_init__(self):
        object.__setattr__(self, "size", to_decimal(self.size))
        if self.limit_price is not None:
            object.__setattr__(self, "limit_price", to_decimal(self.limit_price))

    @classmethod
    def buy(cls, market_id: str, token_id: str, size: Number, **kwargs: Any) -> "Signal":
        return cls(signal_type=SignalType.BUY, market_id=market_id, token_id=token_id,
                   size=to_decimal(size), **kwargs)

    @classmethod
    def sell(cls, market_id: str, token_id: str, size: Number, **kwargs: Any) -> "Signal":
        return cls(signal_type=SignalType.SELL, market_id=market_id, token_id=token_id,
                   size=to_decimal(size), **kwargs)

    # Fluent construction

    def with_limit_price(self, price: Optional[Number]) -> "Signal":
        return replace(self, limit_price=None if price is None else to_decimal(price))

    def with_strength(self, strength: SignalStrength) -> "Signal":
        return replace(self, strength=strength)

    def with_reason(self, reason: str) -> "Signal":
        return replace(self, reason=reason)

    def with_expiry(self, expiry: Optional[timedelta]) -> "Signal":
        return replace(self, expiry=expiry)

    def with_intent(self, intent: SignalIntent) -> "Signal":
        return replace(self, intent=intent)

    def with_strategy(self, strategy_name: str) -> "Signal":
        return replace(self, strategy_name=strategy_name)

    def with_created_at(self, created_at: datetime) -> "Signal":
        return replace(self, created_at=ensure_utc(created_at))

    # Queries

    @property
    def is_buy(self) -> bool:
        return self.signal_type is SignalType.BUY

    @property
    def is_sell(self) -> bool:
        return self.signal_type is SignalType.SELL

    def expires_at(self) -> Optional[datetime]:
        if self.expiry is None:
            return None
        return ensure_utc(self.created_at) + self.expiry

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True once `now` is past created_at + expiry; signals without expiry never expire."""
        deadline = self.expires_at()
        if deadline is None:
            return False
        return get_market_time(now) > deadline

    def notional(self, price: Optional[Number] = None) -> Optional[Decimal]:
        """size * price, using the limit price unless one is given."""
        if price is None:
            price = self.limit_price
        if price is None:
            return None
        return self.size * to_decimal(price)

    def to_dict(self) -> dict[str, Any]:
        """Plain representation for the execution layer and logs."""
        data = asdict(self)
        data["signal_type"] = self.signal_type.value
        data["strength"] = self.strength.value
        data["intent"] = self.intent.value
        data["size"] = str(self.size)
        data["limit_price"] = None if self.limit_price is None else str(self.limit_price)
        data["expiry"] = None if self.expiry is None else self.expiry.total_seconds()
        data["created_at"] = ensure_utc(self.created_at).isoformat()
        return data

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())
