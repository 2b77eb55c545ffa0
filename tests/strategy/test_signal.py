"""Tests for trade signals."""

import orjson
import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from clobster.strategy.signal import Signal, SignalIntent, SignalStrength, SignalType


class TestSignalConstruction:
    """Test named constructors and fluent builders."""

    def test_buy_and_sell_constructors(self):
        """Named constructors set the side and coerce the size."""
        buy = Signal.buy("m1", "m1-yes", 10)
        sell = Signal.sell("m1", "m1-yes", "2.5")

        assert buy.signal_type is SignalType.BUY
        assert buy.is_buy and not buy.is_sell
        assert buy.size == Decimal("10")
        assert sell.is_sell
        assert sell.size == Decimal("2.5")

    def test_defaults(self):
        """Fresh signals are medium-strength entries without price or expiry."""
        signal = Signal.buy("m1", "m1-yes", 1)

        assert signal.limit_price is None
        assert signal.strength is SignalStrength.MEDIUM
        assert signal.intent is SignalIntent.ENTRY
        assert signal.expiry is None
        assert signal.strategy_name is None
        assert len(signal.signal_id) == 32

    def test_fluent_builders_return_new_instances(self):
        """with_* never mutates the receiver."""
        base = Signal.buy("m1", "m1-yes", 5)
        priced = base.with_limit_price(0.42).with_strength(SignalStrength.STRONG).with_reason("test")

        assert base.limit_price is None
        assert priced.limit_price == Decimal("0.42")
        assert priced.strength is SignalStrength.STRONG
        assert priced.reason == "test"
        assert priced.signal_id == base.signal_id

    def test_signal_is_frozen(self):
        """Signals are immutable values."""
        signal = Signal.buy("m1", "m1-yes", 5)

        with pytest.raises(FrozenInstanceError):
            signal.size = Decimal("6")

    def test_opposite_side(self):
        """Buy and sell are each other's opposite."""
        assert SignalType.BUY.opposite is SignalType.SELL
        assert SignalType.SELL.opposite is SignalType.BUY


class TestSignalQueries:
    """Test expiry and notional helpers."""

    def test_expiry(self):
        """Signals expire strictly after created_at + expiry."""
        created = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        signal = Signal.buy("m1", "m1-yes", 5, created_at=created).with_expiry(timedelta(seconds=300))

        assert signal.expires_at() == created + timedelta(seconds=300)
        assert not signal.is_expired(created + timedelta(seconds=300))
        assert signal.is_expired(created + timedelta(seconds=301))

    def test_no_expiry_never_expires(self):
        """Without an expiry a signal stays live."""
        signal = Signal.buy("m1", "m1-yes", 5)

        assert signal.expires_at() is None
        assert not signal.is_expired(datetime(2100, 1, 1, tzinfo=timezone.utc))

    def test_notional(self):
        """Notional uses the limit price unless a price is given."""
        signal = Signal.buy("m1", "m1-yes", 10).with_limit_price("0.25")

        assert signal.notional() == Decimal("2.50")
        assert signal.notional("0.5") == Decimal("5.0")
        assert Signal.buy("m1", "m1-yes", 10).notional() is None


class TestSignalSerialization:
    """Test the execution-layer representation."""

    def test_to_dict(self):
        """Decimals become strings and enums their values."""
        created = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        signal = (
            Signal.sell("m1", "m1-yes", 5, created_at=created)
            .with_limit_price("0.6")
            .with_intent(SignalIntent.TAKE_PROFIT)
            .with_expiry(timedelta(minutes=1))
            .with_strategy("momentum")
        )

        data = signal.to_dict()

        assert data["signal_type"] == "sell"
        assert data["size"] == "5"
        assert data["limit_price"] == "0.6"
        assert data["intent"] == "take_profit"
        assert data["expiry"] == 60.0
        assert data["strategy_name"] == "momentum"
        assert data["created_at"] == "2024-01-01T12:00:00+00:00"

    def test_to_json(self):
        """JSON output parses back to the dict form."""
        signal = Signal.buy("m1", "m1-yes", 3).with_limit_price("0.1")

        assert orjson.loads(signal.to_json()) == signal.to_dict()
