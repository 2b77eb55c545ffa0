"""Tests for the momentum strategy."""

import asyncio
import pytest
from decimal import Decimal

from clobster.config.defaults import MomentumParams
from clobster.errors import ConfigurationError
from clobster.strategy.base import StrategyConfig
from clobster.strategy.signal import SignalIntent, SignalStrength, SignalType
from clobster.strategy.strategies import MomentumStrategy


@pytest.fixture
def strategy():
    """Momentum over two periods with a 5% entry threshold."""
    return MomentumStrategy(params=MomentumParams(
        lookback_periods=2,
        entry_threshold=Decimal("0.05"),
        exit_threshold=Decimal("0.03"),
        position_size=Decimal("10"),
        max_positions=5,
    ))


def feed(strategy, make_context, make_market, prices_by_market):
    """Evaluate one context per step and return the signals of each step."""
    steps = max(len(prices) for prices in prices_by_market.values())
    results = []
    for i in range(steps):
        markets = [make_market(m, prices[i]) for m, prices in prices_by_market.items() if i < len(prices)]
        results.append(strategy.evaluate(make_context(markets=markets)))
    return results


class TestMomentumEntries:
    """Test buy signal generation."""

    def test_no_signal_until_window_full(self, strategy, make_context, make_market):
        """Momentum is undefined before lookback_periods + 1 prices."""
        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.45"]})

        assert results == [[], []]
        assert strategy.calculate_momentum("m1-yes") is None

    def test_single_buy_on_qualifying_momentum(self, strategy, make_context, make_market):
        """An 8% rise over the lookback emits exactly one buy."""
        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.41", "0.432", "0.44"]})

        signals = [s for step in results for s in step]
        assert len(signals) == 1
        signal = signals[0]
        assert signal.signal_type is SignalType.BUY
        assert signal.market_id == "m1"
        assert signal.token_id == "m1-yes"
        assert signal.size == Decimal("10")
        assert signal.limit_price == Decimal("0.432")
        assert signal.intent is SignalIntent.ENTRY
        assert signal.strategy_name == "momentum"
        assert strategy.calculate_momentum("m1-yes") == (Decimal("0.44") - Decimal("0.41")) / Decimal("0.41")

    def test_below_threshold_no_signal(self, strategy, make_context, make_market):
        """A 2% rise stays below the entry threshold."""
        results = feed(strategy, make_context, make_market, {"m1": ["0.50", "0.505", "0.51"]})

        assert results[-1] == []

    def test_strong_momentum_is_strong_signal(self, strategy, make_context, make_market):
        """Momentum of twice the threshold or more is a strong signal."""
        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.42", "0.44"]})

        assert results[-1][0].strength is SignalStrength.STRONG

    def test_position_cap_suppresses_new_entries(self, make_context, make_market):
        """Once max_positions markets are held, no further buys are emitted."""
        strategy = MomentumStrategy(params=MomentumParams(lookback_periods=1, max_positions=1))

        results = feed(strategy, make_context, make_market, {
            "m1": ["0.40", "0.50"],
            "m2": ["0.40", "0.50"],
        })

        buys = [s for s in results[-1] if s.is_buy]
        assert [s.market_id for s in buys] == ["m1"]
        assert strategy.entered_markets == {"m1"}

    def test_volume_filter(self, make_context, make_market):
        """Markets below min_volume are ignored entirely."""
        strategy = MomentumStrategy(params=MomentumParams(lookback_periods=1, min_volume=Decimal("50000")))

        for price in ("0.40", "0.50"):
            signals = strategy.evaluate(make_context(markets=[make_market("m1", price, volume_24h="100")]))

        assert signals == []

    def test_failed_entry_is_forgotten(self, make_context, make_market):
        """A buy that fails to execute frees its slot."""
        strategy = MomentumStrategy(params=MomentumParams(lookback_periods=1))
        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.50"]})

        strategy.on_signal_executed(results[-1][0], success=False)

        assert strategy.entered_markets == set()


class TestMomentumExits:
    """Test exit signal generation."""

    def test_reversal_exit(self, strategy, make_context, make_market):
        """Momentum reversing past -exit_threshold sells the entered market."""
        results = feed(strategy, make_context, make_market,
                       {"m1": ["0.40", "0.42", "0.44", "0.42", "0.40"]})

        assert results[2][0].is_buy
        exit_signal = results[4][0]
        assert exit_signal.is_sell
        assert exit_signal.intent is SignalIntent.EXIT
        assert exit_signal.size == Decimal("10")
        assert strategy.entered_markets == set()

    def test_stop_loss_exit(self, make_context, make_market):
        """Price falling below entry by stop_loss_pct exits with a stop loss."""
        strategy = MomentumStrategy(params=MomentumParams(
            lookback_periods=1, stop_loss_pct=Decimal("0.10")))

        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.50", "0.44"]})

        assert results[2][0].intent is SignalIntent.STOP_LOSS

    def test_take_profit_exit(self, make_context, make_market):
        """Price rising above entry by take_profit_pct takes profit."""
        strategy = MomentumStrategy(params=MomentumParams(
            lookback_periods=1, take_profit_pct=Decimal("0.20")))

        results = feed(strategy, make_context, make_market, {"m1": ["0.40", "0.50", "0.60"]})

        assert results[2][0].intent is SignalIntent.TAKE_PROFIT

    def test_failed_exit_restores_entry(self, strategy, make_context, make_market):
        """An exit that fails to execute keeps the market entered."""
        results = feed(strategy, make_context, make_market,
                       {"m1": ["0.40", "0.42", "0.44", "0.42", "0.40"]})

        strategy.on_signal_executed(results[4][0], success=False)

        assert strategy.entered_markets == {"m1"}


class TestMomentumConfiguration:
    """Test parameter handling through initialize."""

    def test_initialize_applies_parameters(self):
        """Raw config values are validated and coerced."""
        strategy = MomentumStrategy()
        asyncio.run(strategy.initialize(StrategyConfig(parameters={
            "lookback_periods": 3,
            "entry_threshold": 0.1,
        })))

        assert strategy.params.lookback_periods == 3
        assert strategy.params.entry_threshold == Decimal("0.1")
        assert strategy.params.position_size == Decimal("10")

    def test_initialize_rejects_bad_parameters(self):
        """Every invalid field is reported."""
        strategy = MomentumStrategy()

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(strategy.initialize(StrategyConfig(parameters={
                "lookback_periods": 0,
                "position_size": -5,
                "unknown_knob": 1,
            })))

        assert set(exc_info.value.fields) == {"lookback_periods", "position_size", "unknown_knob"}
        assert exc_info.value.strategy_name == "momentum"

    def test_metadata(self):
        """Metadata carries the registered name."""
        strategy = MomentumStrategy(name="momo")

        assert strategy.metadata().name == "momo"
        assert "lookback_periods" in strategy.parameters()
