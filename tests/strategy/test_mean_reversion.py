"""Tests for the mean reversion strategy."""

import asyncio
import pytest
from decimal import Decimal

from clobster.config.defaults import MeanReversionParams
from clobster.errors import ConfigurationError
from clobster.strategy.base import StrategyConfig
from clobster.strategy.signal import SignalIntent, SignalType
from clobster.strategy.strategies import MeanReversionStrategy

# Alternating prices give a mean of 0.50 and a sample stdev of about 0.0205
OSCILLATING = ["0.48", "0.52"] * 10


@pytest.fixture
def strategy():
    """Window of 20 with entry at z <= -2 and exit within 0.5 of the mean."""
    return MeanReversionStrategy(params=MeanReversionParams(
        window_size=20,
        min_samples=10,
        entry_z_score=Decimal("2.0"),
        exit_z_score=Decimal("0.5"),
        position_size=Decimal("10"),
    ))


def run(strategy, make_context, make_market, prices, market_id="m1"):
    return [strategy.evaluate(make_context(markets=[make_market(market_id, p)])) for p in prices]


class TestMeanReversion:
    """Test entry and exit around the rolling mean."""

    def test_quiet_during_warmup_and_normal_oscillation(self, strategy, make_context, make_market):
        """Nothing is emitted before min_samples or within one stdev."""
        results = run(strategy, make_context, make_market, OSCILLATING)

        assert all(step == [] for step in results)

    def test_buy_on_deep_deviation_then_sell_on_reversion(self, strategy, make_context, make_market):
        """z of about -2.4 buys, a return to z of about 0.07 sells the held position."""
        run(strategy, make_context, make_market, OSCILLATING)

        z = strategy.z_score("m1-yes", Decimal("0.45"))
        assert z < Decimal("-2.3")

        entry = run(strategy, make_context, make_market, ["0.45"])[0]
        assert len(entry) == 1
        assert entry[0].signal_type is SignalType.BUY
        assert entry[0].limit_price == Decimal("0.45")
        assert entry[0].intent is SignalIntent.ENTRY
        assert strategy.entered_markets == {"m1"}

        z = strategy.z_score("m1-yes", Decimal("0.50"))
        assert abs(z) <= Decimal("0.5")

        exit_signals = run(strategy, make_context, make_market, ["0.50"])[0]
        assert len(exit_signals) == 1
        assert exit_signals[0].signal_type is SignalType.SELL
        assert exit_signals[0].intent is SignalIntent.EXIT
        assert strategy.entered_markets == set()

    def test_held_position_stays_open_away_from_mean(self, strategy, make_context, make_market):
        """No exit while the price is still far from the mean."""
        run(strategy, make_context, make_market, OSCILLATING + ["0.45"])

        assert run(strategy, make_context, make_market, ["0.46"]) == [[]]
        assert strategy.entered_markets == {"m1"}

    def test_rich_prices_are_not_shorted(self, strategy, make_context, make_market):
        """A deviation above the mean emits nothing."""
        run(strategy, make_context, make_market, OSCILLATING)

        assert run(strategy, make_context, make_market, ["0.56"]) == [[]]

    def test_flat_window_has_no_z_score(self, strategy, make_context, make_market):
        """Zero variance leaves z undefined and the strategy idle."""
        run(strategy, make_context, make_market, ["0.50"] * 15)

        assert strategy.z_score("m1-yes", Decimal("0.40")) is None
        assert run(strategy, make_context, make_market, ["0.40"]) == [[]]

    def test_failed_entry_is_forgotten(self, strategy, make_context, make_market):
        """A buy that fails to execute frees the market."""
        run(strategy, make_context, make_market, OSCILLATING)
        entry = run(strategy, make_context, make_market, ["0.45"])[0][0]

        strategy.on_signal_executed(entry, success=False)

        assert strategy.entered_markets == set()


class TestMeanReversionConfiguration:
    """Test parameter consistency checks."""

    def test_min_samples_above_window_rejected(self):
        """min_samples cannot exceed the window it is drawn from."""
        strategy = MeanReversionStrategy()

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(strategy.initialize(StrategyConfig(parameters={
                "window_size": 5,
                "min_samples": 10,
            })))

        assert exc_info.value.fields == ["min_samples"]

    def test_exit_band_must_be_inside_entry(self):
        """exit_z_score must be below entry_z_score."""
        strategy = MeanReversionStrategy()

        with pytest.raises(ConfigurationError) as exc_info:
            asyncio.run(strategy.initialize(StrategyConfig(parameters={
                "entry_z_score": 1.0,
                "exit_z_score": 1.5,
            })))

        assert exc_info.value.fields == ["exit_z_score"]

    def test_defaults_applied(self):
        """An empty parameter set uses the declared defaults."""
        strategy = MeanReversionStrategy()
        asyncio.run(strategy.initialize(StrategyConfig()))

        assert strategy.params == MeanReversionParams()
