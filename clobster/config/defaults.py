"""Default configuration parameters for the strategy core."""

from dataclasses import dataclass, field, fields
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..errors import ConfigurationError
from .validation import ConfigValidator


@dataclass(frozen=True)
class RiskConfig:
    """
    Risk limits applied by the risk guard to every signal.

    Sizes are in shares, exposure, balance and loss in quote currency.
    The *_pct limits are fractions: 0.20 means 20%.
    """
    enabled: bool = True                                        # Master switch for trading

    # Order size bounds
    min_order_size: Decimal = Decimal("1")
    max_order_size: Decimal = Decimal("100")

    # Position limits
    max_position_size: Decimal = Decimal("500")                 # Per token
    max_position_per_market: Decimal = Decimal("1000")          # Across outcomes of one market
    max_positions: Optional[int] = None                         # Distinct token positions; None = unlimited

    # Portfolio limits
    max_total_exposure: Decimal = Decimal("1000")
    max_open_orders: int = 20
    max_daily_loss: Decimal = Decimal("100")
    max_drawdown_pct: Decimal = Decimal("0.20")
    min_balance: Decimal = Decimal("0")                         # Cash floor a buy must leave behind

    # Execution quality
    max_slippage_pct: Decimal = Decimal("0.05")

    # Market filters
    blacklisted_markets: frozenset[str] = field(default_factory=frozenset)
    whitelisted_markets: frozenset[str] = field(default_factory=frozenset)  # Empty = all allowed

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "RiskConfig":
        """
        Build a RiskConfig from loosely typed values (e.g. parsed YAML).

        Raises:
            ConfigurationError: If a value is unknown, mistyped or out of domain
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise ConfigurationError(f"Unknown risk parameters: {', '.join(unknown)}")

        errors = ConfigValidator.validate_risk_params(params)
        if errors:
            raise ConfigurationError("Invalid risk configuration", errors=errors)

        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in params:
                continue
            value = params[f.name]
            if f.name in ("blacklisted_markets", "whitelisted_markets"):
                kwargs[f.name] = frozenset(value)
            elif f.name in ("enabled", "max_open_orders", "max_positions"):
                kwargs[f.name] = value
            else:
                kwargs[f.name] = value if isinstance(value, Decimal) else Decimal(str(value))
        return cls(**kwargs)


@dataclass(frozen=True)
class EngineConfig:
    """Strategy engine configuration."""
    risk: RiskConfig = field(default_factory=RiskConfig)
    max_strategy_errors: int = 5          # Consecutive evaluate faults before a strategy is stopped
    parallel_evaluation: bool = False     # Fan strategies out to a thread pool within a cycle
    max_workers: int = 4


@dataclass(frozen=True)
class MomentumParams:
    """Momentum strategy parameters."""
    lookback_periods: int = 10
    entry_threshold: Decimal = Decimal("0.05")       # Min momentum to enter
    exit_threshold: Decimal = Decimal("0.03")        # Reversal past -exit_threshold exits
    position_size: Decimal = Decimal("10")
    max_positions: int = 5
    min_volume: Decimal = Decimal("0")               # 24h volume filter
    stop_loss_pct: Optional[Decimal] = None
    take_profit_pct: Optional[Decimal] = None


@dataclass(frozen=True)
class MeanReversionParams:
    """Mean reversion strategy parameters."""
    window_size: int = 20
    min_samples: int = 10
    entry_z_score: Decimal = Decimal("2.0")
    exit_z_score: Decimal = Decimal("0.5")
    position_size: Decimal = Decimal("10")
    max_positions: int = 5


@dataclass(frozen=True)
class SpreadParams:
    """Spread (market making) strategy parameters."""
    min_spread: Decimal = Decimal("0.02")            # Min ask - bid to quote
    edge: Decimal = Decimal("0.01")                  # Improvement inside the touch
    skew_factor: Decimal = Decimal("0")              # Price shift per unit of inventory
    order_size: Decimal = Decimal("5")
    max_position: Decimal = Decimal("50")
    min_liquidity: Decimal = Decimal("0")
    quote_ttl_seconds: int = 300


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    engine: EngineConfig
    momentum: MomentumParams
    mean_reversion: MeanReversionParams
    spread: SpreadParams


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        engine=EngineConfig(),
        momentum=MomentumParams(),
        mean_reversion=MeanReversionParams(),
        spread=SpreadParams(),
    )
