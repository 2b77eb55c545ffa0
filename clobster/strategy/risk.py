"""
Risk management for strategy signals.

The risk guard validates one signal against one RiskConfig and the
portfolio view carried by the context. Checks run in a fixed order and the
first failing check is reported as a RiskViolation value carrying the
measured and limit values. Rejections are data, not exceptions.

Check order:
    pre-checks: trading enabled, market allowed, limit price in (0, 1]
    1. order size bounds
    2. position size (per token, then per market, then distinct positions)
    3. total exposure
    4. open order count
    5. daily loss
    6. drawdown
    7. balance sufficiency and the min_balance floor
    8. slippage (market orders with a book deep enough to estimate)
"""

from dataclasses import asdict, dataclass
from decimal import Decimal
from typing import Any, Optional

from ..config.defaults import RiskConfig
from ..logging.config import get_risk_logger, log_risk_decision
from ..orderbook.depth import ZERO
from .context import StrategyContext
from .signal import Signal

ONE = Decimal("1")

risk_logger = get_risk_logger(__name__)


@dataclass(frozen=True)
class RiskViolation:
    """Base of all rejection reasons."""

    code = "risk_violation"

    def describe(self) -> str:
        return self.code

    def __str__(self) -> str:
        return self.describe()

    def to_dict(self) -> dict[str, Any]:
        data = {"code": self.code, "message": self.describe()}
        for key, value in asdict(self).items():
            data[key] = str(value) if isinstance(value, Decimal) else value
        return data


@dataclass(frozen=True)
class TradingDisabled(RiskViolation):
    code = "trading_disabled"

    def describe(self) -> str:
        return "Trading is disabled"


@dataclass(frozen=True)
class MarketBlacklisted(RiskViolation):
    market_id: str
    code = "market_blacklisted"

    def describe(self) -> str:
        return f"Market {self.market_id} is blacklisted"


@dataclass(frozen=True)
class MarketNotWhitelisted(RiskViolation):
    market_id: str
    code = "market_not_whitelisted"

    def describe(self) -> str:
        return f"Market {self.market_id} is not whitelisted"


@dataclass(frozen=True)
class InvalidPrice(RiskViolation):
    price: Decimal
    code = "invalid_price"

    def describe(self) -> str:
        return f"Limit price {self.price} outside (0, 1]"


@dataclass(frozen=True)
class OrderSizeTooSmall(RiskViolation):
    size: Decimal
    min: Decimal
    code = "order_size_too_small"

    def describe(self) -> str:
        return f"Order size {self.size} below min {self.min}"


@dataclass(frozen=True)
class OrderSizeExceeded(RiskViolation):
    size: Decimal
    max: Decimal
    code = "order_size_exceeded"

    def describe(self) -> str:
        return f"Order size {self.size} exceeds max {self.max}"


@dataclass(frozen=True)
class PositionSizeExceeded(RiskViolation):
    token_id: str
    current: Decimal
    requested: Decimal
    max: Decimal
    code = "position_size_exceeded"

    def describe(self) -> str:
        return (f"Position in {self.token_id} {self.current} + {self.requested} "
                f"would exceed max {self.max}")


@dataclass(frozen=True)
class MarketPositionExceeded(RiskViolation):
    market_id: str
    current: Decimal
    requested: Decimal
    max: Decimal
    code = "market_position_exceeded"

    def describe(self) -> str:
        return (f"Market {self.market_id} position {self.current} + {self.requested} "
                f"would exceed max {self.max}")


@dataclass(frozen=True)
class MaxPositionsReached(RiskViolation):
    current: int
    max: int
    code = "max_positions_reached"

    def describe(self) -> str:
        return f"Max positions {self.max} reached (current: {self.current})"


@dataclass(frozen=True)
class TotalExposureExceeded(RiskViolation):
    current: Decimal
    requested: Decimal
    max: Decimal
    code = "total_exposure_exceeded"

    def describe(self) -> str:
        return f"Total exposure {self.current} + {self.requested} would exceed max {self.max}"


@dataclass(frozen=True)
class TooManyOpenOrders(RiskViolation):
    current: int
    max: int
    code = "too_many_open_orders"

    def describe(self) -> str:
        return f"Open orders {self.current} at max {self.max}"


@dataclass(frozen=True)
class DailyLossExceeded(RiskViolation):
    daily_pnl: Decimal
    max: Decimal
    code = "daily_loss_exceeded"

    def describe(self) -> str:
        return f"Daily PnL {self.daily_pnl} beyond max loss {self.max}"


@dataclass(frozen=True)
class DrawdownExceeded(RiskViolation):
    drawdown: Decimal
    peak_balance: Decimal
    current_balance: Decimal
    max: Decimal
    code = "drawdown_exceeded"

    def describe(self) -> str:
        return (f"Drawdown {self.drawdown} from peak {self.peak_balance} to "
                f"{self.current_balance} exceeds max {self.max}")


@dataclass(frozen=True)
class InsufficientBalance(RiskViolation):
    available: Decimal
    required: Decimal
    code = "insufficient_balance"

    def describe(self) -> str:
        return f"Insufficient balance: {self.available} available, {self.required} required"


@dataclass(frozen=True)
class BelowMinBalance(RiskViolation):
    available: Decimal
    required: Decimal
    min: Decimal
    code = "below_min_balance"

    def describe(self) -> str:
        return (f"Spending {self.required} of {self.available} would leave less than "
                f"the {self.min} minimum balance")


@dataclass(frozen=True)
class SlippageExceeded(RiskViolation):
    slippage: Decimal
    max: Decimal
    code = "slippage_exceeded"

    def describe(self) -> str:
        return f"Estimated slippage {self.slippage} exceeds max {self.max}"


def estimate_price(signal: Signal, context: StrategyContext) -> Decimal:
    """
    Price used to value a signal.

    Limit price, else the touch on the token's book (ask for buys, bid for
    sells), else the outcome quote, else 1, the ceiling of an outcome token.
    """
    if signal.limit_price is not None:
        return signal.limit_price

    book = context.get_order_book(signal.token_id)
    if book is not None:
        touch = book.best_ask_price() if signal.is_buy else book.best_bid_price()
        if touch is not None:
            return touch

    outcome = context.find_outcome(signal.market_id, signal.token_id)
    if outcome is not None:
        quote = outcome.ask if signal.is_buy else outcome.bid
        if quote is not None:
            return quote
        return outcome.price

    return ONE


class RiskGuard:
    """Validates signals against a fixed RiskConfig."""

    def __init__(self, config: Optional[RiskConfig] = None):
        self._config = config or RiskConfig()

    @property
    def config(self) -> RiskConfig:
        return self._config

    def validate(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        """Return the first violated rule, or None if the signal passes every check."""
        violation = self._run_checks(signal, context)
        log_risk_decision(
            risk_logger,
            signal_id=signal.signal_id,
            strategy_name=signal.strategy_name,
            market_id=signal.market_id,
            accepted=violation is None,
            violation=violation.to_dict() if violation else None,
        )
        return violation

    def is_allowed(self, signal: Signal, context: StrategyContext) -> bool:
        return self.validate(signal, context) is None

    def required_balance_for(self, signal: Signal, context: StrategyContext) -> Decimal:
        """Cash a signal locks up: size * price for buys, nothing for sells."""
        if not signal.is_buy:
            return ZERO
        return signal.size * estimate_price(signal, context)

    def estimated_slippage(self, signal: Signal, context: StrategyContext) -> Optional[Decimal]:
        """Book-walk slippage for market orders, None for limit orders or unknown depth."""
        if signal.limit_price is not None:
            return None
        book = context.get_order_book(signal.token_id)
        if book is None:
            return None
        if signal.is_buy:
            return book.slippage_buy(signal.size)
        return book.slippage_sell(signal.size)

    def _run_checks(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        for check in (
            self._check_enabled,
            self._check_market_allowed,
            self._check_price_bounds,
            self._check_order_size,
            self._check_position_size,
            self._check_total_exposure,
            self._check_open_orders,
            self._check_daily_loss,
            self._check_drawdown,
            self._check_balance,
            self._check_slippage,
        ):
            violation = check(signal, context)
            if violation is not None:
                return violation
        return None

    def _check_enabled(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if not self._config.enabled:
            return TradingDisabled()
        return None

    def _check_market_allowed(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if signal.market_id in self._config.blacklisted_markets:
            return MarketBlacklisted(market_id=signal.market_id)
        if (self._config.whitelisted_markets
                and signal.market_id not in self._config.whitelisted_markets):
            return MarketNotWhitelisted(market_id=signal.market_id)
        return None

    def _check_price_bounds(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        price = signal.limit_price
        if price is not None and (price <= ZERO or price > ONE):
            return InvalidPrice(price=price)
        return None

    def _check_order_size(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if signal.size < self._config.min_order_size:
            return OrderSizeTooSmall(size=signal.size, min=self._config.min_order_size)
        if signal.size > self._config.max_order_size:
            return OrderSizeExceeded(size=signal.size, max=self._config.max_order_size)
        return None

    def _check_position_size(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if not signal.is_buy:
            return None

        token_position = context.position_size(signal.token_id)
        if token_position + signal.size > self._config.max_position_size:
            return PositionSizeExceeded(
                token_id=signal.token_id,
                current=token_position,
                requested=signal.size,
                max=self._config.max_position_size,
            )

        market_position = context.market_position_size(signal.market_id)
        if market_position + signal.size > self._config.max_position_per_market:
            return MarketPositionExceeded(
                market_id=signal.market_id,
                current=market_position,
                requested=signal.size,
                max=self._config.max_position_per_market,
            )

        max_positions = self._config.max_positions
        if max_positions is not None and token_position <= ZERO:
            held = sum(1 for p in context.positions.values() if p.size > ZERO)
            if held >= max_positions:
                return MaxPositionsReached(current=held, max=max_positions)
        return None

    def _check_total_exposure(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if not signal.is_buy:
            return None

        current = context.total_exposure()
        requested = signal.size * estimate_price(signal, context)
        if current + requested > self._config.max_total_exposure:
            return TotalExposureExceeded(
                current=current,
                requested=requested,
                max=self._config.max_total_exposure,
            )
        return None

    def _check_open_orders(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        open_count = len(context.open_orders())
        if open_count >= self._config.max_open_orders:
            return TooManyOpenOrders(current=open_count, max=self._config.max_open_orders)
        return None

    def _check_daily_loss(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        if context.daily_pnl < -self._config.max_daily_loss:
            return DailyLossExceeded(daily_pnl=context.daily_pnl, max=self._config.max_daily_loss)
        return None

    def _check_drawdown(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        drawdown = context.drawdown()
        if drawdown is not None and drawdown > self._config.max_drawdown_pct:
            return DrawdownExceeded(
                drawdown=drawdown,
                peak_balance=context.peak_balance,
                current_balance=context.total_value,
                max=self._config.max_drawdown_pct,
            )
        return None

    def _check_balance(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        required = self.required_balance_for(signal, context)
        if required > context.available_balance:
            return InsufficientBalance(available=context.available_balance, required=required)
        if required > ZERO and context.available_balance - required < self._config.min_balance:
            return BelowMinBalance(
                available=context.available_balance,
                required=required,
                min=self._config.min_balance,
            )
        return None

    def _check_slippage(self, signal: Signal, context: StrategyContext) -> Optional[RiskViolation]:
        slippage = self.estimated_slippage(signal, context)
        if slippage is not None and slippage > self._config.max_slippage_pct:
            return SlippageExceeded(slippage=slippage, max=self._config.max_slippage_pct)
        return None
