"""
Strategy evaluation engine.

Orchestrates one decision cycle:
Context Snapshot → Running Strategies → Signals → Risk Guard → Accepted / Rejected

Strategies are evaluated in registration order. A strategy that raises
contributes no signals for the cycle; its fault is reported in the result
and the remaining strategies still run.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

import structlog

from ..config.defaults import EngineConfig
from ..errors import (
    ConfigurationError,
    StrategyEvaluationError,
    StrategyRegistrationError,
)
from ..utils.time import format_market_time
from .base import Strategy, StrategyConfig
from .context import StrategyContext
from .lifecycle import StrategyHandle, StrategyStatus
from .risk import RiskGuard, RiskViolation
from .signal import Signal

logger = structlog.get_logger(__name__)


@dataclass
class EvaluationResult:
    """Outcome of one evaluation cycle."""
    accepted: list[Signal] = field(default_factory=list)
    rejected: list[tuple[Signal, RiskViolation]] = field(default_factory=list)
    errors: list[StrategyEvaluationError] = field(default_factory=list)
    timestamp: Optional[datetime] = None

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def summary(self) -> dict[str, Any]:
        return {
            'accepted': len(self.accepted),
            'rejected': len(self.rejected),
            'errors': len(self.errors),
            'failed_strategies': [e.strategy_name for e in self.errors],
        }


class StrategyEngine:
    """
    Owns registered strategies and runs them against context snapshots.

    The engine holds the session's RiskGuard; every signal a strategy emits
    passes through it before being returned as accepted.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 risk_guard: Optional[RiskGuard] = None) -> None:
        self.config = config or EngineConfig()
        self._risk_guard = risk_guard or RiskGuard(self.config.risk)
        # Insertion order is registration order
        self._handles: dict[str, StrategyHandle] = {}
        self._risk_lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

        logger.info(
            "Strategy engine initialized",
            parallel_evaluation=self.config.parallel_evaluation,
            max_strategy_errors=self.config.max_strategy_errors
        )

    @property
    def risk_guard(self) -> RiskGuard:
        return self._risk_guard

    @property
    def strategies(self) -> list[str]:
        """Registered strategy names in registration order."""
        return list(self._handles)

    def get_handle(self, name: str) -> Optional[StrategyHandle]:
        return self._handles.get(name)

    # Lifecycle

    async def register(self, strategy: Strategy, config: Optional[StrategyConfig] = None,
                       start: bool = True) -> StrategyHandle:
        """
        Initialize a strategy and add it to the evaluation set.

        The strategy starts running immediately unless ``start`` is False or
        its config is disabled.

        Raises:
            StrategyRegistrationError: If a strategy with the same name is registered
            ConfigurationError: If the strategy rejects its parameters; it is
                not registered in that case
        """
        name = strategy.name
        if name in self._handles:
            raise StrategyRegistrationError(
                f"Strategy '{name}' is already registered",
                strategy_name=name
            )

        handle = StrategyHandle(strategy=strategy, config=config or StrategyConfig())

        try:
            await strategy.initialize(handle.config)
        except ConfigurationError as e:
            logger.error(
                "Strategy configuration rejected",
                strategy=name,
                error=str(e),
                fields=e.fields
            )
            raise

        # initialize may have yielded to another registration of the same name
        if name in self._handles:
            await strategy.shutdown()
            raise StrategyRegistrationError(
                f"Strategy '{name}' is already registered",
                strategy_name=name
            )

        handle.transition(StrategyStatus.INITIALIZED, "initialize")
        self._handles[name] = handle

        if start and handle.config.enabled:
            handle.transition(StrategyStatus.RUNNING, "register")

        logger.info(
            "Registered strategy",
            strategy=name,
            strategy_type=type(strategy).__name__,
            status=handle.status.value
        )
        return handle

    async def unregister(self, name: str) -> None:
        """Shut a strategy down and drop it from the engine."""
        await self.shutdown_strategy(name)
        del self._handles[name]
        logger.info("Unregistered strategy", strategy=name)

    async def update_config(self, name: str, config: StrategyConfig) -> None:
        """
        Replace a strategy's configuration.

        Changed parameters are re-validated through ``initialize``; on failure
        the previous configuration stays in place. Disabling a running
        strategy stops it.

        Raises:
            StrategyRegistrationError: If no strategy has that name
            ConfigurationError: If the strategy rejects the new parameters
        """
        handle = self._require(name)

        if config.parameters != handle.config.parameters:
            try:
                await handle.strategy.initialize(config)
            except ConfigurationError as e:
                logger.error(
                    "Strategy configuration update rejected",
                    strategy=name,
                    error=str(e),
                    fields=e.fields
                )
                raise

        handle.config = config
        if not config.enabled and handle.is_running:
            handle.transition(StrategyStatus.STOPPED, "update_config")

        logger.info(
            "Updated strategy configuration",
            strategy=name,
            enabled=config.enabled,
            min_signal_interval_secs=config.min_signal_interval_secs
        )

    def start_strategy(self, name: str) -> None:
        """
        Resume evaluating a strategy. Starting a running strategy is a no-op.

        Raises:
            StrategyRegistrationError: If no strategy has that name
            StrategyLifecycleError: If the strategy has been shut down
        """
        handle = self._require(name)
        if handle.is_running:
            return
        handle.transition(StrategyStatus.RUNNING, "start")
        handle.consecutive_errors = 0

    def stop_strategy(self, name: str) -> None:
        """Pause a strategy; takes effect from the next cycle."""
        handle = self._require(name)
        handle.transition(StrategyStatus.STOPPED, "stop")

    async def shutdown_strategy(self, name: str) -> None:
        """Run the strategy's shutdown hook and mark it terminal."""
        handle = self._require(name)
        if handle.status is StrategyStatus.SHUTDOWN:
            return

        context = None
        try:
            await handle.strategy.shutdown()
        except Exception as e:
            logger.error(
                "Strategy shutdown hook failed",
                strategy=name,
                error=str(e),
                error_type=type(e).__name__
            )
            context = {'shutdown_error': str(e)}

        handle.transition(StrategyStatus.SHUTDOWN, "shutdown", context=context)

    async def shutdown(self) -> None:
        """Shut down every registered strategy and release the worker pool."""
        for name in list(self._handles):
            await self.shutdown_strategy(name)

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        logger.info("Strategy engine shut down", strategies=len(self._handles))

    # Evaluation

    def evaluate(self, context: StrategyContext) -> EvaluationResult:
        """
        Run one cycle against a context snapshot.

        Never raises for strategy faults; they are reported in
        ``EvaluationResult.errors``.
        """
        result = EvaluationResult(timestamp=context.timestamp)

        # Strategies stopped during this cycle keep running until it completes
        handles = [
            h for h in self._handles.values()
            if h.is_running and self._is_due(h, context.timestamp)
        ]
        if not handles:
            return result

        outcomes = self._run_strategies(handles, context)

        with self._risk_lock:
            for handle, (signals, error) in zip(handles, outcomes):
                handle.last_evaluated = context.timestamp

                if error is not None:
                    result.errors.append(error)
                    self._record_failure(handle)
                    continue

                handle.consecutive_errors = 0
                handle.signals_generated += len(signals)

                for signal in signals:
                    # Callbacks route by this name, so it always names the emitter
                    if signal.strategy_name != handle.name:
                        signal = signal.with_strategy(handle.name)

                    violation = self._risk_guard.validate(signal, context)
                    if violation is None:
                        result.accepted.append(signal)
                    else:
                        result.rejected.append((signal, violation))
                        handle.signals_rejected += 1
                        # Rejected signals never execute
                        self._dispatch(handle, "on_signal_executed", signal, False)

        if result.errors:
            logger.warning(
                "Evaluation cycle completed with strategy errors",
                cycle_time=format_market_time(context.timestamp),
                **result.summary()
            )
        else:
            logger.debug(
                "Evaluation cycle completed",
                cycle_time=format_market_time(context.timestamp),
                **result.summary()
            )

        return result

    @staticmethod
    def _is_due(handle: StrategyHandle, now: datetime) -> bool:
        interval = handle.config.min_signal_interval_secs
        if interval <= 0 or handle.last_evaluated is None:
            return True
        return (now - handle.last_evaluated).total_seconds() >= interval

    def _run_strategies(
        self,
        handles: list[StrategyHandle],
        context: StrategyContext
    ) -> list[tuple[list[Signal], Optional[StrategyEvaluationError]]]:
        if self.config.parallel_evaluation and len(handles) > 1:
            executor = self._get_executor()
            # map yields in submission order
            return list(executor.map(lambda h: self._run_strategy(h, context), handles))
        return [self._run_strategy(h, context) for h in handles]

    def _run_strategy(
        self,
        handle: StrategyHandle,
        context: StrategyContext
    ) -> tuple[list[Signal], Optional[StrategyEvaluationError]]:
        """Evaluate one strategy, converting any fault into a StrategyEvaluationError."""
        try:
            signals = list(handle.strategy.evaluate(handle.config.filter_context(context)))
            for signal in signals:
                if not isinstance(signal, Signal):
                    raise TypeError(f"evaluate returned {type(signal).__name__}, expected Signal")
            return signals, None
        except Exception as e:
            logger.error(
                "Unexpected error evaluating strategy",
                strategy=handle.name,
                error=str(e),
                error_type=type(e).__name__
            )
            return [], StrategyEvaluationError(
                f"Strategy '{handle.name}' failed during evaluate: {e}",
                strategy_name=handle.name,
                cause=e,
                context={'timestamp': context.timestamp.isoformat()}
            )

    def _record_failure(self, handle: StrategyHandle) -> None:
        handle.errors += 1
        handle.consecutive_errors += 1

        limit = self.config.max_strategy_errors
        if handle.consecutive_errors >= limit:
            handle.transition(
                StrategyStatus.STOPPED,
                "error_threshold",
                context={'consecutive_errors': handle.consecutive_errors, 'limit': limit}
            )
            logger.warning(
                "Strategy stopped after repeated evaluation errors",
                strategy=handle.name,
                consecutive_errors=handle.consecutive_errors
            )

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.max_workers,
                thread_name_prefix="clobster-eval"
            )
        return self._executor

    # Callback forwarding

    def on_market_update(self, context: StrategyContext) -> None:
        """Forward a fresh snapshot to every running strategy."""
        for handle in list(self._handles.values()):
            if handle.is_running:
                self._dispatch(handle, "on_market_update", handle.config.filter_context(context))

    def notify_signal_executed(self, signal: Signal, success: bool) -> None:
        """Report an execution result to the strategy that produced the signal."""
        handle = self._route(signal.strategy_name, signal_id=signal.signal_id)
        if handle is not None:
            self._dispatch(handle, "on_signal_executed", signal, success)

    def notify_order_filled(self, strategy_name: str, order_id: str,
                            filled_price: Decimal, filled_size: Decimal) -> None:
        handle = self._route(strategy_name, order_id=order_id)
        if handle is not None:
            self._dispatch(handle, "on_order_filled", order_id, filled_price, filled_size)

    def notify_order_cancelled(self, strategy_name: str, order_id: str) -> None:
        handle = self._route(strategy_name, order_id=order_id)
        if handle is not None:
            self._dispatch(handle, "on_order_cancelled", order_id)

    def _route(self, strategy_name: Optional[str], **context: Any) -> Optional[StrategyHandle]:
        handle = self._handles.get(strategy_name) if strategy_name else None
        if handle is None or handle.status is StrategyStatus.SHUTDOWN:
            logger.warning(
                "Dropping callback for unknown or shut down strategy",
                strategy=strategy_name,
                **context
            )
            return None
        return handle

    def _dispatch(self, handle: StrategyHandle, callback: str, *args: Any) -> None:
        try:
            getattr(handle.strategy, callback)(*args)
        except Exception as e:
            logger.error(
                "Strategy callback failed",
                strategy=handle.name,
                callback=callback,
                error=str(e),
                error_type=type(e).__name__
            )

    def _require(self, name: str) -> StrategyHandle:
        handle = self._handles.get(name)
        if handle is None:
            raise StrategyRegistrationError(
                f"Strategy '{name}' is not registered",
                strategy_name=name
            )
        return handle

    def get_runtime_stats(self) -> dict[str, Any]:
        """Get per-strategy status and counters."""
        return {
            name: {
                'status': handle.status.value,
                'signals_generated': handle.signals_generated,
                'signals_rejected': handle.signals_rejected,
                'errors': handle.errors,
                'last_evaluated': format_market_time(handle.last_evaluated),
            }
            for name, handle in self._handles.items()
        }
