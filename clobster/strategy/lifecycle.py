"""
Strategy lifecycle state machine.

CREATED -> INITIALIZED -> RUNNING <-> STOPPED, and SHUTDOWN from anywhere.
SHUTDOWN is terminal. Stopping is idempotent, as is shutting down twice.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import StrategyLifecycleError
from ..logging.config import get_lifecycle_logger, log_lifecycle_transition
from .base import Strategy, StrategyConfig

lifecycle_logger = get_lifecycle_logger(__name__)


class StrategyStatus(str, Enum):
    """Lifecycle states of a registered strategy."""
    CREATED = "created"
    INITIALIZED = "initialized"
    RUNNING = "running"
    STOPPED = "stopped"
    SHUTDOWN = "shutdown"


ALLOWED_TRANSITIONS: dict[StrategyStatus, frozenset[StrategyStatus]] = {
    StrategyStatus.CREATED: frozenset({StrategyStatus.INITIALIZED, StrategyStatus.SHUTDOWN}),
    StrategyStatus.INITIALIZED: frozenset({
        StrategyStatus.RUNNING, StrategyStatus.STOPPED, StrategyStatus.SHUTDOWN
    }),
    StrategyStatus.RUNNING: frozenset({StrategyStatus.STOPPED, StrategyStatus.SHUTDOWN}),
    StrategyStatus.STOPPED: frozenset({
        StrategyStatus.RUNNING, StrategyStatus.STOPPED, StrategyStatus.SHUTDOWN
    }),
    StrategyStatus.SHUTDOWN: frozenset({StrategyStatus.SHUTDOWN}),
}


def can_transition(current: StrategyStatus, target: StrategyStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


@dataclass
class StrategyHandle:
    """Engine-side record of one registered strategy."""
    strategy: Strategy
    config: StrategyConfig
    status: StrategyStatus = StrategyStatus.CREATED
    last_evaluated: Optional[datetime] = None
    signals_generated: int = 0
    signals_rejected: int = 0
    errors: int = 0
    consecutive_errors: int = 0
    status_history: list[StrategyStatus] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.strategy.name

    @property
    def is_running(self) -> bool:
        return self.status is StrategyStatus.RUNNING

    def transition(self, target: StrategyStatus, trigger: str,
                   context: Optional[dict] = None) -> None:
        """
        Move to `target`, logging the transition.

        Raises:
            StrategyLifecycleError: If the move is not allowed from the current state
        """
        current = self.status
        if not can_transition(current, target):
            raise StrategyLifecycleError(
                f"Cannot move strategy '{self.name}' from {current.value} to {target.value}",
                strategy_name=self.name,
                current_state=current.value,
                attempted_transition=target.value,
            )

        if current is target:
            return

        self.status_history.append(current)
        self.status = target
        log_lifecycle_transition(
            lifecycle_logger,
            strategy_name=self.name,
            from_state=current.value,
            to_state=target.value,
            trigger=trigger,
            context=context,
        )
