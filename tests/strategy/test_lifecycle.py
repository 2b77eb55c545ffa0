"""Tests for the strategy lifecycle state machine."""

import pytest

from clobster.errors import StrategyLifecycleError
from clobster.strategy.base import Strategy, StrategyConfig
from clobster.strategy.lifecycle import StrategyHandle, StrategyStatus, can_transition


class IdleStrategy(Strategy):
    default_name = "idle"

    def evaluate(self, context):
        return []


@pytest.fixture
def handle():
    return StrategyHandle(strategy=IdleStrategy(), config=StrategyConfig())


class TestTransitions:
    """Test the allowed transition table."""

    def test_happy_path(self, handle):
        """CREATED -> INITIALIZED -> RUNNING -> STOPPED -> RUNNING -> SHUTDOWN."""
        for target in (
            StrategyStatus.INITIALIZED,
            StrategyStatus.RUNNING,
            StrategyStatus.STOPPED,
            StrategyStatus.RUNNING,
            StrategyStatus.SHUTDOWN,
        ):
            handle.transition(target, "test")

        assert handle.status is StrategyStatus.SHUTDOWN
        assert handle.status_history == [
            StrategyStatus.CREATED,
            StrategyStatus.INITIALIZED,
            StrategyStatus.RUNNING,
            StrategyStatus.STOPPED,
            StrategyStatus.RUNNING,
        ]

    def test_cannot_run_before_initialize(self, handle):
        """A created strategy must be initialized first."""
        with pytest.raises(StrategyLifecycleError) as exc_info:
            handle.transition(StrategyStatus.RUNNING, "start")

        assert exc_info.value.current_state == "created"
        assert exc_info.value.attempted_transition == "running"
        assert exc_info.value.strategy_name == "idle"

    def test_stop_is_idempotent(self, handle):
        """Stopping a stopped strategy changes nothing."""
        handle.transition(StrategyStatus.INITIALIZED, "initialize")
        handle.transition(StrategyStatus.STOPPED, "stop")
        handle.transition(StrategyStatus.STOPPED, "stop")

        assert handle.status is StrategyStatus.STOPPED
        assert handle.status_history == [StrategyStatus.CREATED, StrategyStatus.INITIALIZED]

    def test_shutdown_is_terminal(self, handle):
        """Nothing but shutdown is allowed after shutdown."""
        handle.transition(StrategyStatus.SHUTDOWN, "shutdown")
        handle.transition(StrategyStatus.SHUTDOWN, "shutdown")

        for target in (StrategyStatus.INITIALIZED, StrategyStatus.RUNNING, StrategyStatus.STOPPED):
            with pytest.raises(StrategyLifecycleError):
                handle.transition(target, "revive")

    @pytest.mark.parametrize("current", list(StrategyStatus))
    def test_shutdown_reachable_from_every_state(self, current):
        """Shutdown is allowed from any state."""
        assert can_transition(current, StrategyStatus.SHUTDOWN)

    def test_running_requires_running_state(self, handle):
        """Only RUNNING handles report is_running."""
        assert not handle.is_running
        handle.transition(StrategyStatus.INITIALIZED, "initialize")
        handle.transition(StrategyStatus.RUNNING, "start")

        assert handle.is_running
        assert handle.name == "idle"
