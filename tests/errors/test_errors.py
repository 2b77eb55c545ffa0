"""Tests for the error hierarchy."""

import pytest

from clobster.config.validation import ValidationError
from clobster.errors import (
    ClobsterError,
    ConfigurationError,
    DataQualityError,
    MalformedDataError,
    StrategyError,
    StrategyEvaluationError,
    StrategyLifecycleError,
    StrategyRegistrationError,
)


class TestErrorClassification:
    """Test error classification system."""

    @pytest.mark.parametrize("error_class", [
        ConfigurationError,
        DataQualityError,
        MalformedDataError,
        StrategyError,
        StrategyEvaluationError,
        StrategyLifecycleError,
        StrategyRegistrationError,
    ])
    def test_all_errors_share_root(self, error_class):
        """Every error can be caught as ClobsterError."""
        error = error_class("failure")

        assert isinstance(error, ClobsterError)
        assert error.message == "failure"
        assert error.context == {}

    def test_strategy_error_hierarchy(self):
        """Strategy failures derive from StrategyError."""
        for error_class in (StrategyEvaluationError, StrategyLifecycleError, StrategyRegistrationError):
            assert issubclass(error_class, StrategyError)

    def test_context_preserved(self):
        """Context dicts travel with the error."""
        error = StrategyRegistrationError("duplicate", strategy_name="a", context={"count": 2})

        assert error.strategy_name == "a"
        assert error.context == {"count": 2}


class TestConfigurationError:
    """Test field-level configuration errors."""

    def test_str_lists_every_field(self):
        """The message carries each field problem."""
        error = ConfigurationError("Invalid parameters", errors=[
            ValidationError(field="size", message="Must be >= 0", value=-1),
            ValidationError(field="period", message="Must be an integer", value="x"),
        ])

        assert error.fields == ["size", "period"]
        assert str(error) == (
            "Invalid parameters: size: Must be >= 0 (got: -1); "
            "period: Must be an integer (got: 'x')"
        )

    def test_str_without_fields(self):
        """A bare configuration error is just its message."""
        assert str(ConfigurationError("Bad file")) == "Bad file"


class TestStrategyErrors:
    """Test strategy failure details."""

    def test_evaluation_error_wraps_cause(self):
        """The original exception and its type are kept."""
        cause = ZeroDivisionError("division by zero")
        error = StrategyEvaluationError("evaluate failed", strategy_name="s", cause=cause)

        assert error.cause is cause
        assert error.error_type == "ZeroDivisionError"
        assert StrategyEvaluationError("no cause").error_type is None

    def test_lifecycle_error_states(self):
        """Lifecycle errors record the current and attempted state."""
        error = StrategyLifecycleError("illegal", strategy_name="s",
                                       current_state="shutdown", attempted_transition="running")

        assert error.current_state == "shutdown"
        assert error.attempted_transition == "running"

    def test_malformed_data_details(self):
        """Malformed data errors keep the raw payload and expected shape."""
        error = MalformedDataError("bad level", raw_data="[1]", expected_format="(price, size)")

        assert isinstance(error, DataQualityError)
        assert error.raw_data == "[1]"
        assert error.expected_format == "(price, size)"
