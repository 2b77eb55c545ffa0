"""Configuration validation utilities."""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Mapping, Optional

from ..errors import ConfigurationError


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


class ParameterType(str, Enum):
    """Value types a strategy parameter may declare."""
    INTEGER = "integer"
    DECIMAL = "decimal"
    BOOLEAN = "boolean"
    STRING = "string"


_MISSING = object()


@dataclass(frozen=True)
class ParameterDef:
    """Declared strategy parameter: type, default and inclusive bounds."""
    name: str
    param_type: ParameterType
    default: Any = _MISSING
    description: str = ""
    min: Optional[Any] = None
    max: Optional[Any] = None
    allowed_values: Optional[tuple] = None
    nullable: bool = False

    @property
    def required(self) -> bool:
        return self.default is _MISSING


def _coerce(definition: ParameterDef, value: Any) -> Any:
    """Convert a raw value to the declared type, raising ValueError on mismatch."""
    if value is None:
        if definition.nullable:
            return None
        raise ValueError("Must not be null")

    kind = definition.param_type
    if kind is ParameterType.BOOLEAN:
        if not isinstance(value, bool):
            raise ValueError("Must be a boolean")
        return value
    if kind is ParameterType.INTEGER:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Must be an integer")
        return value
    if kind is ParameterType.DECIMAL:
        if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
            raise ValueError("Must be a number")
        try:
            result = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError("Must be a number") from e
        if not result.is_finite():
            raise ValueError("Must be a finite number")
        return result
    if not isinstance(value, str):
        raise ValueError("Must be a string")
    return value


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_parameters(
        definitions: Mapping[str, ParameterDef],
        params: Mapping[str, Any]
    ) -> list[ValidationError]:
        """Validate raw strategy parameters against declared definitions."""
        errors = []

        for name, value in params.items():
            if name not in definitions:
                errors.append(ValidationError(
                    field=name,
                    message="Unknown parameter",
                    value=value
                ))

        for name, definition in definitions.items():
            if name not in params:
                if definition.required:
                    errors.append(ValidationError(
                        field=name,
                        message="Required parameter is missing",
                        value=None
                    ))
                continue

            raw = params[name]
            try:
                value = _coerce(definition, raw)
            except ValueError as e:
                errors.append(ValidationError(field=name, message=str(e), value=raw))
                continue

            if value is None:
                continue

            if definition.min is not None and value < definition.min:
                errors.append(ValidationError(
                    field=name,
                    message=f"Must be >= {definition.min}",
                    value=raw
                ))
            elif definition.max is not None and value > definition.max:
                errors.append(ValidationError(
                    field=name,
                    message=f"Must be <= {definition.max}",
                    value=raw
                ))
            elif definition.allowed_values is not None and value not in definition.allowed_values:
                errors.append(ValidationError(
                    field=name,
                    message=f"Must be one of {list(definition.allowed_values)}",
                    value=raw
                ))

        return errors

    @staticmethod
    def resolve_parameters(
        definitions: Mapping[str, ParameterDef],
        params: Mapping[str, Any],
        strategy_name: Optional[str] = None
    ) -> dict[str, Any]:
        """
        Validate and coerce parameters, filling in declared defaults.

        Raises:
            ConfigurationError: If any parameter is unknown, missing, mistyped
                or out of range
        """
        errors = ConfigValidator.validate_parameters(definitions, params)
        if errors:
            raise ConfigurationError(
                "Invalid strategy parameters",
                errors=errors,
                strategy_name=strategy_name
            )

        resolved = {}
        for name, definition in definitions.items():
            if name in params:
                resolved[name] = _coerce(definition, params[name])
            else:
                resolved[name] = definition.default
        return resolved

    @staticmethod
    def validate_risk_params(params: Mapping[str, Any]) -> list[ValidationError]:
        """Validate risk limit parameters."""
        errors = []

        decimal_limits = (
            "min_order_size", "max_order_size", "max_position_size",
            "max_position_per_market", "max_total_exposure", "max_daily_loss",
            "min_balance",
        )
        for name in decimal_limits:
            if name in params:
                value = params[name]
                if (isinstance(value, bool) or not isinstance(value, (int, float, Decimal))
                        or value < 0):
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-negative number",
                        value=value
                    ))

        for name in ("max_drawdown_pct", "max_slippage_pct"):
            if name in params:
                value = params[name]
                if (isinstance(value, bool) or not isinstance(value, (int, float, Decimal))
                        or value < 0 or value > 1):
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a fraction between 0 and 1",
                        value=value
                    ))

        if "max_open_orders" in params:
            value = params["max_open_orders"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="max_open_orders",
                    message="Must be a positive integer",
                    value=value
                ))

        if params.get("max_positions") is not None:
            value = params["max_positions"]
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                errors.append(ValidationError(
                    field="max_positions",
                    message="Must be a positive integer or null",
                    value=value
                ))

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        for name in ("blacklisted_markets", "whitelisted_markets"):
            if name in params:
                value = params[name]
                if (not isinstance(value, (list, tuple, set, frozenset))
                        or not all(isinstance(item, str) for item in value)):
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a list of market ids",
                        value=value
                    ))

        min_size = params.get("min_order_size")
        max_size = params.get("max_order_size")
        if (not errors and min_size is not None and max_size is not None
                and min_size > max_size):
            errors.append(ValidationError(
                field="min_order_size",
                message="Must not exceed max_order_size",
                value=min_size
            ))

        return errors

    @staticmethod
    def validate_engine_params(params: Mapping[str, Any]) -> list[ValidationError]:
        """Validate engine parameters."""
        errors = []

        for name in ("max_strategy_errors", "max_workers"):
            if name in params:
                value = params[name]
                if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        if "parallel_evaluation" in params and not isinstance(params["parallel_evaluation"], bool):
            errors.append(ValidationError(
                field="parallel_evaluation",
                message="Must be a boolean",
                value=params["parallel_evaluation"]
            ))

        return errors

    @staticmethod
    def validate_config(config: Mapping[str, Any]) -> list[ValidationError]:
        """Validate complete configuration."""
        errors = []

        if "risk" in config:
            errors.extend(ConfigValidator.validate_risk_params(config["risk"]))

        if "engine" in config:
            errors.extend(ConfigValidator.validate_engine_params(config["engine"]))

        return errors
