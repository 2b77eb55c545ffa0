"""Configuration error raised while validating strategy or risk parameters."""

from typing import TYPE_CHECKING, Any, Optional

from .base import ClobsterError

if TYPE_CHECKING:
    from ..config.validation import ValidationError


class ConfigurationError(ClobsterError):
    """
    Parameters are missing, of the wrong type or out of their domain.

    Carries every field-level problem found so the registrant can fix them
    in one pass.
    """

    def __init__(self, message: str, errors: Optional[list["ValidationError"]] = None,
                 strategy_name: Optional[str] = None,
                 context: Optional[dict[str, Any]] = None):
        super().__init__(message, context=context)
        self.errors = list(errors or [])
        self.strategy_name = strategy_name

    @property
    def fields(self) -> list[str]:
        """Names of the offending fields."""
        return [err.field for err in self.errors]

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        details = "; ".join(f"{err.field}: {err.message} (got: {err.value!r})" for err in self.errors)
        return f"{self.message}: {details}"
