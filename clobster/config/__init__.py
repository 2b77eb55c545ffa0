"""Configuration defaults, loading and validation."""

from .defaults import (
    DefaultConfig,
    EngineConfig,
    MeanReversionParams,
    MomentumParams,
    RiskConfig,
    SpreadParams,
    get_default_config,
)
from .loader import ConfigLoader
from .validation import ConfigValidator, ParameterDef, ParameterType, ValidationError

__all__ = [
    "ConfigLoader",
    "ConfigValidator",
    "DefaultConfig",
    "EngineConfig",
    "MeanReversionParams",
    "MomentumParams",
    "ParameterDef",
    "ParameterType",
    "RiskConfig",
    "SpreadParams",
    "ValidationError",
    "get_default_config",
]
