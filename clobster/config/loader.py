"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass, fields, is_dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from ..errors import ConfigurationError
from .defaults import DefaultConfig, EngineConfig, RiskConfig, get_default_config
from .validation import ConfigValidator

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ConfigLoader:
    """
    Manages configuration loading with 3-tier precedence.

    Priority order:
    1. Explicit overrides (highest priority)
    2. YAML files in the config directory (risk.yaml, engine.yaml, strategies.yaml)
    3. Dataclass defaults (lowest priority)
    """

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """
        Create a ConfigLoader instance.

        Without ``config_dir`` the repository's top-level ``config/`` directory is
        used. That directory is not part of the installed package, so installed
        deployments should pass their own directory; a missing directory is
        logged and every value falls back to the defaults.
        """
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"
        config_dir = Path(config_dir)

        if not config_dir.is_dir():
            logger.warning(
                "Config directory not found, using defaults",
                config_dir=str(config_dir)
            )

        return cls(
            config_dir=config_dir,
            defaults=get_default_config(),
        )

    def load_yaml(self, filename: str) -> dict[str, Any]:
        """Load one YAML file from the config directory, {} if absent or empty."""
        path = self.config_dir / filename

        if not path.exists():
            return {}

        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"{filename} must contain a mapping at top level",
                context={"path": str(path)}
            )
        return data

    def load_risk_config(self, overrides: Optional[dict[str, Any]] = None) -> RiskConfig:
        """Resolve the session's risk limits."""
        config = self._dataclass_to_dict(self.defaults.engine.risk)
        config = self._deep_merge(config, self.load_yaml("risk.yaml"))
        if overrides:
            config = self._deep_merge(config, overrides)
        return RiskConfig.from_dict(config)

    def load_engine_config(self, overrides: Optional[dict[str, Any]] = None) -> EngineConfig:
        """Resolve engine settings, including the nested risk limits."""
        config = self._dataclass_to_dict(self.defaults.engine)
        # Risk defaults are resolved by load_risk_config
        config.pop("risk")
        file_config = self.load_yaml("engine.yaml")
        config = self._deep_merge(config, file_config)
        if overrides:
            config = self._deep_merge(config, overrides)

        risk_overrides = config.pop("risk", None)
        errors = ConfigValidator.validate_engine_params(config)
        if errors:
            raise ConfigurationError("Invalid engine configuration", errors=errors)

        known = {f.name for f in fields(EngineConfig)} - {"risk"}
        unknown = sorted(set(config) - known)
        if unknown:
            raise ConfigurationError(f"Unknown engine parameters: {', '.join(unknown)}")

        return EngineConfig(risk=self.load_risk_config(risk_overrides), **config)

    def strategy_parameters(
        self,
        strategy_key: str,
        overrides: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        """
        Merge strategy parameters from strategies.yaml and overrides.

        Defaults are not included: strategies fill them in from their
        declared parameters during initialize.
        """
        file_config = self.load_yaml("strategies.yaml").get(strategy_key, {}) or {}
        params = dict(file_config)
        if overrides:
            params = self._deep_merge(params, overrides)
        return params

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if is_dataclass(obj):
            result = {}
            for f in fields(obj):
                value = getattr(obj, f.name)
                if is_dataclass(value):
                    result[f.name] = self._dataclass_to_dict(value)
                elif isinstance(value, frozenset):
                    result[f.name] = sorted(value)
                else:
                    result[f.name] = value
            return result
        return obj  # type: ignore[no-any-return]

    def _deep_merge(self, base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
