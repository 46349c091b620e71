"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ConfigurationError
from .defaults import (
    DefaultConfig,
    EnsemblePolicy,
    OutputPolicy,
    ValidationPolicy,
    get_default_config,
)
from .validation import PolicyValidator

POLICY_FILE = "policy.yaml"


@dataclass(frozen=True)
class Policies:
    """Typed policy set resolved for one prediction request."""
    validation: ValidationPolicy
    ensemble: EnsemblePolicy
    output: OutputPolicy


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_dir: Path
    defaults: DefaultConfig

    @classmethod
    def create(cls, config_dir: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_dir is None:
            config_dir = Path(__file__).parent.parent.parent / "config"

        return cls(
            config_dir=Path(config_dir),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load deployment-level overrides from ``policy.yaml``."""
        policy_file = self.config_dir / POLICY_FILE

        if not policy_file.exists():
            return {}

        with open(policy_file) as f:
            file_config = yaml.safe_load(f)

        if file_config is None:
            return {}
        if not isinstance(file_config, dict):
            raise ConfigurationError(
                f"{policy_file} must contain a mapping",
                parameter=str(policy_file),
                value=type(file_config).__name__,
            )
        return file_config

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-request overrides (highest priority)
        2. Deployment overrides from policy.yaml
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_policies(self, overrides: Optional[dict[str, Any]] = None) -> Policies:
        """
        Resolve typed policies after validating the merged configuration.

        Raises:
            ConfigurationError: If any merged policy value is invalid
        """
        config = self.merge_config(overrides)

        errors = PolicyValidator.validate_config(config)
        if errors:
            details = "; ".join(f"{err.field}: {err.message} (got: {err.value})" for err in errors)
            raise ConfigurationError(
                f"Invalid policy configuration: {details}",
                parameter=errors[0].field,
                value=errors[0].value,
                context={"errors": [err.field for err in errors]},
            )

        return Policies(
            validation=ValidationPolicy(**config["validation"]),
            ensemble=EnsemblePolicy(**config["ensemble"]),
            output=OutputPolicy(**config["output"]),
        )

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name in obj.__dataclass_fields__:
                value = getattr(obj, field_name)
                if hasattr(value, '__dataclass_fields__'):
                    result[field_name] = self._dataclass_to_dict(value)
                else:
                    result[field_name] = value
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
