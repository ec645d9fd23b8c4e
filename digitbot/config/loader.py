"""Configuration loader with 3-tier parameter precedence."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import structlog
import yaml

from .defaults import DefaultConfig, get_default_config

logger = structlog.get_logger(__name__)

ENGINE_CONFIG_FILE = "engine.yaml"


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

    def load_engine_config(self) -> dict[str, Any]:
        """Load engine overrides from engine.yaml, empty when absent."""
        engine_file = self.config_dir / ENGINE_CONFIG_FILE

        if not engine_file.exists():
            logger.debug("No engine config file", path=str(engine_file))
            return {}

        with open(engine_file) as f:
            engine_config = yaml.safe_load(f) or {}

        return engine_config.get("engine", {})  # type: ignore[no-any-return]

    def load_session_template(self) -> dict[str, Any]:
        """Load the session mapping shipped in engine.yaml, if any."""
        engine_file = self.config_dir / ENGINE_CONFIG_FILE
        if not engine_file.exists():
            return {}

        with open(engine_file) as f:
            engine_config = yaml.safe_load(f) or {}

        return engine_config.get("session", {})  # type: ignore[no-any-return]

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Runtime overrides (highest priority)
        2. engine.yaml
        3. Built-in defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_engine_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_settings(self, overrides: Optional[dict[str, Any]] = None) -> DefaultConfig:
        """Merge all tiers and return a typed settings object."""
        return DefaultConfig.from_dict(self.merge_config(overrides))

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
