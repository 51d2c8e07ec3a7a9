"""Configuration loader with 3-tier parameter precedence."""

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml

from ..errors import ValidationError
from .defaults import (
    BridgeSettings,
    BusParams,
    CacheParams,
    HttpParams,
    LoggingParams,
    MonitorParams,
    ToolParams,
    ViewParams,
    get_default_config,
)
from .validation import ConfigValidator

CONFIG_FILENAME = "ung_bridge.yaml"

_SECTIONS = {
    "tool": ToolParams,
    "bus": BusParams,
    "cache": CacheParams,
    "monitor": MonitorParams,
    "http": HttpParams,
    "views": ViewParams,
    "logging": LoggingParams,
}


@dataclass(frozen=True)
class ConfigLoader:
    """Manages configuration loading with 3-tier precedence."""

    config_path: Path
    defaults: BridgeSettings

    @classmethod
    def create(cls, config_path: Optional[Path] = None) -> "ConfigLoader":
        """Create a ConfigLoader instance."""
        if config_path is None:
            config_path = Path(__file__).parent.parent.parent / "config" / CONFIG_FILENAME

        return cls(
            config_path=Path(config_path),
            defaults=get_default_config(),
        )

    def load_file_config(self) -> dict[str, Any]:
        """Load overrides from the YAML settings file, if present."""
        if not self.config_path.exists():
            return {}

        with open(self.config_path) as f:
            file_config = yaml.safe_load(f)

        return file_config or {}

    def merge_config(self, overrides: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Merge configuration with 3-tier precedence.

        Priority order:
        1. Per-call overrides (highest priority)
        2. YAML settings file
        3. Global defaults (lowest priority)
        """
        config = self._dataclass_to_dict(self.defaults)

        config = self._deep_merge(config, self.load_file_config())

        if overrides:
            config = self._deep_merge(config, overrides)

        return config

    def load_settings(self, overrides: Optional[dict[str, Any]] = None) -> BridgeSettings:
        """Merge, validate and convert configuration into typed settings."""
        config = self.merge_config(overrides)

        issues = ConfigValidator.validate_config(config)
        if issues:
            first = issues[0]
            raise ValidationError(
                f"Invalid configuration: {first.field}: {first.message} (got: {first.value})",
                field=first.field,
                value=first.value,
                context={"issues": [f"{i.field}: {i.message}" for i in issues]},
            )

        return self._dict_to_settings(config)

    def _dict_to_settings(self, config: dict[str, Any]) -> BridgeSettings:
        """Build typed settings, ignoring unknown keys."""
        sections = {}
        for name, section_cls in _SECTIONS.items():
            values = config.get(name, {})
            known = {f.name for f in dataclasses.fields(section_cls)}
            kwargs = {k: v for k, v in values.items() if k in known}
            if "search_paths" in kwargs:
                kwargs["search_paths"] = tuple(kwargs["search_paths"])
            sections[name] = section_cls(**kwargs)

        return BridgeSettings(backend=config.get("backend", "cli"), **sections)

    def _dataclass_to_dict(self, obj: Any) -> dict[str, Any]:
        """Convert nested dataclasses to dictionary."""
        if hasattr(obj, '__dataclass_fields__'):
            result = {}
            for field_name, _field in obj.__dataclass_fields__.items():
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


def load_settings(
    config_path: Optional[Path] = None,
    overrides: Optional[dict[str, Any]] = None
) -> BridgeSettings:
    """Convenience wrapper around ConfigLoader.create().load_settings()."""
    return ConfigLoader.create(config_path).load_settings(overrides)
