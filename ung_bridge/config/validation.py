"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse


@dataclass(frozen=True)
class ConfigIssue:
    """Represents a configuration validation problem."""
    field: str
    message: str
    value: Any


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates merged configuration dictionaries."""

    @staticmethod
    def validate_tool_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate CLI invocation parameters."""
        errors = []

        if "executable" in params:
            value = params["executable"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ConfigIssue(
                    field="tool.executable",
                    message="Must be a non-empty string",
                    value=value
                ))

        if "use_global" in params:
            value = params["use_global"]
            if not isinstance(value, bool):
                errors.append(ConfigIssue(
                    field="tool.use_global",
                    message="Must be a boolean",
                    value=value
                ))

        if params.get("process_timeout_seconds") is not None:
            value = params["process_timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ConfigIssue(
                    field="tool.process_timeout_seconds",
                    message="Must be a positive number or null",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_bus_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate command bus parameters."""
        errors = []

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ConfigIssue(
                    field="bus.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        if "max_retries" in params:
            value = params["max_retries"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ConfigIssue(
                    field="bus.max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_cache_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate entity cache parameters."""
        errors = []

        if "ttl_seconds" in params:
            value = params["ttl_seconds"]
            if not _is_number(value) or value < 0:
                errors.append(ConfigIssue(
                    field="cache.ttl_seconds",
                    message="Must be a non-negative number",
                    value=value
                ))

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ConfigIssue(
                field="cache.enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        return errors

    @staticmethod
    def validate_monitor_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate session monitor poll intervals."""
        errors = []

        for name in ("session_poll_seconds", "today_poll_seconds"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(ConfigIssue(
                        field=f"monitor.{name}",
                        message="Must be a positive number",
                        value=value
                    ))

        return errors

    @staticmethod
    def validate_http_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate remote API parameters."""
        errors = []

        if "base_url" in params:
            value = params["base_url"]
            parsed = urlparse(value) if isinstance(value, str) else None
            if parsed is None or parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(ConfigIssue(
                    field="http.base_url",
                    message="Must be an absolute http(s) URL",
                    value=value
                ))

        if "timeout_seconds" in params:
            value = params["timeout_seconds"]
            if not _is_number(value) or value <= 0:
                errors.append(ConfigIssue(
                    field="http.timeout_seconds",
                    message="Must be a positive number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ConfigIssue]:
        """Validate logging output parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in _LOG_LEVELS:
                errors.append(ConfigIssue(
                    field="logging.level",
                    message=f"Must be one of {', '.join(_LOG_LEVELS)}",
                    value=value
                ))

        for name in ("configure", "format_json", "include_timestamp", "include_caller"):
            if name in params and not isinstance(params[name], bool):
                errors.append(ConfigIssue(
                    field=f"logging.{name}",
                    message="Must be a boolean",
                    value=params[name]
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ConfigIssue]:
        """Validate complete configuration."""
        errors = []

        backend = config.get("backend", "cli")
        if backend not in ("cli", "http"):
            errors.append(ConfigIssue(
                field="backend",
                message="Must be 'cli' or 'http'",
                value=backend
            ))

        if "tool" in config:
            errors.extend(ConfigValidator.validate_tool_params(config["tool"]))
        if "bus" in config:
            errors.extend(ConfigValidator.validate_bus_params(config["bus"]))
        if "cache" in config:
            errors.extend(ConfigValidator.validate_cache_params(config["cache"]))
        if "monitor" in config:
            errors.extend(ConfigValidator.validate_monitor_params(config["monitor"]))
        if "http" in config:
            errors.extend(ConfigValidator.validate_http_params(config["http"]))
        if "logging" in config:
            errors.extend(ConfigValidator.validate_logging_params(config["logging"]))

        return errors
