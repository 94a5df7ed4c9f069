"""mcp-link configuration loader."""

import os
import re
import typing
from dataclasses import fields
from pathlib import Path
from typing import Any

import yaml

from mcp_link.errors import create_error
from mcp_link.types import LogLevel, TransportVariant, ValidationIssue, ValidationResult

from .models import ConnectionConfig, LinkConfig


def resolve_env_vars(value: str) -> str:
    """Resolve environment variable references in string.

    Supports:
    - ${VAR} - Required, error if not set
    - ${VAR:-default} - With default value
    - ${VAR:?error message} - Required with custom error

    Args:
        value: String with potential env var references

    Returns:
        String with env vars resolved

    Raises:
        LinkError: If required var not set
    """
    pattern = r"\$\{([^}:]+)(?::([?-])([^}]*))?\}"

    def replacer(match: re.Match[str]) -> str:
        var_name = match.group(1)
        operator = match.group(2)  # '-' or '?' or None
        operand = match.group(3)  # default value or error message

        env_value = os.environ.get(var_name)

        if env_value is not None:
            return env_value

        if operator == "-":
            return operand or ""
        elif operator == "?":
            error_msg = operand or f"Required environment variable {var_name} not set"
            raise create_error("CONFIG_INVALID", detail=error_msg)
        else:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Required environment variable {var_name} not set",
            )

    return re.sub(pattern, replacer, value)


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _resolve_env_vars_recursive(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    elif isinstance(data, str):
        return resolve_env_vars(data)
    else:
        return data


class ConfigLoader:
    """Load and validate mcp-link configuration."""

    def __init__(self, logger: Any = None):
        """Initialize config loader.

        Args:
            logger: Optional LinkLogger instance
        """
        self._config: LinkConfig | None = None
        self._config_path: Path | None = None
        self._logger = logger

    def load(self, path: str | Path | None = None, use_defaults: bool = True) -> LinkConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. MCP_LINK_CONFIG_PATH environment variable
        2. ./mcp-link.yaml
        3. ~/.mcp-link/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Args:
            path: Optional path to config file
            use_defaults: If True, use default config when no file found

        Returns:
            Loaded LinkConfig instance

        Raises:
            LinkError: If file not found (when use_defaults=False) or invalid
        """
        if path is None:
            path = self._resolve_config_path()

        config_path = Path(path)

        if not config_path.exists():
            if use_defaults:
                if self._logger:
                    self._logger._log(
                        LogLevel.INFO, "config", "No config file found, using defaults"
                    )
                return self.load_from_dict({})
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Configuration file not found: {config_path}",
            )

        try:
            with config_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Invalid YAML in config file: {e}",
            ) from e

        data = _resolve_env_vars_recursive(data)

        return self.load_from_dict(data, config_path)

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> LinkConfig:
        """Load configuration from dictionary.

        Args:
            data: Configuration dictionary
            config_path: Optional path to config file (for tracking)

        Returns:
            Loaded LinkConfig instance

        Raises:
            LinkError: If configuration is invalid
        """
        validation = self.validate(data)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._dict_to_config(data)
        except Exception as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path

        if self._logger:
            self._logger._log(
                LogLevel.INFO,
                "config",
                f"Configuration loaded ({len(config.connections)} connections)",
            )

        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading.

        Args:
            data: Configuration dictionary

        Returns:
            ValidationResult with errors and warnings
        """
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        for key in data:
            if key not in {"connections", "logging"}:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )

        connections = data.get("connections", {})
        if not isinstance(connections, dict):
            errors.append(
                ValidationIssue(path="connections", message="connections must be a dictionary")
            )
            connections = {}

        variants = {v.value for v in TransportVariant}
        for name, conn in connections.items():
            path = f"connections.{name}"
            if not isinstance(conn, dict):
                errors.append(ValidationIssue(path=path, message="must be a dictionary"))
                continue

            url = conn.get("url")
            if not isinstance(url, str) or not url.strip():
                errors.append(ValidationIssue(path=f"{path}.url", message="url is required"))
            elif not re.match(r"^(https?|wss?)://", url):
                errors.append(
                    ValidationIssue(
                        path=f"{path}.url",
                        message="url must be an http(s) or ws(s) URL",
                    )
                )

            transport = conn.get("transport", TransportVariant.SSE.value)
            if transport not in variants:
                errors.append(
                    ValidationIssue(
                        path=f"{path}.transport",
                        message=f"transport must be one of {sorted(variants)}",
                    )
                )

            args = conn.get("args")
            if args is not None and not isinstance(args, (str, list)):
                errors.append(
                    ValidationIssue(path=f"{path}.args", message="args must be a string or list")
                )

            env = conn.get("env")
            if env is not None and not isinstance(env, (str, dict)):
                errors.append(
                    ValidationIssue(
                        path=f"{path}.env",
                        message="env must be a mapping or a JSON string",
                    )
                )

            for timeout_key in ("connect_timeout", "request_timeout"):
                if timeout_key in conn:
                    value = conn[timeout_key]
                    if not isinstance(value, (int, float)) or value <= 0:
                        errors.append(
                            ValidationIssue(
                                path=f"{path}.{timeout_key}",
                                message=f"{timeout_key} must be a positive number",
                            )
                        )

            reconnect = conn.get("reconnect", {})
            if isinstance(reconnect, dict):
                attempts = reconnect.get("max_attempts", 0)
                if not isinstance(attempts, int) or attempts < 0:
                    errors.append(
                        ValidationIssue(
                            path=f"{path}.reconnect.max_attempts",
                            message="max_attempts must be a non-negative integer",
                        )
                    )

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)

    def get(self) -> LinkConfig:
        """Get current configuration.

        Raises:
            LinkError: If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get("MCP_LINK_CONFIG_PATH")
        if env_path:
            return Path(env_path)

        local_path = Path("mcp-link.yaml")
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".mcp-link" / "config.yaml"
        if home_path.exists():
            return home_path

        return local_path

    def _dict_to_config(self, data: dict[str, Any]) -> LinkConfig:
        kwargs: dict[str, Any] = {}

        for f in fields(LinkConfig):
            if f.name in data:
                kwargs[f.name] = self._convert_field(f.type, data[f.name])

        config = LinkConfig(**kwargs)

        # Connection names default to their key in the mapping
        for name, conn in config.connections.items():
            if isinstance(conn, ConnectionConfig) and conn.name == "default":
                conn.name = name

        return config

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert field value to appropriate type.

        Args:
            field_type: Expected field type
            value: Value to convert

        Returns:
            Converted value
        """
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            if args:
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            if not isinstance(value, dict):
                return value
            args = typing.get_args(field_type)
            if args and len(args) == 2:
                value_type = args[1]
                return {k: self._convert_field(value_type, v) for k, v in value.items()}
            return value

        if hasattr(field_type, "__dataclass_fields__"):
            if isinstance(value, dict):
                kwargs = {}
                for f in fields(field_type):
                    if f.name in value:
                        kwargs[f.name] = self._convert_field(f.type, value[f.name])
                return field_type(**kwargs)
            return value

        # Enums
        if hasattr(field_type, "__mro__") and any(
            base.__name__ == "Enum" for base in field_type.__mro__
        ):
            if isinstance(value, str):
                return field_type(value)
            return value

        return value


# Convenience singleton
_default_loader: ConfigLoader | None = None


def get_config_loader() -> ConfigLoader:
    """Get default config loader singleton."""
    global _default_loader  # noqa: PLW0603
    if _default_loader is None:
        _default_loader = ConfigLoader()
    return _default_loader


def load_config(path: str | Path | None = None) -> LinkConfig:
    """Convenience function to load config.

    Args:
        path: Optional path to config file

    Returns:
        Loaded LinkConfig instance
    """
    return get_config_loader().load(path)
