"""Config Loader - Loads the client configuration.

Handles loading a YAML config file with environment variable substitution
and validating it into a ClientConfig. A missing default config file is not
an error: the built-in defaults apply.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml

from ghrest.errors import ConfigurationError
from ghrest.models import ClientConfig

CONFIG_ENV_VAR = "GHREST_CONFIG"
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ghrest"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_ACCESS_TOKEN_PATH = DEFAULT_CONFIG_DIR / "access_token"

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


class ConfigError(ConfigurationError):
    """Raised when configuration loading fails."""


def resolve_config_path(config_path: Path | None = None) -> Path:
    """Explicit path, then $GHREST_CONFIG, then the per-user default."""
    if config_path is not None:
        return config_path
    from_env = os.environ.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(from_env).expanduser()
    return DEFAULT_CONFIG_PATH


def load_client_config(config_path: Path | None = None) -> ClientConfig:
    """Load client configuration from YAML with ${ENV_VAR} substitution.

    An explicitly requested file must exist; the default location may be
    absent, in which case defaults are returned.
    """
    explicit = config_path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    path = resolve_config_path(config_path)

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return ClientConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if raw_config is None:
        return ClientConfig()
    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    try:
        return ClientConfig.model_validate(raw_config)
    except Exception as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def access_token_path(config: ClientConfig) -> Path:
    """Where the persisted token lives for this configuration."""
    if config.access_token_path is not None:
        return config.access_token_path.expanduser()
    return DEFAULT_ACCESS_TOKEN_PATH


def _substitute_env_vars(data: Any) -> Any:
    """Recursively substitute ${ENV_VAR} patterns in strings within data."""
    if isinstance(data, str):
        return _substitute_string(data)
    elif isinstance(data, dict):
        return {k: _substitute_env_vars(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]
    return data


def _substitute_string(s: str) -> str:
    """Substitute ${ENV_VAR} patterns. Raises ConfigError if env var is not set."""

    def replacer(match: re.Match) -> str:
        var_name = match.group(1)
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(f"Environment variable '{var_name}' is not set")
        return value

    return _ENV_PATTERN.sub(replacer, s)
