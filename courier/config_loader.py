"""Config Loader - Loads client configuration from YAML.

Values may reference environment variables as ${ENV_VAR}; this keeps
tokens out of config files:

    host: https://api.example.com/v1
    default_headers:
      Authorization: Bearer ${API_TOKEN}
    timeout: 10
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from courier.models import ClientConfig


class ConfigError(Exception):
    """Raised when configuration loading fails."""


_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def load_client_config(config_path: Path) -> ClientConfig:
    """Load client configuration from YAML with ${ENV_VAR} substitution."""
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError("Config file must be a YAML mapping")

    raw_config = _substitute_env_vars(raw_config)

    try:
        return ClientConfig.model_validate(raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid config structure: {e}") from e


def _substitute_env_vars(value: Any) -> Any:
    """Recursively replace ${VAR} in strings. Unset variables are an error."""
    if isinstance(value, str):
        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            env_value = os.environ.get(name)
            if env_value is None:
                raise ConfigError(f"Environment variable not set: {name}")
            return env_value

        return _ENV_VAR_PATTERN.sub(replace, value)
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value
