"""Client settings loaded from an optional YAML file."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from .errors import ConfigError
from .target import DEFAULT_PORT

DEFAULT_CONNECT_TIMEOUT = 30
STDIN_QUEUE_SIZE = 10


class Settings(BaseModel):
    """Tunables read from the ``settings`` section of the config file."""

    model_config = ConfigDict(extra="forbid")

    default_port: int = DEFAULT_PORT
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    stdin_queue_size: int = STDIN_QUEUE_SIZE
    agent_socket: Optional[str] = None

    @field_validator("default_port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError(f"port {v} is out of range (1-65535)")
        return v

    @field_validator("connect_timeout", "stdin_queue_size")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from YAML; defaults when no file is given.

    Layout::

        settings:
          default_port: 22
          connect_timeout: 30
          stdin_queue_size: 10
          agent_socket: /run/user/1000/ssh-agent.sock
    """
    if config_path is None:
        return Settings()
    if not config_path.exists():
        raise ConfigError(f"Config file '{config_path}' does not exist")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config '{config_path}': {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Config '{config_path}' must be a mapping")

    try:
        return Settings(**(data.get("settings") or {}))
    except (TypeError, ValidationError) as e:
        raise ConfigError(f"Invalid settings in '{config_path}': {e}") from e
