"""
Relay configuration.

Loaded from a YAML file into pydantic models. Secrets are read from the
environment variables the file names, never from the file itself.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "relay.yaml"


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 4000
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])


class AuthConfig(BaseModel):
    """Socket authentication. Off by default; any client may connect."""
    required: bool = False
    secret_env: str = "TH_SECRET_KEY"
    algorithm: str = "HS256"

    @property
    def secret(self) -> str | None:
        return os.environ.get(self.secret_env)


class LoggingConfig(BaseModel):
    level: str = "info"
    format: Literal["json", "text", "console"] = "json"


class RelayConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    redis_url: Optional[str] = None
    notify_secret_env: str = "TH_RELAY_NOTIFY_SECRET"
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @property
    def notify_secret(self) -> str | None:
        return os.environ.get(self.notify_secret_env) or None


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> RelayConfig:
    """Load relay configuration from YAML.

    A missing file is an error unless it is the default path, in which case
    the built-in defaults are used.
    """
    path = Path(path)
    if not path.exists():
        if str(path) == DEFAULT_CONFIG_PATH:
            return RelayConfig()
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    return RelayConfig.model_validate(raw)
