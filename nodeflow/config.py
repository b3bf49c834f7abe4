from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel

from .constants import (
    DEFAULT_ANTHROPIC_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_RUN_RETRIES,
)


class RedisConfig(BaseModel):
    """Configuration for the Redis status transport."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    channel_prefix: str = "nodeflow"


class TransportConfig(BaseModel):
    """Status channel transport settings."""

    backend: Literal["inmemory", "redis"] = "inmemory"
    redis: RedisConfig = RedisConfig()


class EngineConfig(BaseModel):
    """Run-level retry policy."""

    retries: int = DEFAULT_RUN_RETRIES
    backoff_base: float = 1.5
    backoff_jitter: float = 0.5


class ModelsConfig(BaseModel):
    """Default model name per vendor."""

    openai: str = DEFAULT_OPENAI_MODEL
    gemini: str = DEFAULT_GEMINI_MODEL
    anthropic: str = DEFAULT_ANTHROPIC_MODEL


class HttpConfig(BaseModel):
    timeout: float = DEFAULT_HTTP_TIMEOUT


class NodeflowConfig(BaseModel):
    """Top-level configuration model."""

    transport: TransportConfig = TransportConfig()
    database_url: Optional[str] = None
    encryption_key: Optional[str] = None
    engine: EngineConfig = EngineConfig()
    models: ModelsConfig = ModelsConfig()
    http: HttpConfig = HttpConfig()


def load_config(path: Optional[str] = None) -> NodeflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to NODEFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("NODEFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = NodeflowConfig(**data)
    else:
        config = NodeflowConfig()

    env_db_url = os.getenv("NODEFLOW_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_key = os.getenv("NODEFLOW_ENCRYPTION_KEY")
    if env_key:
        config.encryption_key = env_key
    return config
