"""Tests for configuration loading."""

import pytest

from nodeflow.config import load_config
from nodeflow.constants import DEFAULT_OPENAI_MODEL, DEFAULT_RUN_RETRIES
from nodeflow.transports import InMemoryTransport, get_transport
from nodeflow.transports.redis import RedisTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "NODEFLOW_CONFIG",
        "NODEFLOW_DATABASE_URL",
        "DATABASE_URL",
        "NODEFLOW_ENCRYPTION_KEY",
        "NODEFLOW_TRANSPORT",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_no_file(tmp_path):
    config = load_config(str(tmp_path / "absent.yaml"))
    assert config.transport.backend == "inmemory"
    assert config.database_url is None
    assert config.encryption_key is None
    assert config.engine.retries == DEFAULT_RUN_RETRIES
    assert config.models.openai == DEFAULT_OPENAI_MODEL


def test_load_config_from_env(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
transport:
  backend: redis
  redis:
    host: testhost
    port: 1234
engine:
  retries: 5
models:
  gemini: gemini-1.5-pro
http:
  timeout: 5
"""
    )
    monkeypatch.setenv("NODEFLOW_CONFIG", str(config_path))

    config = load_config()
    assert config.transport.backend == "redis"
    assert config.transport.redis.host == "testhost"
    assert config.transport.redis.port == 1234
    assert config.engine.retries == 5
    assert config.models.gemini == "gemini-1.5-pro"
    assert config.http.timeout == 5.0


def test_environment_overrides_file(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text("database_url: sqlite:///file.db\nencryption_key: from-file\n")
    monkeypatch.setenv("NODEFLOW_DATABASE_URL", "sqlite:///env.db")
    monkeypatch.setenv("NODEFLOW_ENCRYPTION_KEY", "from-env")

    config = load_config(str(config_path))
    assert config.database_url == "sqlite:///env.db"
    assert config.encryption_key == "from-env"


def test_get_transport_uses_config(tmp_path, monkeypatch):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        """
transport:
  backend: redis
  redis:
    host: confighost
    port: 6380
"""
    )
    monkeypatch.setenv("NODEFLOW_CONFIG", str(config_path))

    transport = get_transport()
    assert isinstance(transport, RedisTransport)
    assert transport.host == "confighost"
    assert transport.port == 6380


def test_get_transport_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("NODEFLOW_CONFIG", str(tmp_path / "absent.yaml"))
    monkeypatch.setenv("NODEFLOW_TRANSPORT", "inmemory")
    assert isinstance(get_transport(), InMemoryTransport)


def test_get_transport_rejects_unknown_backend(tmp_path, monkeypatch):
    monkeypatch.setenv("NODEFLOW_CONFIG", str(tmp_path / "absent.yaml"))
    with pytest.raises(ValueError):
        get_transport("kafka")
