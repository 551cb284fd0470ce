"""Tests for environment-driven defaults."""

import importlib

from mdb_bridge_mcp import config


def test_log_level_is_normalised(monkeypatch):
    """A lower-case MDB_LOG_LEVEL becomes a level name logging accepts."""
    monkeypatch.setenv("MDB_LOG_LEVEL", "debug")
    try:
        importlib.reload(config)
        assert config.LOG_LEVEL == "DEBUG"
    finally:
        monkeypatch.delenv("MDB_LOG_LEVEL")
        importlib.reload(config)
    assert config.LOG_LEVEL == "INFO"


def test_daemon_endpoint_from_env(monkeypatch):
    """Daemon host, port and timeout come from the environment."""
    monkeypatch.setenv("MDB_DAEMON_HOST", "10.0.0.5")
    monkeypatch.setenv("MDB_DAEMON_PORT", "6000")
    monkeypatch.setenv("MDB_DAEMON_TIMEOUT_MS", "250")
    try:
        importlib.reload(config)
        assert (config.DAEMON_HOST, config.DAEMON_PORT, config.DAEMON_TIMEOUT_MS) == (
            "10.0.0.5", 6000, 250,
        )
    finally:
        for name in ("MDB_DAEMON_HOST", "MDB_DAEMON_PORT", "MDB_DAEMON_TIMEOUT_MS"):
            monkeypatch.delenv(name)
        importlib.reload(config)
