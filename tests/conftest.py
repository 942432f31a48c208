"""Pytest configuration for Signal MCP tests.

Isolates every test from the developer's environment: Signal overrides are
cleared, the config file points into tmp_path, and the config singleton is
reset.
"""

from pathlib import Path

import pytest

from signal_mcp.config import SignalMCPConfig, reset_config
from tests.helpers import TEST_KEY, create_encrypted_db, memory_session, write_signal_config

_SIGNAL_ENV_VARS = ("SIGNAL_KEY", "SIGNAL_PASSWORD", "SIGNAL_SOURCE_DIR")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Clear Signal overrides and point the config file at tmp_path."""
    for name in _SIGNAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SIGNAL_MCP_CONFIG", str(tmp_path / "signal-mcp" / "config.json"))
    reset_config()
    yield
    reset_config()


@pytest.fixture
def config():
    """Default configuration, independent of any file on disk."""
    return SignalMCPConfig()


@pytest.fixture
def session():
    """In-memory Signal-shaped database wrapped in a CipherSession."""
    s = memory_session()
    yield s
    s.close()


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """Data directory with an (empty) db.sqlite and no config.json."""
    directory = tmp_path / "Signal"
    (directory / "sql").mkdir(parents=True)
    (directory / "sql" / "db.sqlite").touch()
    return directory


@pytest.fixture
def encrypted_source_dir(tmp_path) -> Path:
    """Data directory with a real SQLCipher database and a plaintext key."""
    pytest.importorskip("sqlcipher3")
    directory = tmp_path / "SignalEncrypted"
    create_encrypted_db(directory / "sql" / "db.sqlite", TEST_KEY)
    write_signal_config(directory, key=TEST_KEY)
    return directory
