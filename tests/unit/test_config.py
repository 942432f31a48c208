"""Unit tests for the Signal MCP configuration system.

Tests cover defaults, loading from file, handling missing/invalid files,
validation, singleton behavior and save functionality.
"""

import json
import os
import stat

import pytest
from pydantic import ValidationError

from signal_mcp.config import (
    CONFIG_VERSION,
    DatabaseSettings,
    SignalMCPConfig,
    default_config_path,
    get_config,
    load_config,
    reset_config,
    save_config,
)


class TestSignalMCPConfig:
    """Tests for SignalMCPConfig model."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = SignalMCPConfig()
        assert config.config_version == CONFIG_VERSION
        assert config.source_dir is None
        assert config.database.timeout_seconds == 5.0
        assert config.defaults.include_empty is False
        assert config.defaults.include_disappearing is True
        assert config.logging.level == "INFO"
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 8765

    def test_timeout_out_of_range_raises(self) -> None:
        """Negative timeouts are rejected."""
        with pytest.raises(ValidationError):
            DatabaseSettings(timeout_seconds=-1)

    def test_port_out_of_range_raises(self) -> None:
        """Ports must be valid TCP ports."""
        with pytest.raises(ValidationError):
            SignalMCPConfig(server={"port": 70000})

    def test_invalid_log_level_raises(self) -> None:
        """Only known log levels are accepted."""
        with pytest.raises(ValidationError):
            SignalMCPConfig(logging={"level": "LOUD"})


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_defaults_when_missing(self, tmp_path) -> None:
        """Missing file yields defaults."""
        config = load_config(tmp_path / "nonexistent" / "config.json")
        assert config == SignalMCPConfig()

    def test_reads_from_file(self, tmp_path) -> None:
        """Values in the file override defaults."""
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps(
                {
                    "source_dir": "/data/Signal",
                    "database": {"timeout_seconds": 2.5},
                    "defaults": {"include_empty": True},
                }
            )
        )
        config = load_config(config_file)
        assert config.source_dir == "/data/Signal"
        assert config.database.timeout_seconds == 2.5
        assert config.defaults.include_empty is True
        assert config.defaults.include_disappearing is True

    def test_handles_invalid_json(self, tmp_path) -> None:
        """Invalid JSON yields defaults."""
        config_file = tmp_path / "config.json"
        config_file.write_text("{ invalid json content")
        assert load_config(config_file) == SignalMCPConfig()

    def test_handles_validation_failure(self, tmp_path) -> None:
        """Out-of-range values yield defaults."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"database": {"timeout_seconds": 999}}))
        assert load_config(config_file).database.timeout_seconds == 5.0

    def test_environment_path(self, tmp_path, monkeypatch) -> None:
        """SIGNAL_MCP_CONFIG selects the file."""
        config_file = tmp_path / "custom.json"
        config_file.write_text(json.dumps({"source_dir": "/custom"}))
        monkeypatch.setenv("SIGNAL_MCP_CONFIG", str(config_file))
        assert default_config_path() == config_file
        assert load_config().source_dir == "/custom"


class TestSaveConfig:
    """Tests for save_config function."""

    def test_roundtrip(self, tmp_path) -> None:
        """Saved configuration loads back unchanged."""
        config_file = tmp_path / "nested" / "config.json"
        config = SignalMCPConfig(source_dir="/data/Signal")
        assert save_config(config, config_file)
        assert load_config(config_file) == config

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_owner_only_permissions(self, tmp_path) -> None:
        """Config file is readable only by the owner."""
        config_file = tmp_path / "config.json"
        save_config(SignalMCPConfig(), config_file)
        assert stat.S_IMODE(config_file.stat().st_mode) == 0o600

    def test_unwritable_location(self, tmp_path) -> None:
        """Failure to write returns False."""
        blocker = tmp_path / "file"
        blocker.write_text("")
        assert save_config(SignalMCPConfig(), blocker / "config.json") is False


class TestGetConfig:
    """Tests for get_config singleton function."""

    def test_returns_singleton(self) -> None:
        """Repeated calls return the same instance."""
        assert get_config() is get_config()

    def test_reset_reloads(self, tmp_path, monkeypatch) -> None:
        """reset_config forces the next call to reload from disk."""
        first = get_config()
        config_file = tmp_path / "other.json"
        config_file.write_text(json.dumps({"source_dir": "/reloaded"}))
        monkeypatch.setenv("SIGNAL_MCP_CONFIG", str(config_file))
        reset_config()
        second = get_config()
        assert second is not first
        assert second.source_dir == "/reloaded"
