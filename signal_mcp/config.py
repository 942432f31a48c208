"""Signal MCP Configuration System.

Loads and validates configuration from ~/.signal-mcp/config.json.
Uses Pydantic for schema validation with sensible defaults.

The database key and keychain password are never stored here; they come from
Signal's own config.json, the platform secret store, or environment overrides.

Usage:
    from signal_mcp.config import get_config, save_config

    config = get_config()
    print(config.database.timeout_seconds)

    config.defaults.include_empty = True
    save_config(config)
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".signal-mcp" / "config.json"

# Environment variable overriding CONFIG_PATH
CONFIG_PATH_ENV = "SIGNAL_MCP_CONFIG"

# Current config schema version
CONFIG_VERSION = 1


class DatabaseSettings(BaseModel):
    """Database access settings.

    Attributes:
        timeout_seconds: Engine busy timeout before a lock is reported.
    """

    timeout_seconds: float = Field(default=5.0, ge=0.0, le=60.0)


class ListingDefaults(BaseModel):
    """Defaults applied when a caller leaves a listing flag unset.

    Attributes:
        include_empty: Include chats with no messages.
        include_disappearing: Include disappearing messages (accepted, not applied).
    """

    include_empty: bool = False
    include_disappearing: bool = True


class LoggingSettings(BaseModel):
    """Logging preferences. Output always goes to stderr."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class ServerConfig(BaseModel):
    """MCP server configuration.

    Attributes:
        host: Bind address for the HTTP transport.
        port: Port for the HTTP transport.
    """

    host: str = "127.0.0.1"
    port: int = Field(default=8765, ge=1, le=65535)


class SignalMCPConfig(BaseModel):
    """Signal MCP configuration schema.

    Attributes:
        config_version: Schema version for migration tracking.
        source_dir: Signal data directory, used when neither the caller nor
            SIGNAL_SOURCE_DIR provides one.
        database: Database access settings.
        defaults: Listing defaults.
        logging: Logging preferences.
        server: MCP server configuration.
    """

    config_version: int = CONFIG_VERSION
    source_dir: str | None = None
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    defaults: ListingDefaults = Field(default_factory=ListingDefaults)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    server: ServerConfig = Field(default_factory=ServerConfig)


# Module-level singleton with thread safety
_config: SignalMCPConfig | None = None
_config_lock = threading.Lock()


def default_config_path() -> Path:
    override = os.environ.get(CONFIG_PATH_ENV)
    return Path(override).expanduser() if override else CONFIG_PATH


def load_config(config_path: Path | None = None) -> SignalMCPConfig:
    """Load configuration from file, return defaults if missing/invalid.

    Args:
        config_path: Optional path to config file. Defaults to
            ~/.signal-mcp/config.json (or SIGNAL_MCP_CONFIG).

    Returns:
        SignalMCPConfig instance with loaded or default values.
    """
    path = config_path or default_config_path()

    if not path.exists():
        logger.debug("Config file not found at %s, using defaults", path)
        return SignalMCPConfig()

    try:
        with path.open() as f:
            data: dict[str, Any] = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in config file %s: %s, using defaults", path, e)
        return SignalMCPConfig()
    except OSError as e:
        logger.warning("Cannot read config file %s: %s, using defaults", path, e)
        return SignalMCPConfig()

    try:
        return SignalMCPConfig.model_validate(data)
    except ValidationError as e:
        logger.warning("Config validation failed: %s, using defaults", e)
        return SignalMCPConfig()


def save_config(config: SignalMCPConfig, config_path: Path | None = None) -> bool:
    """Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to config file.

    Returns:
        True if saved successfully, False otherwise.
    """
    path = config_path or default_config_path()

    try:
        path.parent.mkdir(parents=True, exist_ok=True)

        with path.open("w") as f:
            json.dump(config.model_dump(), f, indent=2)

        os.chmod(path, 0o600)

        logger.debug("Configuration saved to %s", path)
        return True

    except OSError as e:
        logger.error("Failed to save config to %s: %s", path, e)
        return False


def get_config() -> SignalMCPConfig:
    """Get singleton configuration instance.

    Uses double-check locking for thread safety.

    Returns:
        Shared SignalMCPConfig instance.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_config()
    return _config


def reset_config() -> None:
    """Reset singleton configuration for testing."""
    global _config
    with _config_lock:
        _config = None
