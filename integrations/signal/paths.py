"""Locate the Signal Desktop data directory.

Resolution order: explicit argument > SIGNAL_SOURCE_DIR > ``source_dir`` in
the Signal MCP config file > platform default.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path

from signal_mcp.errors import ConfigurationError, ErrorCode

logger = logging.getLogger(__name__)

SOURCE_DIR_ENV = "SIGNAL_SOURCE_DIR"

# Relative locations inside the data directory
DB_RELATIVE_PATH = Path("sql") / "db.sqlite"
CONFIG_FILENAME = "config.json"

# Flatpak sandbox location on Linux
FLATPAK_RELATIVE_PATH = Path(".var") / "app" / "org.signal.Signal" / "config" / "Signal"


def default_source_dir(system: str | None = None, home: Path | None = None) -> Path:
    """Return the platform default Signal Desktop data directory.

    Args:
        system: Platform name as returned by platform.system(). Detected if None.
        home: Home directory. Defaults to Path.home().

    Raises:
        ConfigurationError: On platforms Signal Desktop does not support.
    """
    system = system or platform.system()
    home = home or Path.home()

    if system == "Windows":
        return home / "AppData" / "Roaming" / "Signal"
    if system == "Darwin":
        return home / "Library" / "Application Support" / "Signal"
    if system == "Linux":
        flatpak = home / FLATPAK_RELATIVE_PATH
        if flatpak.exists():
            return flatpak
        return home / ".config" / "Signal"

    raise ConfigurationError(
        f"Unsupported OS: {system}",
        code=ErrorCode.CFG_UNSUPPORTED_PLATFORM,
        details={"platform": system},
    )


def resolve_source_dir(
    source_dir: str | Path | None = None,
    configured: str | None = None,
) -> Path:
    """Resolve the data directory for one reader.

    Args:
        source_dir: Explicit override.
        configured: ``source_dir`` from the Signal MCP config file.

    Returns:
        Expanded directory path. Existence is not checked here.
    """
    if source_dir:
        return Path(source_dir).expanduser()

    env_dir = os.environ.get(SOURCE_DIR_ENV)
    if env_dir:
        logger.debug("Using %s from environment: %s", SOURCE_DIR_ENV, env_dir)
        return Path(env_dir).expanduser()

    if configured:
        return Path(configured).expanduser()

    return default_source_dir()


def database_path(source_dir: Path) -> Path:
    """Path of the encrypted database inside a data directory."""
    return source_dir / DB_RELATIVE_PATH


def config_path(source_dir: Path) -> Path:
    """Path of Signal's own config.json inside a data directory."""
    return source_dir / CONFIG_FILENAME
