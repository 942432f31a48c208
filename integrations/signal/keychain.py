"""Platform secret store lookup for the key-unwrapping password.

Only macOS has a store Signal Desktop uses for ``encryptedKey``; the password
lives in the login keychain under a fixed generic-password item.
"""

from __future__ import annotations

import logging
import platform
import subprocess
from typing import Protocol

from signal_mcp.errors import secret_store_denied

logger = logging.getLogger(__name__)

KEYCHAIN_ITEM_NAME = "Signal Safe Storage"
MANUAL_KEYCHAIN_COMMAND = 'security find-generic-password -ws "{item_name}"'

# `security` may block on a keychain unlock prompt
KEYCHAIN_TIMEOUT_SECONDS = 30.0


class SecretStore(Protocol):
    """Read-only lookup of one secret by a fixed item name."""

    item_name: str
    manual_command: str

    def get_password(self) -> str:
        """Return the secret, raising SecretStoreAccessError on denial."""
        ...


class MacKeychain:
    """macOS login keychain accessed through the ``security`` CLI."""

    def __init__(
        self,
        item_name: str = KEYCHAIN_ITEM_NAME,
        timeout: float = KEYCHAIN_TIMEOUT_SECONDS,
    ) -> None:
        self.item_name = item_name
        self.manual_command = MANUAL_KEYCHAIN_COMMAND.format(item_name=item_name)
        self.timeout = timeout

    def get_password(self) -> str:
        """Read the generic password stored under ``item_name``.

        Raises:
            SecretStoreAccessError: If the CLI is missing, times out, or exits
                non-zero (item absent, keychain locked, sandbox denial).
        """
        try:
            result = subprocess.run(
                ["security", "find-generic-password", "-ws", self.item_name],
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except subprocess.CalledProcessError as e:
            logger.error(
                "Keychain access failed (exit %s): %s", e.returncode, (e.stderr or "").strip()
            )
            raise secret_store_denied(self.item_name, self.manual_command, cause=e) from e
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.error("Keychain access failed: %s", e)
            raise secret_store_denied(self.item_name, self.manual_command, cause=e) from e

        return result.stdout.strip()


def default_secret_store(system: str | None = None) -> SecretStore | None:
    """Return the secret store for this platform, or None if there is none."""
    system = system or platform.system()
    if system == "Darwin":
        return MacKeychain()
    return None
