"""Resolve the SQLCipher key for a Signal data directory.

Resolution order:
1. explicit key (callers fold SIGNAL_KEY in before calling)
2. plaintext ``key`` in the directory's config.json
3. ``encryptedKey`` in config.json, unwrapped with an explicit password or the
   secret read from the platform secret store
"""

from __future__ import annotations

import json
import logging
import string
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from signal_mcp.errors import (
    ErrorCode,
    KeyResolutionError,
    SecretStoreAccessError,
    key_not_found,
)

from .crypto import unwrap_hex_key
from .keychain import SecretStore, default_secret_store
from .paths import config_path

logger = logging.getLogger(__name__)

KEY_ENV = "SIGNAL_KEY"
PASSWORD_ENV = "SIGNAL_PASSWORD"

# 32-byte raw key as hex
EXPECTED_KEY_LENGTH = 64

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass
class KeyMaterial:
    """Key fields found in Signal's config.json."""

    key: str | None = None
    encrypted_key: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.key and not self.encrypted_key


def normalize_key(key: str) -> str:
    """Validate a raw database key and return it as lowercase hex.

    The key is interpolated into ``PRAGMA key``, so anything but hex digits is
    rejected.

    Raises:
        KeyResolutionError: If the key is empty or contains non-hex characters.
    """
    candidate = key.strip().lower()
    if not candidate or not _HEX_DIGITS.issuperset(candidate):
        raise KeyResolutionError(
            "Signal encryption key must be a hexadecimal string",
            code=ErrorCode.KEY_INVALID_FORMAT,
        )
    if len(candidate) != EXPECTED_KEY_LENGTH:
        logger.warning(
            "Signal encryption key has %d hex characters, expected %d",
            len(candidate),
            EXPECTED_KEY_LENGTH,
        )
    return candidate


def read_key_material(source_dir: Path) -> KeyMaterial:
    """Read key fields from ``<source_dir>/config.json``.

    A missing, unreadable or malformed file yields empty material.
    """
    path = config_path(source_dir)
    if not path.exists():
        logger.debug("No Signal config.json at %s", path)
        return KeyMaterial()

    try:
        data: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Cannot read Signal config %s: %s", path, e)
        return KeyMaterial()

    if not isinstance(data, dict):
        logger.warning("Signal config %s is not a JSON object", path)
        return KeyMaterial()

    key = data.get("key")
    encrypted_key = data.get("encryptedKey")
    return KeyMaterial(
        key=key if isinstance(key, str) and key else None,
        encrypted_key=encrypted_key if isinstance(encrypted_key, str) and encrypted_key else None,
    )


def resolve_encryption_key(
    source_dir: Path,
    key: str | None = None,
    *,
    password: str | None = None,
    secret_store: SecretStore | None = None,
) -> str:
    """Return the database key for ``source_dir``.

    Args:
        source_dir: Signal data directory.
        key: Explicit key override.
        password: Explicit secret-store password for unwrapping ``encryptedKey``.
        secret_store: Secret store to query. Defaults to the platform store.

    Returns:
        Lowercase hex database key.

    Raises:
        KeyNotFoundError: If no key material is configured.
        SecretStoreAccessError: If ``encryptedKey`` exists but no password could
            be obtained to unwrap it.
        MalformedKeyBlobError: If ``encryptedKey`` is not a v10 blob.
        DecryptionFailedError: If unwrapping fails.
    """
    if key:
        logger.debug("Using explicitly provided encryption key")
        return normalize_key(key)

    material = read_key_material(source_dir)
    if material.is_empty:
        raise key_not_found(str(source_dir))

    if material.key:
        logger.debug("Using plaintext key from Signal config.json")
        return normalize_key(material.key)

    # Only encryptedKey remains
    if password:
        logger.debug("Unwrapping encryptedKey with provided password")
        secret = password
    else:
        store = secret_store or default_secret_store()
        if store is None:
            raise SecretStoreAccessError(
                "Signal config.json holds an encryptedKey but this platform has no "
                "supported secret store. Provide the database key or the "
                "secret-store password explicitly.",
                source_dir=str(source_dir),
            )
        logger.debug("Reading key password from secret store item %r", store.item_name)
        secret = store.get_password()

    return normalize_key(unwrap_hex_key(secret, material.encrypted_key or ""))
