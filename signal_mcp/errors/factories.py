"""Convenience factory functions for common error scenarios.

Provides shorthand functions for creating commonly-used error instances
with appropriate error codes and details pre-filled.
"""

from __future__ import annotations

from typing import Any

from signal_mcp.errors.base import ErrorCode, ValidationError
from signal_mcp.errors.domain import (
    ConversationNotFoundError,
    DatabaseLockedError,
    DatabaseNotFoundError,
    KeyNotFoundError,
    SecretStoreAccessError,
)


def database_not_found(db_path: str) -> DatabaseNotFoundError:
    """Create a DatabaseNotFoundError for a missing database file."""
    return DatabaseNotFoundError(
        f"Signal database not found at: {db_path}",
        db_path=db_path,
    )


def database_locked(db_path: str, cause: Exception | None = None) -> DatabaseLockedError:
    """Create a DatabaseLockedError for a busy/locked database."""
    return DatabaseLockedError(
        f"Signal database is locked: {cause}" if cause else "Signal database is locked",
        db_path=db_path,
        details={"hint": "Close Signal Desktop before accessing messages"},
        cause=cause,
    )


def key_not_found(source_dir: str) -> KeyNotFoundError:
    """Create a KeyNotFoundError when no key material is configured."""
    return KeyNotFoundError(
        "Could not find Signal encryption key. "
        f"Make sure config.json exists in {source_dir} or provide the key manually.",
        source_dir=source_dir,
    )


def secret_store_denied(
    item_name: str,
    manual_command: str,
    cause: Exception | None = None,
    source_dir: str | None = None,
) -> SecretStoreAccessError:
    """Create a SecretStoreAccessError including the manual recovery command."""
    return SecretStoreAccessError(
        "Cannot access the platform secret store to retrieve the Signal key password. "
        "This often happens in sandboxed environments. "
        "To fix this, run the following command in a terminal:\n\n"
        f"  {manual_command}\n\n"
        "Then provide its output as the 'password' setting (or SIGNAL_PASSWORD).",
        item_name=item_name,
        manual_command=manual_command,
        source_dir=source_dir,
        cause=cause,
    )


def conversation_not_found(chat_name: str) -> ConversationNotFoundError:
    """Create a ConversationNotFoundError for an unknown chat name."""
    return ConversationNotFoundError(
        f"No Signal chat named: {chat_name}",
        chat_name=chat_name,
    )


def validation_required(field: str) -> ValidationError:
    """Create a ValidationError for a missing required field."""
    return ValidationError(
        f"{field} is required",
        field=field,
        code=ErrorCode.VAL_MISSING_REQUIRED,
    )


def validation_non_negative(field: str, value: Any) -> ValidationError:
    """Create a ValidationError for a negative pagination argument."""
    return ValidationError(
        f"{field} must be >= 0, got {value}",
        field=field,
        value=value,
    )
