"""Unified exception hierarchy for Signal MCP.

Exception Hierarchy:
    SignalMCPError (base)
    +-- ConfigurationError - Configuration and settings issues
    +-- ValidationError - Input validation failures
    +-- KeyResolutionError - Obtaining the database key
    |   +-- KeyNotFoundError - No key material configured
    |   +-- MalformedKeyBlobError - Encrypted key lacks the v10 tag
    |   +-- DecryptionFailedError - Wrong password or corrupt blob
    |   +-- SecretStoreAccessError - Secret store refused access
    +-- SignalDatabaseError - Database access issues
    |   +-- DatabaseNotFoundError - db.sqlite missing
    |   +-- DatabaseLockedError - Engine reported busy/locked
    |   +-- DatabaseOpenError - Any other open failure (incl. wrong key)
    |   +-- SignalQueryError - Query failure on an open session
    +-- ConversationNotFoundError - Unknown chat name

Usage:
    from signal_mcp.errors import DatabaseLockedError, SignalMCPError

    try:
        messages = reader.get_messages("Alice")
    except DatabaseLockedError as e:
        logger.error("Database busy: %s (code: %s)", e.message, e.code)
"""

# --- base ---
from signal_mcp.errors.base import (
    ConfigurationError,
    ErrorCode,
    SignalMCPError,
    ValidationError,
)

# --- domain errors ---
from signal_mcp.errors.domain import (
    ConversationNotFoundError,
    DatabaseLockedError,
    DatabaseNotFoundError,
    DatabaseOpenError,
    DecryptionFailedError,
    KeyNotFoundError,
    KeyResolutionError,
    MalformedKeyBlobError,
    SecretStoreAccessError,
    SignalDatabaseError,
    SignalQueryError,
)

# --- convenience factories ---
from signal_mcp.errors.factories import (
    conversation_not_found,
    database_locked,
    database_not_found,
    key_not_found,
    secret_store_denied,
    validation_non_negative,
    validation_required,
)

__all__ = [
    # Error codes
    "ErrorCode",
    # Base exception
    "SignalMCPError",
    "ConfigurationError",
    "ValidationError",
    # Key errors
    "KeyResolutionError",
    "KeyNotFoundError",
    "MalformedKeyBlobError",
    "DecryptionFailedError",
    "SecretStoreAccessError",
    # Database errors
    "SignalDatabaseError",
    "DatabaseNotFoundError",
    "DatabaseLockedError",
    "DatabaseOpenError",
    "SignalQueryError",
    # Conversation errors
    "ConversationNotFoundError",
    # Convenience functions
    "database_not_found",
    "database_locked",
    "key_not_found",
    "secret_store_denied",
    "conversation_not_found",
    "validation_required",
    "validation_non_negative",
]
