"""Key, database and conversation error classes."""

from __future__ import annotations

from typing import Any

from signal_mcp.errors.base import ErrorCode, SignalMCPError

# Key Errors


class KeyResolutionError(SignalMCPError):
    """Base class for errors while obtaining the database key."""

    default_message = "Could not obtain the Signal encryption key"
    default_code = ErrorCode.KEY_NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        *,
        source_dir: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if source_dir:
            details["source_dir"] = source_dir
        super().__init__(message, code=code, details=details, cause=cause)


class KeyNotFoundError(KeyResolutionError):
    """Raised when no key material is configured anywhere."""

    default_message = "Could not find Signal encryption key"
    default_code = ErrorCode.KEY_NOT_FOUND


class MalformedKeyBlobError(KeyResolutionError):
    """Raised when an encrypted key blob lacks the version tag or is not hex."""

    default_message = "Encrypted key does not start with v10"
    default_code = ErrorCode.KEY_MALFORMED_BLOB


class DecryptionFailedError(KeyResolutionError):
    """Raised when the key blob cannot be decrypted (wrong password or corrupt blob)."""

    default_message = "Failed to decrypt the Signal encryption key"
    default_code = ErrorCode.KEY_DECRYPTION_FAILED


class SecretStoreAccessError(KeyResolutionError):
    """Raised when key material exists but the platform secret store refused access."""

    default_message = "Cannot access the platform secret store"
    default_code = ErrorCode.KEY_SECRET_STORE_DENIED

    def __init__(
        self,
        message: str | None = None,
        *,
        item_name: str | None = None,
        manual_command: str | None = None,
        source_dir: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if item_name:
            details["item_name"] = item_name
        if manual_command:
            details["manual_command"] = manual_command
        self.manual_command = manual_command
        super().__init__(
            message, source_dir=source_dir, code=code, details=details, cause=cause
        )


# Database Errors


class SignalDatabaseError(SignalMCPError):
    """Base class for database-related errors."""

    default_message = "Signal database error"
    default_code = ErrorCode.DB_OPEN_FAILED

    def __init__(
        self,
        message: str | None = None,
        *,
        db_path: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if db_path:
            details["db_path"] = db_path
        super().__init__(message, code=code, details=details, cause=cause)


class DatabaseNotFoundError(SignalDatabaseError):
    """Raised when the database file does not exist."""

    default_message = "Signal database not found"
    default_code = ErrorCode.DB_NOT_FOUND


class DatabaseLockedError(SignalDatabaseError):
    """Raised when the engine reports the database as busy or locked."""

    default_message = "Signal database is locked"
    default_code = ErrorCode.DB_LOCKED


class DatabaseOpenError(SignalDatabaseError):
    """Raised for any other failure while opening the database.

    A wrong key surfaces here with code DB_KEY_REJECTED because SQLCipher
    only notices it when the first page is decrypted.
    """

    default_message = "Failed to open Signal database"
    default_code = ErrorCode.DB_OPEN_FAILED


class SignalQueryError(SignalDatabaseError):
    """Raised when a query against an open session fails."""

    default_message = "Signal database query failed"
    default_code = ErrorCode.DB_QUERY_FAILED

    def __init__(
        self,
        message: str | None = None,
        *,
        query: str | None = None,
        db_path: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if query is not None:
            query = " ".join(query.split())
            details["query_preview"] = query[:200] + "..." if len(query) > 200 else query
        super().__init__(message, db_path=db_path, code=code, details=details, cause=cause)


# Conversation Errors


class ConversationNotFoundError(SignalMCPError):
    """Raised when a chat name does not match any conversation."""

    default_message = "Conversation not found"
    default_code = ErrorCode.CONV_NOT_FOUND

    def __init__(
        self,
        message: str | None = None,
        *,
        chat_name: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if chat_name is not None:
            details["chat_name"] = chat_name
        super().__init__(message, code=code, details=details, cause=cause)
