"""Base error classes and error codes for Signal MCP.

Contains ErrorCode enum, SignalMCPError base class, ConfigurationError and
ValidationError. All project-specific exceptions inherit from SignalMCPError.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standard error codes for Signal MCP errors.

    These codes identify error types programmatically and are included in
    tool error payloads.
    """

    # Configuration errors (CFG_*)
    CFG_INVALID = "CFG_INVALID"
    CFG_UNSUPPORTED_PLATFORM = "CFG_UNSUPPORTED_PLATFORM"

    # Validation errors (VAL_*)
    VAL_INVALID_INPUT = "VAL_INVALID_INPUT"
    VAL_MISSING_REQUIRED = "VAL_MISSING_REQUIRED"

    # Key errors (KEY_*)
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    KEY_MALFORMED_BLOB = "KEY_MALFORMED_BLOB"
    KEY_DECRYPTION_FAILED = "KEY_DECRYPTION_FAILED"
    KEY_SECRET_STORE_DENIED = "KEY_SECRET_STORE_DENIED"
    KEY_INVALID_FORMAT = "KEY_INVALID_FORMAT"

    # Database errors (DB_*)
    DB_NOT_FOUND = "DB_NOT_FOUND"
    DB_LOCKED = "DB_LOCKED"
    DB_OPEN_FAILED = "DB_OPEN_FAILED"
    DB_KEY_REJECTED = "DB_KEY_REJECTED"
    DB_QUERY_FAILED = "DB_QUERY_FAILED"

    # Conversation errors (CONV_*)
    CONV_NOT_FOUND = "CONV_NOT_FOUND"

    # Generic errors
    UNKNOWN = "UNKNOWN"


class SignalMCPError(Exception):
    """Base exception for all Signal MCP errors.

    Attributes:
        message: Human-readable error message.
        code: Machine-readable error code from ErrorCode enum.
        details: Optional additional context about the error.
        cause: Optional original exception that caused this error.
    """

    default_message: str = "An error occurred"
    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str | None = None,
        *,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details or {}
        self.cause = cause

        super().__init__(self.message)

        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        parts = [f"{self.__class__.__name__}({self.message!r}"]
        if self.code != self.default_code:
            parts.append(f", code={self.code.value!r}")
        if self.details:
            parts.append(f", details={self.details!r}")
        if self.cause:
            parts.append(f", cause={self.cause!r}")
        parts.append(")")
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for tool error payloads."""
        result: dict[str, Any] = {
            "error": self.__class__.__name__,
            "code": self.code.value,
            "detail": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class ConfigurationError(SignalMCPError):
    """Raised for configuration and settings issues."""

    default_message = "Configuration error"
    default_code = ErrorCode.CFG_INVALID

    def __init__(
        self,
        message: str | None = None,
        *,
        config_key: str | None = None,
        config_path: str | None = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        if config_path:
            details["config_path"] = config_path
        super().__init__(message, code=code, details=details, cause=cause)


class ValidationError(SignalMCPError):
    """Raised when caller input fails validation."""

    default_message = "Invalid input"
    default_code = ErrorCode.VAL_INVALID_INPUT

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        value: Any = None,
        code: ErrorCode | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = repr(value)[:100]
        super().__init__(message, code=code, details=details, cause=cause)
