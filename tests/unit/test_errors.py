"""Unit tests for the Signal MCP error hierarchy."""

import pytest

from signal_mcp.errors import (
    ConfigurationError,
    ConversationNotFoundError,
    DatabaseLockedError,
    DatabaseNotFoundError,
    DatabaseOpenError,
    DecryptionFailedError,
    ErrorCode,
    KeyNotFoundError,
    KeyResolutionError,
    MalformedKeyBlobError,
    SecretStoreAccessError,
    SignalDatabaseError,
    SignalMCPError,
    SignalQueryError,
    ValidationError,
    conversation_not_found,
    database_locked,
    database_not_found,
    key_not_found,
    secret_store_denied,
    validation_non_negative,
    validation_required,
)


class TestErrorCode:
    """Tests for ErrorCode enum."""

    def test_error_code_values_are_unique(self) -> None:
        """All error code values are unique."""
        values = [code.value for code in ErrorCode]
        assert len(values) == len(set(values))

    def test_error_code_categories(self) -> None:
        """Error codes follow category prefixes."""
        for code in ErrorCode:
            if code == ErrorCode.UNKNOWN:
                continue
            assert code.value.split("_")[0] in {"CFG", "VAL", "KEY", "DB", "CONV"}


class TestSignalMCPError:
    """Tests for SignalMCPError base class."""

    def test_default_message(self) -> None:
        """Has sensible default message."""
        error = SignalMCPError()
        assert error.message == "An error occurred"
        assert str(error) == "An error occurred"
        assert error.code == ErrorCode.UNKNOWN

    def test_cause(self) -> None:
        """Can chain cause exception."""
        cause = ValueError("Original error")
        error = SignalMCPError("Wrapper", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_to_dict(self) -> None:
        """Can convert to dictionary for tool error payloads."""
        error = SignalMCPError("Test error", details={"foo": "bar"})
        assert error.to_dict() == {
            "error": "SignalMCPError",
            "code": "UNKNOWN",
            "detail": "Test error",
            "details": {"foo": "bar"},
        }

    def test_repr(self) -> None:
        """Has useful repr output."""
        error = SignalMCPError("Test", code=ErrorCode.CFG_INVALID)
        assert "SignalMCPError" in repr(error)
        assert "CFG_INVALID" in repr(error)


class TestHierarchy:
    """Tests for default codes and inheritance."""

    @pytest.mark.parametrize(
        "cls,parent,code",
        [
            (ConfigurationError, SignalMCPError, ErrorCode.CFG_INVALID),
            (ValidationError, SignalMCPError, ErrorCode.VAL_INVALID_INPUT),
            (KeyNotFoundError, KeyResolutionError, ErrorCode.KEY_NOT_FOUND),
            (MalformedKeyBlobError, KeyResolutionError, ErrorCode.KEY_MALFORMED_BLOB),
            (DecryptionFailedError, KeyResolutionError, ErrorCode.KEY_DECRYPTION_FAILED),
            (SecretStoreAccessError, KeyResolutionError, ErrorCode.KEY_SECRET_STORE_DENIED),
            (DatabaseNotFoundError, SignalDatabaseError, ErrorCode.DB_NOT_FOUND),
            (DatabaseLockedError, SignalDatabaseError, ErrorCode.DB_LOCKED),
            (DatabaseOpenError, SignalDatabaseError, ErrorCode.DB_OPEN_FAILED),
            (SignalQueryError, SignalDatabaseError, ErrorCode.DB_QUERY_FAILED),
            (ConversationNotFoundError, SignalMCPError, ErrorCode.CONV_NOT_FOUND),
        ],
    )
    def test_defaults(self, cls, parent, code) -> None:
        """Each error has its category parent and default code."""
        error = cls()
        assert isinstance(error, parent)
        assert isinstance(error, SignalMCPError)
        assert error.code == code

    def test_malformed_blob_default_message(self) -> None:
        """MalformedKeyBlobError mentions the expected version tag."""
        assert MalformedKeyBlobError().message == "Encrypted key does not start with v10"

    def test_query_preview_truncated(self) -> None:
        """Long queries are collapsed and truncated in details."""
        error = SignalQueryError("Failed", query="SELECT\n" + "x, " * 200)
        preview = error.details["query_preview"]
        assert "\n" not in preview
        assert preview.endswith("...")
        assert len(preview) == 203

    def test_validation_value_repr(self) -> None:
        """ValidationError records the offending value."""
        error = ValidationError("bad", field="limit", value=-1)
        assert error.details == {"field": "limit", "value": "-1"}


class TestFactories:
    """Tests for convenience factories."""

    def test_database_not_found(self) -> None:
        """Includes the path in message and details."""
        error = database_not_found("/x/db.sqlite")
        assert isinstance(error, DatabaseNotFoundError)
        assert error.details["db_path"] == "/x/db.sqlite"

    def test_database_locked(self) -> None:
        """Locked errors carry a hint and the cause."""
        cause = RuntimeError("database is locked")
        error = database_locked("/x/db.sqlite", cause=cause)
        assert error.code == ErrorCode.DB_LOCKED
        assert "Close Signal Desktop" in error.details["hint"]
        assert error.cause is cause

    def test_key_not_found(self) -> None:
        """Points at the data directory."""
        error = key_not_found("/signal")
        assert "/signal" in error.message
        assert error.details["source_dir"] == "/signal"

    def test_secret_store_denied(self) -> None:
        """Message carries the manual command and the password override."""
        error = secret_store_denied("Signal Safe Storage", "security find-generic-password ...")
        assert "security find-generic-password ..." in error.message
        assert "SIGNAL_PASSWORD" in error.message
        assert error.manual_command == "security find-generic-password ..."
        assert error.details["item_name"] == "Signal Safe Storage"

    def test_conversation_not_found(self) -> None:
        """Records the chat name."""
        assert conversation_not_found("Bob").details["chat_name"] == "Bob"

    def test_validation_required(self) -> None:
        """Uses the missing-required code."""
        error = validation_required("chat_name")
        assert error.code == ErrorCode.VAL_MISSING_REQUIRED
        assert error.message == "chat_name is required"

    def test_validation_non_negative(self) -> None:
        """Uses the invalid-input code."""
        error = validation_non_negative("offset", -2)
        assert error.code == ErrorCode.VAL_INVALID_INPUT
        assert "offset" in error.message
