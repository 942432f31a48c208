"""Unit tests for CipherSession over plain sqlite3 connections."""

import sqlite3
from unittest.mock import MagicMock, patch

import pytest

from integrations.signal.session import CipherSession
from signal_mcp.errors import (
    DatabaseLockedError,
    DatabaseNotFoundError,
    DatabaseOpenError,
    ErrorCode,
    KeyResolutionError,
    SignalQueryError,
)
from tests.helpers import SELF_SERVICE_ID, TEST_KEY, memory_session


class TestSelfServiceId:
    """Tests for reading the owner's id from items."""

    def test_device_suffix_stripped(self, session) -> None:
        """'svc-me.1' is stored; 'svc-me' is exposed."""
        assert session.self_service_id == SELF_SERVICE_ID

    def test_missing_row(self) -> None:
        """No uuid_id row leaves the owner unknown."""
        s = memory_session(self_service_id=None)
        assert s.self_service_id is None
        s.close()

    def test_missing_table(self) -> None:
        """A database without items leaves the owner unknown."""
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        s = CipherSession(conn)
        assert s.load_self_service_id() is None
        s.close()

    def test_malformed_json(self) -> None:
        """Malformed item JSON leaves the owner unknown."""
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        conn.execute("CREATE TABLE items (id TEXT, json TEXT)")
        conn.execute("INSERT INTO items VALUES ('uuid_id', '{oops')")
        s = CipherSession(conn)
        assert s.load_self_service_id() is None
        s.close()


class TestQueries:
    """Tests for fetch helpers and error mapping."""

    def test_fetchone_returns_dict(self, session) -> None:
        """Rows are plain dicts keyed by column alias."""
        row = session.fetchone("SELECT id, name FROM conversations WHERE id = ?", ("conv-alice",))
        assert row == {"id": "conv-alice", "name": "Alice"}

    def test_fetchone_no_row(self, session) -> None:
        """No match returns None."""
        assert session.fetchone("SELECT id FROM conversations WHERE id = ?", ("nope",)) is None

    def test_fetchall(self, session) -> None:
        """fetchall returns every row as a dict."""
        rows = session.fetchall("SELECT id FROM conversations ORDER BY id")
        assert [r["id"] for r in rows][:2] == ["conv-alice", "conv-bob"]

    def test_bad_sql_raises_query_error(self, session) -> None:
        """Engine errors become SignalQueryError with a query preview."""
        with pytest.raises(SignalQueryError) as exc_info:
            session.fetchall("SELECT nope FROM nowhere")
        assert exc_info.value.code == ErrorCode.DB_QUERY_FAILED
        assert "nowhere" in exc_info.value.details["query_preview"]

    def test_lock_error_raises_locked(self) -> None:
        """'database is locked' maps to DatabaseLockedError."""
        conn = MagicMock()
        conn.execute.side_effect = sqlite3.OperationalError("database is locked")
        s = CipherSession(conn)
        with pytest.raises(DatabaseLockedError) as exc_info:
            s.fetchall("SELECT 1")
        assert exc_info.value.code == ErrorCode.DB_LOCKED


class TestLifecycle:
    """Tests for close and context manager behavior."""

    def test_close_is_idempotent(self, session) -> None:
        """close() can be called repeatedly."""
        session.close()
        session.close()
        assert not session.is_open
        assert session.self_service_id is None

    def test_query_after_close(self, session) -> None:
        """Using a closed session raises SignalQueryError."""
        session.close()
        with pytest.raises(SignalQueryError):
            session.fetchall("SELECT 1")

    def test_context_manager_closes(self) -> None:
        """Exiting the context closes the connection."""
        conn = MagicMock()
        with CipherSession(conn) as s:
            assert s.is_open
        conn.close.assert_called_once()


class TestOpen:
    """Tests for CipherSession.open failure paths."""

    def test_missing_file(self, tmp_path) -> None:
        """A missing database file is reported before any key work."""
        with pytest.raises(DatabaseNotFoundError) as exc_info:
            CipherSession.open(tmp_path / "db.sqlite", TEST_KEY)
        assert exc_info.value.code == ErrorCode.DB_NOT_FOUND

    def test_invalid_key_format(self, tmp_path) -> None:
        """A non-hex key is rejected before connecting."""
        db = tmp_path / "db.sqlite"
        db.touch()
        with patch("integrations.signal.session.sqlcipher.connect") as connect:
            with pytest.raises(KeyResolutionError):
                CipherSession.open(db, "not hex!")
        connect.assert_not_called()

    def test_probe_failure_closes_connection(self, tmp_path) -> None:
        """A rejected key closes the connection and reports DB_KEY_REJECTED."""
        from sqlcipher3 import dbapi2 as sqlcipher

        db = tmp_path / "db.sqlite"
        db.touch()
        conn = MagicMock()

        def execute(sql, *args):
            if "sqlite_master" in sql:
                raise sqlcipher.DatabaseError("file is not a database")
            return MagicMock()

        conn.execute.side_effect = execute
        with patch("integrations.signal.session.sqlcipher.connect", return_value=conn):
            with pytest.raises(DatabaseOpenError) as exc_info:
                CipherSession.open(db, TEST_KEY)
        assert exc_info.value.code == ErrorCode.DB_KEY_REJECTED
        conn.close.assert_called_once()

    def test_applies_key_and_cipher_pragmas(self, tmp_path) -> None:
        """PRAGMA key comes first, then Signal's cipher settings, then the probe."""
        db = tmp_path / "db.sqlite"
        db.touch()
        conn = MagicMock()
        conn.execute.return_value.fetchone.return_value = None
        with patch("integrations.signal.session.sqlcipher.connect", return_value=conn) as connect:
            s = CipherSession.open(db, TEST_KEY.upper(), timeout=2.0)

        uri = connect.call_args[0][0]
        assert uri.startswith("file:") and uri.endswith("?mode=ro")
        assert connect.call_args[1] == {"uri": True, "timeout": 2.0}

        statements = [c[0][0] for c in conn.execute.call_args_list]
        assert statements[0] == f"PRAGMA key = \"x'{TEST_KEY}'\""
        assert statements[1:5] == [
            "PRAGMA cipher_page_size = 4096",
            "PRAGMA kdf_iter = 64000",
            "PRAGMA cipher_hmac_algorithm = HMAC_SHA512",
            "PRAGMA cipher_kdf_algorithm = PBKDF2_HMAC_SHA512",
        ]
        assert statements[5] == "SELECT count(*) FROM sqlite_master"
        assert s.is_open

    def test_locked_at_probe(self, tmp_path) -> None:
        """A busy database at open time is DatabaseLockedError, and the connection closes."""
        from sqlcipher3 import dbapi2 as sqlcipher

        db = tmp_path / "db.sqlite"
        db.touch()
        conn = MagicMock()

        def execute(sql, *args):
            if "sqlite_master" in sql:
                raise sqlcipher.OperationalError("database is locked")
            return MagicMock()

        conn.execute.side_effect = execute
        with patch("integrations.signal.session.sqlcipher.connect", return_value=conn):
            with pytest.raises(DatabaseLockedError) as exc_info:
                CipherSession.open(db, TEST_KEY)
        assert exc_info.value.code == ErrorCode.DB_LOCKED
        conn.close.assert_called_once()

    def test_connect_failure(self, tmp_path) -> None:
        """Other engine failures are DatabaseOpenError with DB_OPEN_FAILED."""
        from sqlcipher3 import dbapi2 as sqlcipher

        db = tmp_path / "db.sqlite"
        db.touch()
        with patch(
            "integrations.signal.session.sqlcipher.connect",
            side_effect=sqlcipher.OperationalError("unable to open database file"),
        ):
            with pytest.raises(DatabaseOpenError) as exc_info:
                CipherSession.open(db, TEST_KEY)
        assert exc_info.value.code == ErrorCode.DB_OPEN_FAILED
        assert "unable to open database file" in exc_info.value.message
