"""Read-only SQLCipher session over Signal's db.sqlite.

One CipherSession wraps one DB-API connection. ``CipherSession.open`` applies
the key and Signal's cipher settings, probes the first page, and loads the
owner's service id. The session closes its connection on every failure path
during open and on ``close()``.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Self

from sqlcipher3 import dbapi2 as sqlcipher

from signal_mcp.errors import (
    DatabaseOpenError,
    ErrorCode,
    SignalQueryError,
    database_locked,
    database_not_found,
)

from .keys import normalize_key
from .queries import CIPHER_PRAGMAS, PROBE_QUERY, SELF_ID_QUERY

logger = logging.getLogger(__name__)

# Engine busy timeout (handles SQLITE_BUSY while Signal Desktop holds a write lock)
DB_TIMEOUT_SECONDS = 5.0

# Both sqlcipher3 and stdlib sqlite3 connections may back a session
DB_ERRORS: tuple[type[Exception], ...] = (sqlcipher.Error, sqlite3.Error)

# items.uuid_id is stored as "<service id>.<device id>"
_DEVICE_SUFFIX = re.compile(r"\.\d+$")


def _is_lock_error(e: Exception) -> bool:
    error_str = str(e).lower()
    return "database is locked" in error_str or "busy" in error_str


def _is_not_a_database(e: Exception) -> bool:
    error_str = str(e).lower()
    return "file is not a database" in error_str or "notadb" in error_str


class CipherSession:
    """Open, decrypted, read-only handle to the Signal database.

    Example:
        with CipherSession.open(db_path, key) as session:
            rows = session.fetchall("SELECT id FROM conversations")
    """

    def __init__(self, connection: Any, db_path: Path | None = None) -> None:
        """Wrap an already-keyed connection.

        Args:
            connection: DB-API connection whose row factory yields mapping rows.
            db_path: Database path, for error details.
        """
        self._connection: Any | None = connection
        self.db_path = db_path
        self.self_service_id: str | None = None

    @classmethod
    def open(cls, db_path: Path, key: str, *, timeout: float = DB_TIMEOUT_SECONDS) -> Self:
        """Open ``db_path`` read-only with ``key`` and Signal's cipher settings.

        Raises:
            DatabaseNotFoundError: If the file does not exist.
            DatabaseLockedError: If the engine reports busy/locked.
            DatabaseOpenError: For anything else, with code DB_KEY_REJECTED
                when the key does not decrypt the file.
        """
        db_path_str = str(db_path)
        if not db_path.exists():
            raise database_not_found(db_path_str)

        hex_key = normalize_key(key)
        uri = f"{db_path.resolve().as_uri()}?mode=ro"

        try:
            conn = sqlcipher.connect(uri, uri=True, timeout=timeout)
        except sqlcipher.Error as e:
            raise cls._open_error(e, db_path_str) from e

        try:
            conn.row_factory = sqlcipher.Row
            conn.execute(f"PRAGMA key = \"x'{hex_key}'\"")
            for pragma, value in CIPHER_PRAGMAS:
                conn.execute(f"PRAGMA {pragma} = {value}")
            conn.execute(PROBE_QUERY).fetchone()
        except sqlcipher.Error as e:
            conn.close()
            raise cls._open_error(e, db_path_str) from e

        session = cls(conn, db_path)
        session.load_self_service_id()
        logger.debug("Opened Signal database at %s", db_path_str)
        return session

    @staticmethod
    def _open_error(e: Exception, db_path: str) -> Exception:
        if _is_lock_error(e):
            return database_locked(db_path, cause=e)
        if _is_not_a_database(e):
            return DatabaseOpenError(
                f"Failed to open Signal database: {e}. "
                "The encryption key is probably wrong.",
                db_path=db_path,
                code=ErrorCode.DB_KEY_REJECTED,
                cause=e,
            )
        return DatabaseOpenError(
            f"Failed to open Signal database: {e}. "
            "Make sure Signal Desktop is closed before accessing.",
            db_path=db_path,
            cause=e,
        )

    @property
    def connection(self) -> Any:
        if self._connection is None:
            raise SignalQueryError(
                "Signal database session is closed",
                db_path=str(self.db_path) if self.db_path else None,
            )
        return self._connection

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    def load_self_service_id(self) -> str | None:
        """Best-effort read of the owner's service id from ``items``.

        Missing table, missing row or malformed JSON leave the id as None.
        """
        try:
            row = self.connection.execute(SELF_ID_QUERY).fetchone()
        except DB_ERRORS as e:
            logger.debug("Self contact info not available: %s", e)
            return None

        if row is None:
            return None

        try:
            data = json.loads(row["json"])
        except (TypeError, ValueError):
            logger.debug("Malformed uuid_id item, self resolution disabled")
            return None

        value = data.get("value") if isinstance(data, dict) else None
        if isinstance(value, str) and value:
            self.self_service_id = _DEVICE_SUFFIX.sub("", value)
        return self.self_service_id

    def _execute(self, query: str, params: Sequence[Any]) -> Any:
        try:
            return self.connection.execute(query, tuple(params))
        except DB_ERRORS as e:
            if _is_lock_error(e):
                raise database_locked(str(self.db_path), cause=e) from e
            raise SignalQueryError(
                f"Signal database query failed: {e}",
                query=query,
                db_path=str(self.db_path) if self.db_path else None,
                cause=e,
            ) from e

    def fetchone(self, query: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        """Run ``query`` and return the first row as a dict, or None."""
        row = self._execute(query, params).fetchone()
        return dict(row) if row is not None else None

    def fetchall(self, query: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run ``query`` and return all rows as dicts."""
        return [dict(row) for row in self._execute(query, params).fetchall()]

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._connection is None:
            return
        try:
            self._connection.close()
        except DB_ERRORS:
            logger.debug("Error closing Signal database connection", exc_info=True)
        finally:
            self._connection = None
            self.self_service_id = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit context manager and close the connection."""
        self.close()
