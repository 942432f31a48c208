"""Shared test helpers: Signal-shaped databases and key blobs."""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from integrations.signal.crypto import IV, VERSION_TAG, derive_key
from integrations.signal.queries import CIPHER_PRAGMAS
from integrations.signal.session import CipherSession

TEST_KEY = "0123456789abcdef" * 4
SELF_SERVICE_ID = "svc-me"

# 2024-01-12T12:00:00.000Z
BASE_TS = 1705060800000

SCHEMA = """
CREATE TABLE conversations (
    id TEXT PRIMARY KEY,
    serviceId TEXT,
    name TEXT,
    profileName TEXT,
    e164 TEXT,
    type TEXT,
    json TEXT
);
CREATE TABLE messages (
    id TEXT PRIMARY KEY,
    conversationId TEXT,
    timestamp INTEGER,
    sent_at INTEGER,
    source TEXT,
    sourceServiceId TEXT,
    body TEXT,
    json TEXT,
    hasAttachments INTEGER,
    type TEXT
);
CREATE TABLE items (
    id TEXT PRIMARY KEY,
    json TEXT
);
"""

CONVERSATIONS: list[tuple[Any, ...]] = [
    ("conv-alice", "svc-alice", "Alice", "Alice Smith", "+15550001111", "private", "{}"),
    ("conv-bob", None, None, "Bobby", "+15550002222", "private", None),
    ("conv-family", None, None, None, None, "group", json.dumps({"groupName": "Family"})),
    ("conv-story", None, "Stories", None, None, "story", None),
]

MESSAGES: list[tuple[Any, ...]] = [
    (
        "msg-1",
        "conv-alice",
        BASE_TS,
        BASE_TS,
        "+15550001111",
        "svc-alice",
        "Hello there",
        "{}",
        0,
        "incoming",
    ),
    (
        "msg-2",
        "conv-alice",
        BASE_TS + 60_000,
        BASE_TS + 60_000,
        None,
        SELF_SERVICE_ID,
        "Hi Alice! 100% sure",
        json.dumps(
            {
                "reactions": [
                    {"emoji": "👍", "fromId": "conv-alice", "timestamp": BASE_TS + 70_000},
                    {"fromId": "conv-alice"},
                ]
            }
        ),
        0,
        "outgoing",
    ),
    (
        "msg-3",
        "conv-alice",
        BASE_TS + 120_000,
        None,
        "+15550001111",
        "svc-alice",
        "Look at this_file",
        json.dumps(
            {
                "quote": {"text": "Hi Alice! 100% sure", "authorAci": SELF_SERVICE_ID},
                "sticker": {"emoji": "🎉", "packId": "pack-1"},
            }
        ),
        1,
        "incoming",
    ),
    (
        "msg-4",
        "conv-family",
        BASE_TS + 180_000,
        BASE_TS + 180_000,
        None,
        "svc-bob",
        None,
        "not json",
        None,
        "incoming",
    ),
    (
        "msg-5",
        "conv-story",
        BASE_TS,
        BASE_TS,
        None,
        "svc-alice",
        "story",
        None,
        0,
        "story",
    ),
]


def populate(
    conn: Any,
    conversations: list[tuple[Any, ...]] | None = None,
    messages: list[tuple[Any, ...]] | None = None,
    self_service_id: str | None = SELF_SERVICE_ID,
) -> None:
    """Create the Signal tables on ``conn`` and insert fixture rows."""
    conn.executescript(SCHEMA)
    conn.executemany(
        "INSERT INTO conversations VALUES (?, ?, ?, ?, ?, ?, ?)",
        CONVERSATIONS if conversations is None else conversations,
    )
    conn.executemany(
        "INSERT INTO messages VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
        MESSAGES if messages is None else messages,
    )
    if self_service_id is not None:
        conn.execute(
            "INSERT INTO items VALUES ('uuid_id', ?)",
            (json.dumps({"id": "uuid_id", "value": f"{self_service_id}.1"}),),
        )
    conn.commit()


def memory_session(**populate_kwargs: Any) -> CipherSession:
    """Plain in-memory sqlite3 database wrapped in a CipherSession."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    populate(conn, **populate_kwargs)
    session = CipherSession(conn)
    session.load_self_service_id()
    return session


def create_encrypted_db(db_path: Path, key: str = TEST_KEY, **populate_kwargs: Any) -> Path:
    """Write a SQLCipher database with Signal's cipher settings."""
    from sqlcipher3 import dbapi2 as sqlcipher

    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlcipher.connect(str(db_path))
    try:
        conn.execute(f"PRAGMA key = \"x'{key}'\"")
        for pragma, value in CIPHER_PRAGMAS:
            conn.execute(f"PRAGMA {pragma} = {value}")
        populate(conn, **populate_kwargs)
    finally:
        conn.close()
    return db_path


def encrypt_key_blob(password: str, plaintext: str) -> bytes:
    """Build a ``v10`` blob the way Electron safeStorage does."""
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(derive_key(password)), modes.CBC(IV)).encryptor()
    return VERSION_TAG + encryptor.update(padded) + encryptor.finalize()


def write_signal_config(source_dir: Path, **data: Any) -> Path:
    """Write Signal's own config.json into ``source_dir``."""
    source_dir.mkdir(parents=True, exist_ok=True)
    path = source_dir / "config.json"
    path.write_text(json.dumps(data))
    return path


class FakeSecretStore:
    """SecretStore returning a fixed password and counting lookups."""

    item_name = "Signal Safe Storage"
    manual_command = 'security find-generic-password -ws "Signal Safe Storage"'

    def __init__(self, password: str = "hunter2", error: Exception | None = None) -> None:
        self.password = password
        self.error = error
        self.calls = 0

    def get_password(self) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.password
