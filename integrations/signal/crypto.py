"""Unwrap Signal's safeStorage-encrypted database key.

Signal Desktop (Electron safeStorage on macOS) stores ``encryptedKey`` in
config.json as hex. The decoded blob is ``b"v10"`` followed by AES-128-CBC
ciphertext whose key is PBKDF2-HMAC-SHA1 of the keychain password. Every
constant below is fixed by that format.
"""

from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from signal_mcp.errors import DecryptionFailedError, MalformedKeyBlobError

VERSION_TAG = b"v10"
KDF_SALT = b"saltysalt"
KDF_ITERATIONS = 1003
KDF_KEY_LENGTH = 16
IV = b" " * 16


def derive_key(password: bytes | str) -> bytes:
    """Derive the 16-byte AES key from the keychain password."""
    if isinstance(password, str):
        password = password.encode("utf-8")
    return hashlib.pbkdf2_hmac("sha1", password, KDF_SALT, KDF_ITERATIONS, KDF_KEY_LENGTH)


def unwrap_key(password: bytes | str, blob: bytes) -> str:
    """Decrypt an encrypted key blob.

    Args:
        password: Secret from the platform secret store.
        blob: Raw blob bytes, starting with the version tag.

    Returns:
        The decrypted plaintext (the database key as hex text).

    Raises:
        MalformedKeyBlobError: If the blob does not start with ``v10``.
        DecryptionFailedError: On bad padding, bad block length or non-UTF-8
            plaintext (wrong password or corrupt blob).
    """
    if blob[: len(VERSION_TAG)] != VERSION_TAG:
        raise MalformedKeyBlobError(details={"prefix": blob[: len(VERSION_TAG)].hex()})

    ciphertext = blob[len(VERSION_TAG) :]
    decryptor = Cipher(algorithms.AES(derive_key(password)), modes.CBC(IV)).decryptor()
    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()

    try:
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
    except ValueError as e:
        raise DecryptionFailedError(
            "Failed to decrypt the Signal encryption key (wrong password or corrupted key)",
            cause=e,
        ) from e


def unwrap_hex_key(password: bytes | str, blob_hex: str) -> str:
    """Decrypt the hex-encoded ``encryptedKey`` value from config.json.

    Raises:
        MalformedKeyBlobError: If ``blob_hex`` is not valid hex or lacks the tag.
        DecryptionFailedError: See unwrap_key.
    """
    try:
        blob = bytes.fromhex(blob_hex.strip())
    except ValueError as e:
        raise MalformedKeyBlobError("Encrypted key is not valid hex", cause=e) from e
    return unwrap_key(password, blob)
