"""Signal Desktop database integration.

Provides read-only access to Signal Desktop's SQLCipher-encrypted database.

Example:
    from integrations.signal import SignalDBReader

    with SignalDBReader() as reader:
        if reader.check_access():
            for chat in reader.list_conversations():
                messages = reader.get_messages(chat.name, limit=20)
"""

from .keychain import KEYCHAIN_ITEM_NAME, MacKeychain, SecretStore, default_secret_store
from .keys import KEY_ENV, PASSWORD_ENV, resolve_encryption_key
from .paths import SOURCE_DIR_ENV, database_path, default_source_dir, resolve_source_dir
from .reader import SignalDBReader
from .session import CipherSession

__all__ = [
    "CipherSession",
    "KEY_ENV",
    "KEYCHAIN_ITEM_NAME",
    "MacKeychain",
    "PASSWORD_ENV",
    "SOURCE_DIR_ENV",
    "SecretStore",
    "SignalDBReader",
    "database_path",
    "default_secret_store",
    "default_source_dir",
    "resolve_encryption_key",
    "resolve_source_dir",
]
