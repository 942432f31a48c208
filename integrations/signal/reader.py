"""Read-only Signal Desktop database access.

Implements the SignalReader protocol from contracts/signal.py.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any, Self

from contracts.signal import Conversation, FormattedMessage
from signal_mcp.config import SignalMCPConfig, get_config
from signal_mcp.errors import SignalMCPError, database_not_found

from .keychain import SecretStore
from .keys import KEY_ENV, PASSWORD_ENV, resolve_encryption_key
from .paths import database_path, resolve_source_dir
from .repositories import ConversationRepository, MessageRepository
from .session import CipherSession

logger = logging.getLogger(__name__)


class SignalDBReader:
    """Read-only access to Signal Desktop's encrypted database.

    Implements SignalReader protocol from contracts/signal.py.

    The session is opened lazily on the first read, reused for the lifetime
    of the reader, and closed by close() or on context manager exit.

    Example:
        with SignalDBReader() as reader:
            for chat in reader.list_conversations():
                messages = reader.get_messages(chat.name, limit=50)
    """

    def __init__(
        self,
        source_dir: str | Path | None = None,
        key: str | None = None,
        password: str | None = None,
        *,
        secret_store: SecretStore | None = None,
        config: SignalMCPConfig | None = None,
    ) -> None:
        """Initialize the reader.

        Args:
            source_dir: Signal data directory. Falls back to SIGNAL_SOURCE_DIR,
                the configured source_dir, then the platform default.
            key: Database key override. Falls back to SIGNAL_KEY.
            password: Secret-store password override for unwrapping
                encryptedKey. Falls back to SIGNAL_PASSWORD.
            secret_store: Secret store to query. Defaults to the platform store.
            config: Configuration. Defaults to the shared config.
        """
        self.config = config or get_config()
        self.source_dir = resolve_source_dir(source_dir, self.config.source_dir)
        self._key = key or os.environ.get(KEY_ENV) or None
        self._password = password or os.environ.get(PASSWORD_ENV) or None
        self._secret_store = secret_store
        self._session: CipherSession | None = None
        self._conversations: ConversationRepository | None = None
        self._messages: MessageRepository | None = None

    @property
    def db_path(self) -> Path:
        return database_path(self.source_dir)

    @property
    def self_service_id(self) -> str | None:
        """Owner's service id, once a session is open."""
        return self._session.self_service_id if self._session else None

    def _ensure_session(self) -> CipherSession:
        """Open the session on first use.

        Raises:
            DatabaseNotFoundError: If db.sqlite is missing.
            KeyResolutionError: If no usable key can be obtained.
            SignalDatabaseError: If the database cannot be opened.
        """
        if self._session is not None:
            return self._session

        db_path = self.db_path
        if not db_path.exists():
            raise database_not_found(str(db_path))

        key = resolve_encryption_key(
            self.source_dir,
            self._key,
            password=self._password,
            secret_store=self._secret_store,
        )
        session = CipherSession.open(
            db_path, key, timeout=self.config.database.timeout_seconds
        )

        self._session = session
        self._conversations = ConversationRepository(session)
        self._messages = MessageRepository(session)
        logger.info("Signal database session opened: %s", db_path)
        return session

    @property
    def conversations(self) -> ConversationRepository:
        self._ensure_session()
        assert self._conversations is not None
        return self._conversations

    @property
    def messages(self) -> MessageRepository:
        self._ensure_session()
        assert self._messages is not None
        return self._messages

    def close(self) -> None:
        """Close the session. Safe to call more than once."""
        if self._session is not None:
            self._session.close()
            logger.debug("Signal database session closed")
        self._session = None
        self._conversations = None
        self._messages = None

    def __enter__(self) -> Self:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """Exit context manager and close the session."""
        self.close()

    def check_access(self) -> bool:
        """Check that the database can be opened and decrypted.

        Returns:
            True if a session is (or can be) opened, False otherwise.

        Note:
            For error details, call any read method and handle the
            SignalMCPError it raises.
        """
        try:
            self._ensure_session()
            return True
        except SignalMCPError as e:
            logger.warning("Signal database not accessible: %s", e)
            return False

    def list_conversations(
        self,
        chats: str | Iterable[str] | None = None,
        include_empty: bool | None = None,
        include_disappearing: bool | None = None,
    ) -> list[Conversation]:
        """List private and group chats with message counts.

        Unset flags take their values from the configured listing defaults.
        """
        defaults = self.config.defaults
        return self.conversations.list_conversations(
            chats=chats,
            include_empty=defaults.include_empty if include_empty is None else include_empty,
            include_disappearing=(
                defaults.include_disappearing
                if include_disappearing is None
                else include_disappearing
            ),
        )

    def find_conversation(self, name: str) -> Conversation | None:
        """Find a chat by exact name or profile name (first match wins)."""
        return self.conversations.find_by_name(name)

    def get_conversation(self, name: str) -> Conversation:
        """Find a chat by name, raising ConversationNotFoundError if absent."""
        return self.conversations.get_by_name(name)

    def get_messages(
        self, chat_name: str, limit: int | None = None, offset: int = 0
    ) -> list[FormattedMessage]:
        """Get messages from a chat, newest first.

        Returns an empty list when no chat matches ``chat_name``.
        """
        conversation = self.find_conversation(chat_name)
        if conversation is None:
            logger.debug("No chat named %r", chat_name)
            return []
        return self.messages.get_messages(
            conversation.id, conversation.name, limit=limit, offset=offset
        )

    def search(
        self, chat_name: str, query: str, limit: int | None = None
    ) -> list[FormattedMessage]:
        """Substring search within a chat, newest first.

        Returns an empty list when no chat matches ``chat_name``.
        """
        conversation = self.find_conversation(chat_name)
        if conversation is None:
            logger.debug("No chat named %r", chat_name)
            return []
        return self.messages.search(conversation.id, conversation.name, query, limit=limit)
