"""Conversation and message repositories over an open CipherSession.

Neither repository owns the session; SignalDBReader opens and closes it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from contracts.signal import Conversation, FormattedMessage
from signal_mcp.errors import conversation_not_found, validation_non_negative

from .parser import (
    conversation_from_row,
    conversation_row_from_dict,
    format_message,
    message_row_from_dict,
)
from .queries import (
    CONVERSATION_BY_NAME_QUERY,
    CONVERSATIONS_QUERY,
    LIMIT_CLAUSE,
    MESSAGE_COUNT_QUERY,
    MESSAGES_QUERY,
    SEARCH_QUERY,
    like_pattern,
    paginate,
)
from .session import CipherSession

logger = logging.getLogger(__name__)


def parse_chat_filter(chats: str | Iterable[str] | None) -> set[str] | None:
    """Normalize a ``chats`` filter.

    Accepts a comma-separated string or an iterable of ids. Returns None when
    no filter applies.
    """
    if chats is None:
        return None
    items = chats.split(",") if isinstance(chats, str) else chats
    ids = {item.strip() for item in items if item and item.strip()}
    return ids or None


class ConversationRepository:
    """Lists and resolves private and group chats."""

    def __init__(self, session: CipherSession) -> None:
        self.session = session

    def count_messages(self, conversation_id: str) -> int:
        row = self.session.fetchone(MESSAGE_COUNT_QUERY, (conversation_id,))
        return int(row["count"]) if row else 0

    def list_conversations(
        self,
        chats: str | Iterable[str] | None = None,
        include_empty: bool = False,
        include_disappearing: bool = True,
    ) -> list[Conversation]:
        """List chats in storage order.

        Args:
            chats: Only keep chats whose id or service id is listed.
            include_empty: Keep chats with zero messages.
            include_disappearing: Accepted for interface compatibility; no effect.

        Returns:
            Conversations with message counts and resolved display names.
        """
        if not include_disappearing:
            logger.debug("include_disappearing=False has no effect on chat listing")

        conversations = []
        for data in self.session.fetchall(CONVERSATIONS_QUERY):
            row = conversation_row_from_dict(data)
            total = self.count_messages(row.id)
            if total == 0 and not include_empty:
                continue
            conversations.append(conversation_from_row(row, total))

        wanted = parse_chat_filter(chats)
        if wanted is not None:
            conversations = [
                c for c in conversations if c.id in wanted or c.service_id in wanted
            ]

        logger.debug("Listed %d conversations", len(conversations))
        return conversations

    def find_by_name(self, name: str) -> Conversation | None:
        """Find a chat whose name or profile name equals ``name`` exactly.

        Duplicate names resolve to the first row the engine returns.
        """
        data = self.session.fetchone(CONVERSATION_BY_NAME_QUERY, (name, name))
        if data is None:
            return None
        row = conversation_row_from_dict(data)
        return conversation_from_row(row, self.count_messages(row.id))

    def get_by_name(self, name: str) -> Conversation:
        """Like find_by_name, raising ConversationNotFoundError when absent."""
        conversation = self.find_by_name(name)
        if conversation is None:
            raise conversation_not_found(name)
        return conversation


class MessageRepository:
    """Paginated retrieval and substring search within one chat."""

    def __init__(self, session: CipherSession) -> None:
        self.session = session

    def get_messages(
        self,
        conversation_id: str,
        contact_name: str | None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[FormattedMessage]:
        """Messages of a conversation, newest first.

        Args:
            conversation_id: Conversation id.
            contact_name: Display name used as sender for incoming messages.
            limit: Maximum number of messages; None for no limit.
            offset: Number of newest messages to skip.
        """
        if limit is not None and limit < 0:
            raise validation_non_negative("limit", limit)
        if offset < 0:
            raise validation_non_negative("offset", offset)

        query, extra = paginate(MESSAGES_QUERY, limit, offset)
        rows = self.session.fetchall(query, (conversation_id, *extra))
        return self._format_rows(rows, contact_name)

    def search(
        self,
        conversation_id: str,
        contact_name: str | None,
        query: str,
        limit: int | None = None,
    ) -> list[FormattedMessage]:
        """Messages whose body contains ``query``, newest first.

        Matching is the engine's LIKE: ASCII case-insensitive, otherwise exact.
        An empty query matches every message.
        """
        if limit is not None and limit < 0:
            raise validation_non_negative("limit", limit)

        sql = SEARCH_QUERY
        params: tuple[Any, ...] = (conversation_id, like_pattern(query))
        if limit is not None:
            sql += LIMIT_CLAUSE
            params += (limit,)

        rows = self.session.fetchall(sql, params)
        return self._format_rows(rows, contact_name)

    def _format_rows(
        self, rows: list[dict[str, Any]], contact_name: str | None
    ) -> list[FormattedMessage]:
        self_id = self.session.self_service_id
        return [format_message(message_row_from_dict(row), contact_name, self_id) for row in rows]
