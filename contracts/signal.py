"""Signal Desktop database interfaces.

Rows read from the encrypted store, the loosely-typed JSON payloads they
embed, and the output records handed to MCP clients.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol

ConversationType = Literal["private", "group"]


@dataclass
class Reaction:
    """Emoji reaction attached to a message.

    Attributes:
        emoji: Reaction emoji.
        from_id: Conversation id of the reacting contact.
        timestamp: When the reaction was sent (ms since epoch).
    """

    emoji: str
    from_id: str | None = None
    timestamp: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"emoji": self.emoji, "fromId": self.from_id, "timestamp": self.timestamp}


@dataclass
class QuotePayload:
    """Quoted excerpt of an earlier message."""

    text: str | None = None


@dataclass
class StickerPayload:
    """Sticker descriptor. Either field may be missing."""

    emoji: str | None = None
    pack_id: str | None = None


@dataclass
class MessagePayload:
    """Parsed ``messages.json`` column.

    Every field is optional; a malformed column yields an empty payload.
    """

    reactions: list[Reaction] = field(default_factory=list)
    quote: QuotePayload | None = None
    sticker: StickerPayload | None = None


@dataclass
class ConversationPayload:
    """Parsed ``conversations.json`` column (name fields only)."""

    name: str | None = None
    profile_name: str | None = None
    group_name: str | None = None


@dataclass
class ConversationRow:
    """Raw row from the ``conversations`` table."""

    id: str
    service_id: str | None
    name: str | None
    profile_name: str | None
    number: str | None
    type: str | None
    json: str | None = None


@dataclass
class MessageRow:
    """Raw row from the ``messages`` table.

    Attributes:
        id: Message identifier.
        conversation_id: Owning conversation id.
        timestamp: Primary timestamp (ms since epoch).
        sent_at: "Sent at" timestamp, preferred when present and non-zero.
        source: Legacy sender identifier (phone number).
        source_service_id: Sender service identifier.
        body: Message text.
        json: Embedded JSON payload (reactions, quote, sticker).
        has_attachments: Attachment flag as stored (0/1 or NULL).
        type: Direction tag, e.g. "incoming" or "outgoing".
    """

    id: str
    conversation_id: str
    timestamp: int | None = None
    sent_at: int | None = None
    source: str | None = None
    source_service_id: str | None = None
    body: str | None = None
    json: str | None = None
    has_attachments: int | bool | None = None
    type: str | None = None


@dataclass
class Conversation:
    """Signal chat summary.

    Attributes:
        id: Conversation identifier.
        service_id: Service identifier (falls back to ``id``).
        name: Resolved display name, or None when nothing is known.
        number: Phone number (e164) for private chats.
        profile_name: Profile name as stored.
        type: "private" or "group".
        total_messages: Number of messages in the conversation.
    """

    id: str
    service_id: str
    name: str | None
    number: str | None
    profile_name: str | None
    type: ConversationType
    total_messages: int

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if self.total_messages < 0:
            msg = f"total_messages must be >= 0, got {self.total_messages}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the field names existing clients expect."""
        return {
            "id": self.id,
            "serviceId": self.service_id,
            "name": self.name,
            "number": self.number,
            "profileName": self.profile_name,
            "type": self.type,
            "totalMessages": self.total_messages,
        }


@dataclass
class FormattedMessage:
    """Stable output shape for a message.

    Absent values are empty strings rather than None, and ``attachments`` is
    ``"yes"`` or ``""``. Downstream consumers depend on both conventions.
    """

    date: str
    sender: str
    body: str = ""
    quote: str = ""
    sticker: str = ""
    reactions: list[Reaction] = field(default_factory=list)
    attachments: str = ""

    def __post_init__(self) -> None:
        """Validate field constraints."""
        if self.attachments not in ("yes", ""):
            msg = f"attachments must be 'yes' or '', got {self.attachments!r}"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "sender": self.sender,
            "body": self.body,
            "quote": self.quote,
            "sticker": self.sticker,
            "reactions": [reaction.to_dict() for reaction in self.reactions],
            "attachments": self.attachments,
        }


class SignalReader(Protocol):
    """Interface for read-only Signal Desktop access."""

    def check_access(self) -> bool:
        """Check whether the database can be opened and decrypted."""
        ...

    def list_conversations(
        self,
        chats: str | None = None,
        include_empty: bool | None = None,
        include_disappearing: bool | None = None,
    ) -> list[Conversation]:
        """List private and group chats with message counts."""
        ...

    def find_conversation(self, name: str) -> Conversation | None:
        """Find a chat by exact name or profile name."""
        ...

    def get_messages(
        self, chat_name: str, limit: int | None = None, offset: int = 0
    ) -> list[FormattedMessage]:
        """Get messages from a chat, newest first."""
        ...

    def search(
        self, chat_name: str, query: str, limit: int | None = None
    ) -> list[FormattedMessage]:
        """Substring search within a chat, newest first."""
        ...

    def close(self) -> None:
        """Release the database session."""
        ...
