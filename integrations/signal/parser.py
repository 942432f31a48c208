"""Row parsing and formatting for the Signal database.

Handles:
- Parsing the loosely-typed JSON columns into named optional fields
- Display name fallback for conversations
- Millisecond timestamp rendering
- Formatting message rows into the stable FormattedMessage shape

Nothing here performs I/O. Malformed payloads degrade to empty values.
"""

import json
import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from contracts.signal import (
    Conversation,
    ConversationPayload,
    ConversationRow,
    FormattedMessage,
    MessagePayload,
    MessageRow,
    QuotePayload,
    Reaction,
    StickerPayload,
)

logger = logging.getLogger(__name__)

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

SELF_SENDER = "Me"
UNKNOWN_SENDER = "Unknown"
OUTGOING_TYPE = "outgoing"


def _load_json_object(raw: str | bytes | None) -> dict[str, Any]:
    """Parse a JSON column, returning {} unless it holds an object."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def parse_reactions(raw: Any) -> list[Reaction]:
    """Parse the ``reactions`` array, skipping entries without an emoji."""
    if not isinstance(raw, list):
        return []

    reactions = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        emoji = _str_or_none(item.get("emoji"))
        if emoji is None:
            continue
        reactions.append(
            Reaction(
                emoji=emoji,
                from_id=_str_or_none(item.get("fromId")),
                timestamp=_int_or_none(item.get("timestamp")),
            )
        )
    return reactions


def parse_message_payload(raw: str | bytes | None) -> MessagePayload:
    """Parse ``messages.json``. Each field degrades independently."""
    data = _load_json_object(raw)
    if not data:
        return MessagePayload()

    quote = None
    quote_data = data.get("quote")
    if isinstance(quote_data, dict):
        quote = QuotePayload(text=_str_or_none(quote_data.get("text")))

    sticker = None
    sticker_data = data.get("sticker")
    if isinstance(sticker_data, dict):
        sticker = StickerPayload(
            emoji=_str_or_none(sticker_data.get("emoji")),
            pack_id=_str_or_none(sticker_data.get("packId")),
        )

    return MessagePayload(
        reactions=parse_reactions(data.get("reactions")),
        quote=quote,
        sticker=sticker,
    )


def parse_conversation_payload(raw: str | bytes | None) -> ConversationPayload:
    """Parse the name fields of ``conversations.json``."""
    data = _load_json_object(raw)
    return ConversationPayload(
        name=_str_or_none(data.get("name")),
        profile_name=_str_or_none(data.get("profileName")),
        group_name=_str_or_none(data.get("groupName")),
    )


def resolve_display_name(row: ConversationRow) -> str | None:
    """Display name: name, profile name, then the names embedded in the JSON column."""
    name = row.name or row.profile_name
    if name:
        return name

    payload = parse_conversation_payload(row.json)
    return payload.name or payload.profile_name or payload.group_name


def conversation_from_row(row: ConversationRow, total_messages: int) -> Conversation:
    """Build the Conversation record for a row and its message count."""
    return Conversation(
        id=row.id,
        service_id=row.service_id or row.id,
        name=resolve_display_name(row),
        number=row.number,
        profile_name=row.profile_name,
        type=row.type or "",
        total_messages=total_messages,
    )


def format_timestamp(ms: int | float | None) -> str:
    """Render milliseconds since the Unix epoch as ISO-8601 UTC.

    Uses millisecond precision and a ``Z`` suffix (``2024-01-12T12:00:00.000Z``).
    Returns "" for missing, zero or out-of-range values.
    """
    if not ms:
        return ""
    try:
        dt = UNIX_EPOCH + timedelta(milliseconds=ms)
    except (OverflowError, TypeError, ValueError):
        logger.debug("Timestamp out of range: %r", ms)
        return ""
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_from_self(row: MessageRow, self_service_id: str | None) -> bool:
    """Whether the owner sent the message.

    An unknown owner id never matches; outgoing messages always count.
    """
    if self_service_id is not None and row.source_service_id == self_service_id:
        return True
    return row.type == OUTGOING_TYPE


def format_message(
    row: MessageRow,
    contact_name: str | None,
    self_service_id: str | None = None,
) -> FormattedMessage:
    """Format a raw message row.

    Args:
        row: Message row.
        contact_name: Display name of the conversation, used for incoming messages.
        self_service_id: Owner's service id, if known.

    Returns:
        FormattedMessage with empty strings for absent values.
    """
    payload = parse_message_payload(row.json)

    quote = payload.quote.text if payload.quote and payload.quote.text else ""
    sticker = ""
    if payload.sticker:
        sticker = payload.sticker.emoji or payload.sticker.pack_id or ""

    if is_from_self(row, self_service_id):
        sender = SELF_SENDER
    else:
        sender = contact_name or UNKNOWN_SENDER

    return FormattedMessage(
        date=format_timestamp(row.sent_at or row.timestamp),
        sender=sender,
        body=row.body or "",
        quote=quote,
        sticker=sticker,
        reactions=payload.reactions,
        attachments="yes" if row.has_attachments else "",
    )


def conversation_row_from_dict(data: dict[str, Any]) -> ConversationRow:
    """Build a ConversationRow from a query result mapping."""
    return ConversationRow(
        id=data["id"],
        service_id=data.get("service_id"),
        name=data.get("name"),
        profile_name=data.get("profile_name"),
        number=data.get("number"),
        type=data.get("type"),
        json=data.get("json"),
    )


def message_row_from_dict(data: dict[str, Any]) -> MessageRow:
    """Build a MessageRow from a query result mapping."""
    return MessageRow(
        id=data["id"],
        conversation_id=data["conversation_id"],
        timestamp=data.get("timestamp"),
        sent_at=data.get("sent_at"),
        source=data.get("source"),
        source_service_id=data.get("source_service_id"),
        body=data.get("body"),
        json=data.get("json"),
        has_attachments=data.get("has_attachments"),
        type=data.get("type"),
    )
