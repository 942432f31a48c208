"""Contract interfaces for the Signal MCP server.

Implementations code against these records and protocols, not against the
concrete reader in integrations/signal.
"""

from contracts.signal import (
    Conversation,
    ConversationPayload,
    ConversationRow,
    ConversationType,
    FormattedMessage,
    MessagePayload,
    MessageRow,
    QuotePayload,
    Reaction,
    SignalReader,
    StickerPayload,
)

__all__ = [
    # Raw rows
    "ConversationRow",
    "MessageRow",
    # JSON payloads
    "Reaction",
    "QuotePayload",
    "StickerPayload",
    "MessagePayload",
    "ConversationPayload",
    # Output records
    "ConversationType",
    "Conversation",
    "FormattedMessage",
    # Reader
    "SignalReader",
]
