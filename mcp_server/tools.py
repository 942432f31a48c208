"""MCP tool and prompt definitions with JSON schemas.

Defines the tools and prompt templates exposed by the Signal MCP server
following the Model Context Protocol specification.

Each tool has:
- name: Unique identifier for the tool
- description: Human-readable description
- inputSchema: JSON Schema for the tool's parameters

Each prompt has a name, description, arguments and a message template.
"""

from typing import Any

# Options accepted by every tool
_COMMON_PROPERTIES: dict[str, Any] = {
    "source_dir": {
        "type": "string",
        "description": "Path to the Signal Desktop data directory (default: platform location)",
    },
    "password": {
        "type": "string",
        "description": (
            "Secret-store password used to decrypt encryptedKey. "
            "Use when the keychain cannot be reached from a sandbox."
        ),
    },
    "key": {
        "type": "string",
        "description": "Database encryption key as hex (overrides config.json)",
    },
    "chats": {
        "type": "string",
        "description": "Comma-separated list of conversation ids or service ids to include",
    },
    "include_empty": {
        "type": "boolean",
        "description": "Include chats with no messages (default: false)",
        "default": False,
    },
    "include_disappearing": {
        "type": "boolean",
        "description": "Include disappearing messages (default: true)",
        "default": True,
    },
}


def _schema(properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {**properties, **_COMMON_PROPERTIES},
    }
    if required:
        schema["required"] = required
    return schema


# Tool definitions following MCP specification
TOOLS: list[dict[str, Any]] = [
    {
        "name": "signal_list_chats",
        "description": (
            "List Signal Desktop chats (private and group) with their ids, "
            "display names and message counts."
        ),
        "inputSchema": _schema({}),
    },
    {
        "name": "signal_get_chat_messages",
        "description": (
            "Get messages from a Signal chat by name, newest first. "
            "Returns date, sender, body, quote, sticker, reactions and an attachment marker."
        ),
        "inputSchema": _schema(
            {
                "chat_name": {
                    "type": "string",
                    "description": "Name or profile name of the chat (required)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of messages to return (default: all)",
                    "minimum": 0,
                },
                "offset": {
                    "type": "integer",
                    "description": "Number of newest messages to skip (default: 0)",
                    "default": 0,
                    "minimum": 0,
                },
            },
            required=["chat_name"],
        ),
    },
    {
        "name": "signal_search_chat",
        "description": (
            "Search for text within a Signal chat. Matches message bodies as a "
            "substring (ASCII case-insensitive), newest first."
        ),
        "inputSchema": _schema(
            {
                "chat_name": {
                    "type": "string",
                    "description": "Name or profile name of the chat (required)",
                },
                "query": {
                    "type": "string",
                    "description": "Text to search for (required)",
                },
                "limit": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: all)",
                    "minimum": 0,
                },
            },
            required=["chat_name", "query"],
        ),
    },
]

_CHAT_NAME_ARGUMENT = {
    "name": "chat_name",
    "description": "Name of the Signal chat",
    "required": True,
}

# Prompt definitions following MCP specification
PROMPTS: list[dict[str, Any]] = [
    {
        "name": "signal_summarize_chat_prompt",
        "description": "Summarize the recent messages in a Signal chat",
        "arguments": [_CHAT_NAME_ARGUMENT],
        "template": "Summarize the recent messages in the Signal chat named '{chat_name}'.",
    },
    {
        "name": "signal_chat_topic_prompt",
        "description": "Identify the topics of discussion in a Signal chat",
        "arguments": [_CHAT_NAME_ARGUMENT],
        "template": "What are the topics of discussion in the Signal chat named '{chat_name}'?",
    },
    {
        "name": "signal_chat_sentiment_prompt",
        "description": "Analyze the sentiment of messages in a Signal chat",
        "arguments": [_CHAT_NAME_ARGUMENT],
        "template": "Analyze the sentiment of messages in the Signal chat named '{chat_name}'.",
    },
    {
        "name": "signal_search_chat_prompt",
        "description": "Search for text in a Signal chat",
        "arguments": [
            _CHAT_NAME_ARGUMENT,
            {"name": "query", "description": "Text to search for", "required": True},
        ],
        "template": "Search for the text '{query}' in the Signal chat named '{chat_name}'.",
    },
]


def get_tool_definitions() -> list[dict[str, Any]]:
    """Get all tool definitions.

    Returns:
        List of tool definition dictionaries following MCP specification.
    """
    return TOOLS


def get_tool_by_name(name: str) -> dict[str, Any] | None:
    """Get a specific tool definition by name.

    Args:
        name: The tool name to look up.

    Returns:
        Tool definition dictionary or None if not found.
    """
    for tool in TOOLS:
        if tool["name"] == name:
            return tool
    return None


def get_prompt_definitions() -> list[dict[str, Any]]:
    """Get all prompt definitions, without their templates."""
    return [{k: v for k, v in prompt.items() if k != "template"} for prompt in PROMPTS]


def get_prompt_by_name(name: str) -> dict[str, Any] | None:
    """Get a specific prompt definition (template included) by name."""
    for prompt in PROMPTS:
        if prompt["name"] == name:
            return prompt
    return None
