"""MCP tool and prompt handlers for Signal Desktop.

Each tool call opens its own SignalDBReader and closes it before returning.
Errors from the integration layer are turned into ToolResult errors with a
remediation hint for the user.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from integrations.signal import SignalDBReader
from signal_mcp.errors import (
    DatabaseLockedError,
    DatabaseNotFoundError,
    DatabaseOpenError,
    ErrorCode,
    KeyResolutionError,
    SecretStoreAccessError,
    SignalMCPError,
    ValidationError,
    validation_required,
)

from .tools import get_prompt_by_name

logger = logging.getLogger(__name__)

DB_NOT_FOUND_HINT = (
    "Signal database not found. Make sure Signal Desktop is installed "
    "and has been run at least once."
)
KEY_HINT = (
    "Could not decrypt Signal database. On macOS, make sure Signal Desktop has been "
    "opened at least once so the key is stored in Keychain. On other platforms, "
    "you may need to provide the encryption key."
)
LOCKED_HINT = "Signal database is locked. Please close Signal Desktop before accessing messages."


@dataclass
class ToolResult:
    """Result from a tool execution."""

    success: bool
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def format_error(error: SignalMCPError) -> str:
    """Render an integration error with remediation text for the user."""
    if isinstance(error, SecretStoreAccessError):
        # Already carries the manual command to run
        return error.message
    if isinstance(error, DatabaseNotFoundError):
        return f"{DB_NOT_FOUND_HINT} {error.message}"
    if isinstance(error, DatabaseLockedError):
        return f"{LOCKED_HINT} {error.message}"
    if isinstance(error, KeyResolutionError):
        return f"{KEY_HINT} ({error.message})"
    if isinstance(error, DatabaseOpenError) and error.code == ErrorCode.DB_KEY_REJECTED:
        return f"{KEY_HINT} ({error.message})"
    return error.message


def _optional_int(params: dict[str, Any], field: str) -> int | None:
    value = params.get(field)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer", field=field, value=value)
    return value


def _optional_bool(params: dict[str, Any], field: str) -> bool | None:
    value = params.get(field)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be a boolean", field=field, value=value)
    return value


def _optional_str(params: dict[str, Any], field: str) -> str | None:
    value = params.get(field)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field, value=value)
    return value


def _required_str(params: dict[str, Any], field: str) -> str:
    value = params.get(field)
    if value is None or value == "":
        raise validation_required(field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field, value=value)
    return value


def _open_reader(params: dict[str, Any]) -> SignalDBReader:
    """Create a reader from the per-call connection options."""
    return SignalDBReader(
        source_dir=_optional_str(params, "source_dir"),
        key=_optional_str(params, "key"),
        password=_optional_str(params, "password"),
    )


def handle_list_chats(params: dict[str, Any]) -> ToolResult:
    """Handle signal_list_chats tool call.

    Args:
        params: Connection options plus chats/include_empty/include_disappearing.

    Returns:
        ToolResult with a list of conversation dicts.
    """
    chats = _optional_str(params, "chats")
    include_empty = _optional_bool(params, "include_empty")
    include_disappearing = _optional_bool(params, "include_disappearing")

    with _open_reader(params) as reader:
        conversations = reader.list_conversations(
            chats=chats,
            include_empty=include_empty,
            include_disappearing=include_disappearing,
        )
        return ToolResult(success=True, data=[c.to_dict() for c in conversations])


def handle_get_chat_messages(params: dict[str, Any]) -> ToolResult:
    """Handle signal_get_chat_messages tool call."""
    chat_name = _required_str(params, "chat_name")
    limit = _optional_int(params, "limit")
    offset = _optional_int(params, "offset") or 0

    with _open_reader(params) as reader:
        messages = reader.get_messages(chat_name, limit=limit, offset=offset)
        return ToolResult(success=True, data=[m.to_dict() for m in messages])


def handle_search_chat(params: dict[str, Any]) -> ToolResult:
    """Handle signal_search_chat tool call."""
    chat_name = _required_str(params, "chat_name")
    query = params.get("query")
    if query is None:
        raise validation_required("query")
    if not isinstance(query, str):
        raise ValidationError("query must be a string", field="query", value=query)
    limit = _optional_int(params, "limit")

    with _open_reader(params) as reader:
        messages = reader.search(chat_name, query, limit=limit)
        return ToolResult(success=True, data=[m.to_dict() for m in messages])


# Tool handler registry
TOOL_HANDLERS: dict[str, Callable[[dict[str, Any]], ToolResult]] = {
    "signal_list_chats": handle_list_chats,
    "signal_get_chat_messages": handle_get_chat_messages,
    "signal_search_chat": handle_search_chat,
}


def execute_tool(name: str, params: dict[str, Any]) -> ToolResult:
    """Execute a tool by name with the given parameters.

    Args:
        name: The tool name to execute.
        params: Parameters to pass to the tool.

    Returns:
        ToolResult with the execution result.
    """
    handler = TOOL_HANDLERS.get(name)
    if not handler:
        return ToolResult(success=False, error=f"Unknown tool: {name}")

    try:
        return handler(params or {})
    except SignalMCPError as e:
        logger.warning("Tool %s failed: %s (code: %s)", name, e.message, e.code)
        return ToolResult(success=False, error=format_error(e))


def get_prompt(name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
    """Render a prompt template into an MCP prompts/get result.

    Raises:
        ValidationError: If the prompt is unknown or a required argument is missing.
    """
    prompt = get_prompt_by_name(name)
    if prompt is None:
        raise ValidationError(f"Unknown prompt: {name}", field="name", value=name)

    arguments = arguments or {}
    values: dict[str, str] = {}
    for argument in prompt["arguments"]:
        arg_name = argument["name"]
        value = arguments.get(arg_name)
        if argument.get("required") and not value:
            raise validation_required(arg_name)
        values[arg_name] = str(value or "")

    return {
        "description": prompt["description"],
        "messages": [
            {
                "role": "user",
                "content": {"type": "text", "text": prompt["template"].format(**values)},
            }
        ],
    }
