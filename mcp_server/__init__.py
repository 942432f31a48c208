"""Signal Desktop MCP Server - Model Context Protocol server for Signal chats.

This module provides an MCP-compliant server that exposes read-only Signal
Desktop data as tools that MCP clients can call.

Available tools:
- signal_list_chats: List private and group chats with message counts
- signal_get_chat_messages: Get messages from a chat, newest first
- signal_search_chat: Search message bodies within a chat

Available prompts:
- signal_summarize_chat_prompt
- signal_chat_topic_prompt
- signal_chat_sentiment_prompt
- signal_search_chat_prompt

Usage:
    # Start the MCP server
    signal-mcp

    # Or run directly
    python -m mcp_server.server
"""

from mcp_server.server import MCPServer

__all__ = ["MCPServer"]
