"""Utility modules for Signal MCP."""

from signal_mcp.utils.logging import setup_logging

__all__ = ["setup_logging"]
