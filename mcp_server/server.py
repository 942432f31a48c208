"""MCP Server implementation for Signal Desktop.

Implements the Model Context Protocol (MCP) server that exposes read-only
Signal Desktop chats as tools and prompts for MCP clients.

The server communicates via JSON-RPC 2.0 over either:
- stdio (for clients that spawn the server as a subprocess)
- HTTP (optional, requires the ``http`` extra)

Protocol Reference: https://modelcontextprotocol.io/specification
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TextIO

from mcp_server.handlers import execute_tool, get_prompt
from mcp_server.tools import get_prompt_definitions, get_tool_definitions
from signal_mcp import __version__
from signal_mcp.config import get_config
from signal_mcp.errors import SignalMCPError
from signal_mcp.utils.logging import setup_logging

if TYPE_CHECKING:
    from aiohttp import web

logger = logging.getLogger(__name__)

# MCP Protocol version
MCP_PROTOCOL_VERSION = "2024-11-05"

# Server info
SERVER_NAME = "signal-desktop-mcp"
SERVER_VERSION = __version__

# Methods that require a completed initialize handshake
_SESSION_METHODS = frozenset({"tools/list", "tools/call", "prompts/list", "prompts/get"})


@dataclass
class JSONRPCRequest:
    """JSON-RPC 2.0 request."""

    method: str
    params: dict[str, Any] | list[Any] | None = None
    id: int | str | None = None
    jsonrpc: str = "2.0"

    @property
    def is_notification(self) -> bool:
        return self.id is None


@dataclass
class JSONRPCResponse:
    """JSON-RPC 2.0 response."""

    result: Any = None
    error: dict[str, Any] | None = None
    id: int | str | None = None
    jsonrpc: str = "2.0"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return d


class JSONRPCError:
    """JSON-RPC 2.0 error codes."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603


def _error(code: int, message: str, request_id: int | str | None = None) -> JSONRPCResponse:
    return JSONRPCResponse(error={"code": code, "message": message}, id=request_id)


def _text_content(text: str, *, is_error: bool = False) -> dict[str, Any]:
    result: dict[str, Any] = {"content": [{"type": "text", "text": text}]}
    if is_error:
        result["isError"] = True
    return result


class MCPServer:
    """Model Context Protocol server for Signal Desktop.

    Exposes three read-only tools (list chats, get chat messages, search a
    chat) and four prompt templates.
    """

    def __init__(self) -> None:
        """Initialize the MCP server."""
        self._initialized = False
        self._client_info: dict[str, Any] | None = None

    @property
    def initialized(self) -> bool:
        return self._initialized

    def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle the initialize request.

        Args:
            params: Initialize parameters from client.

        Returns:
            Server capabilities response.
        """
        self._client_info = params.get("clientInfo")
        self._initialized = True

        logger.info(
            "MCP server initialized. Client: %s",
            self._client_info.get("name") if self._client_info else "unknown",
        )

        return {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {},
                "prompts": {},
            },
            "serverInfo": {
                "name": SERVER_NAME,
                "version": SERVER_VERSION,
            },
        }

    def _handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        """Handle tools/call request.

        Args:
            params: Request parameters including tool name and arguments.

        Returns:
            Tool execution result as MCP text content.
        """
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if not tool_name:
            return _text_content("Error: Tool name is required", is_error=True)
        if not isinstance(arguments, dict):
            return _text_content("Error: Tool arguments must be an object", is_error=True)

        logger.info("Executing tool: %s", tool_name)
        result = execute_tool(tool_name, arguments)

        if not result.success:
            return _text_content(f"Error: {result.error}", is_error=True)

        if isinstance(result.data, (dict, list)):
            text = json.dumps(result.data, indent=2, ensure_ascii=False, default=str)
        else:
            text = str(result.data)
        return _text_content(text)

    def _handle_prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not name:
            raise ValueError("Prompt name is required")
        return get_prompt(name, params.get("arguments"))

    def handle_request(self, request: JSONRPCRequest) -> JSONRPCResponse | None:
        """Handle a JSON-RPC request.

        Args:
            request: The incoming JSON-RPC request.

        Returns:
            JSON-RPC response or None for notifications.
        """
        method = request.method
        params = request.params or {}
        if isinstance(params, list):
            params = {}

        if method in ("initialized", "notifications/initialized"):
            logger.info("MCP connection established")
            return None

        if method in _SESSION_METHODS and not self._initialized:
            return _error(
                JSONRPCError.INVALID_REQUEST,
                "Server not initialized. Call 'initialize' first.",
                request.id,
            )

        try:
            if method == "initialize":
                result = self._handle_initialize(params)
            elif method == "tools/list":
                result = {"tools": get_tool_definitions()}
            elif method == "tools/call":
                result = self._handle_tools_call(params)
            elif method == "prompts/list":
                result = {"prompts": get_prompt_definitions()}
            elif method == "prompts/get":
                result = self._handle_prompts_get(params)
            elif method == "ping":
                result = {}
            elif method == "shutdown":
                logger.info("Shutdown requested")
                result = {}
            else:
                if request.is_notification:
                    logger.debug("Ignoring notification: %s", method)
                    return None
                return _error(
                    JSONRPCError.METHOD_NOT_FOUND, f"Method not found: {method}", request.id
                )
        except (SignalMCPError, ValueError) as e:
            message = e.message if isinstance(e, SignalMCPError) else str(e)
            return _error(JSONRPCError.INVALID_PARAMS, message, request.id)
        except Exception as e:
            logger.exception("Error handling request: %s", method)
            return _error(JSONRPCError.INTERNAL_ERROR, str(e), request.id)

        return JSONRPCResponse(result=result, id=request.id)

    def parse_request(self, data: str) -> JSONRPCRequest | JSONRPCResponse:
        """Parse a JSON-RPC request from string.

        Args:
            data: JSON string containing the request.

        Returns:
            Parsed JSONRPCRequest or JSONRPCResponse (error).
        """
        try:
            obj = json.loads(data)
        except json.JSONDecodeError as e:
            return _error(JSONRPCError.PARSE_ERROR, f"Parse error: {e}")

        if not isinstance(obj, dict):
            return _error(JSONRPCError.INVALID_REQUEST, "Request must be an object")

        if "method" not in obj:
            return _error(JSONRPCError.INVALID_REQUEST, "Missing 'method' field", obj.get("id"))

        return JSONRPCRequest(
            method=obj["method"],
            params=obj.get("params"),
            id=obj.get("id"),
            jsonrpc=obj.get("jsonrpc", "2.0"),
        )

    def process_line(self, line: str) -> JSONRPCResponse | None:
        """Parse and handle one raw message."""
        parsed = self.parse_request(line)
        if isinstance(parsed, JSONRPCResponse):
            return parsed
        return self.handle_request(parsed)


class StdioTransport:
    """Stdio transport for MCP server.

    Reads JSON-RPC messages from stdin and writes responses to stdout.
    Uses newline-delimited JSON format.
    """

    def __init__(
        self,
        server: MCPServer,
        input_stream: TextIO | None = None,
        output_stream: TextIO | None = None,
    ) -> None:
        """Initialize the stdio transport.

        Args:
            server: The MCP server instance.
            input_stream: Input stream (default: sys.stdin).
            output_stream: Output stream (default: sys.stdout).
        """
        self.server = server
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout
        self._running = False

    def send_response(self, response: JSONRPCResponse) -> None:
        """Send a JSON-RPC response.

        Args:
            response: The response to send.
        """
        try:
            data = json.dumps(response.to_dict(), ensure_ascii=False, default=str)
            self.output_stream.write(data + "\n")
            self.output_stream.flush()
        except (OSError, TypeError, ValueError) as e:
            logger.error("Error sending response: %s", e)

    def run(self) -> None:
        """Run the stdio transport, processing messages until EOF."""
        self._running = True
        logger.info("Signal MCP server starting on stdio")

        while self._running:
            try:
                line = self.input_stream.readline()
                if not line:
                    logger.info("EOF received, shutting down")
                    break

                line = line.strip()
                if not line:
                    continue

                response = self.server.process_line(line)
                if response is not None:
                    self.send_response(response)

            except KeyboardInterrupt:
                logger.info("Interrupted, shutting down")
                break

        self._running = False

    def stop(self) -> None:
        """Stop the transport."""
        self._running = False


def build_http_app(server: MCPServer | None = None) -> web.Application:
    """Build the aiohttp application serving JSON-RPC over POST.

    Routes: POST / and POST /mcp take one JSON-RPC message each; GET /health
    reports the server name and version.
    """
    from aiohttp import web

    server = server or MCPServer()

    async def handle_request(request: web.Request) -> web.Response:
        """Handle HTTP POST request."""
        data = await request.text()
        # Tool calls block on SQLCipher; keep the event loop free
        response = await asyncio.to_thread(server.process_line, data)
        if response is None:
            return web.Response(status=202)
        return web.json_response(response.to_dict())

    async def handle_health(request: web.Request) -> web.Response:
        """Handle health check endpoint."""
        return web.json_response({"status": "ok", "server": SERVER_NAME, "version": SERVER_VERSION})

    app = web.Application()
    app.router.add_post("/", handle_request)
    app.router.add_post("/mcp", handle_request)
    app.router.add_get("/health", handle_health)
    return app


async def run_http_server(host: str = "127.0.0.1", port: int = 8765) -> None:
    """Run the MCP server over HTTP.

    Args:
        host: Host address to bind to.
        port: Port number to bind to.
    """
    try:
        from aiohttp import web
    except ImportError:
        logger.error(
            "aiohttp is required for HTTP transport. Install with: pip install 'signal-mcp[http]'"
        )
        return

    runner = web.AppRunner(build_http_app())
    await runner.setup()

    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info("Signal MCP server running on http://%s:%d", host, port)
    logger.info("MCP endpoint: http://%s:%d/mcp", host, port)

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await runner.cleanup()


def run_stdio() -> None:
    """Run the MCP server over stdio."""
    server = MCPServer()
    transport = StdioTransport(server)
    transport.run()


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="signal-mcp",
        description="Signal Desktop MCP Server - read-only access to Signal chats over MCP",
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport mode (default: stdio)",
    )
    parser.add_argument(
        "--host",
        default=config.server.host,
        help=f"Host address for HTTP transport (default: {config.server.host})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.server.port,
        help=f"Port number for HTTP transport (default: {config.server.port})",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the MCP server."""
    args = build_parser().parse_args(argv)
    setup_logging(get_config().logging.level, verbose=args.verbose)

    if args.transport == "stdio":
        run_stdio()
    else:
        try:
            asyncio.run(run_http_server(args.host, args.port))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
