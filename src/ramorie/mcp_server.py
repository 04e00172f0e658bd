"""MCP server for ramorie.

Primary interface for agents. Speaks line-delimited JSON-RPC 2.0 over
stdin/stdout, one request at a time, and forwards tool calls to the
ramorie backend through :class:`~ramorie.client.RamorieClient`.

Usage:
    ramorie-mcp                                   # Config from ~/.ramorie/
    ramorie-mcp --config-dir /path/to/.ramorie    # Explicit config directory
    ramorie-mcp --api-url http://localhost:8080/v1
"""

from __future__ import annotations

import argparse
import io
import json
import logging
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    TextContent,
    Tool,
)

from ramorie.client import ApiError, RamorieClient, describe_api_error
from ramorie.core import config_dir, read_config
from ramorie.mcp_tools import decisions, memories, projects, reports, tasks, workspace
from ramorie.mcp_tools.common import Handler, ToolContext, ToolError
from ramorie.normalize import json_default, normalize_result, render_text, replace_non_finite

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

JSONRPC_VERSION = "2.0"
DEFAULT_PROTOCOL_VERSION = "2025-11-25"
SERVER_NAME = "ramorie"
SERVER_VERSION = "0.1.0"
CATALOGUE_VERSION = "2025.11"

# Tool arguments can carry whole documents; anything longer than this is a
# broken stream rather than a request.
MAX_LINE_LENGTH = 8 * 1024 * 1024

SERVER_NOT_INITIALIZED = -32002

_TOOL_MODULES = (tasks, projects, memories, reports, workspace, decisions)
_PRIVILEGED_METHODS = frozenset({"tools/list", "tools/call"})
_NOTIFICATION_PREFIX = "notifications/"

# Pre-serialized so it can be written even when json.dumps is the problem.
_INTERNAL_ERROR_LINE = json.dumps(
    {"jsonrpc": JSONRPC_VERSION, "error": {"code": INTERNAL_ERROR, "message": "Internal error"}}
)


class LineTooLongError(OSError):
    """An input line exceeded :data:`MAX_LINE_LENGTH`; the stream is unusable."""


def catalogue() -> list[Tool]:
    """The full tool catalogue in registration order."""
    tools: list[Tool] = []
    for mod in _TOOL_MODULES:
        tools.extend(mod.register()[0])
    return tools


# ---------------------------------------------------------------------------
# Tool registry
# ---------------------------------------------------------------------------


class ToolRegistry:
    """The fixed tool catalogue plus a name-keyed dispatcher.

    Every handler is invoked through :meth:`call`, which turns validation
    and backend failures into a message instead of an exception.
    """

    def __init__(self, ctx: ToolContext, modules: tuple[Any, ...] = _TOOL_MODULES) -> None:
        self.ctx = ctx
        self.tools: list[Tool] = []
        self._handlers: dict[str, Handler] = {}
        for mod in modules:
            mod_tools, mod_handlers = mod.register()
            for tool in mod_tools:
                if tool.name in self._handlers:
                    msg = f"duplicate tool name: {tool.name}"
                    raise ValueError(msg)
                self._handlers[tool.name] = mod_handlers[tool.name]
            self.tools.extend(mod_tools)

    def names(self) -> list[str]:
        return [t.name for t in self.tools]

    def describe(self) -> list[dict[str, Any]]:
        """Tool descriptors as sent in a ``tools/list`` result."""
        return [t.model_dump(by_alias=True, exclude_none=True) for t in self.tools]

    def call(self, name: str, arguments: dict[str, Any], *, request_id: Any = None) -> tuple[Any, str | None]:
        """Run a tool. Returns ``(result, None)`` or ``(None, error_message)``.

        *request_id* is only used to tie log lines to the JSON-RPC request.
        """
        log_fields = {"rpc_method": "tools/call", "rpc_id": request_id, "tool": name, "args_data": arguments}
        handler = self._handlers.get(name)
        if handler is None:
            logger.warning("tool_error", extra={**log_fields, "error": "tool not implemented"})
            return None, "tool not implemented"

        t0 = time.monotonic()
        try:
            result = handler(self.ctx, arguments)
        except ToolError as exc:
            message = str(exc)
        except ApiError as exc:
            message = describe_api_error(exc)
        except Exception as exc:
            logger.error("tool_error", extra=log_fields, exc_info=True)
            return None, f"internal error: {exc}"
        else:
            duration_ms = round((time.monotonic() - t0) * 1000, 1)
            logger.info("tool_call", extra={**log_fields, "duration_ms": duration_ms})
            return result, None

        logger.warning("tool_error", extra={**log_fields, "error": message})
        return None, message


def build_tool_result(value: Any, error: str | None) -> dict[str, Any]:
    """Shape a dispatcher outcome into a ``tools/call`` result payload.

    Failures become ``isError: true`` with the message as text; successes
    carry the normalized object both as ``structuredContent`` and as its
    JSON text rendering.
    """
    if error is not None:
        text = TextContent(type="text", text=error)
        return {"isError": True, "content": [text.model_dump(exclude_none=True)]}

    payload = replace_non_finite(normalize_result(value))
    text = TextContent(type="text", text=render_text(payload))
    return {
        "isError": False,
        "content": [text.model_dump(exclude_none=True)],
        "structuredContent": payload,
    }


# ---------------------------------------------------------------------------
# Session / protocol
# ---------------------------------------------------------------------------


@dataclass
class Session:
    """Handshake state for one server process. Never reset."""

    initialized: bool = False
    protocol_version: str = DEFAULT_PROTOCOL_VERSION


def _error(request_id: Any, code: int, message: str, *, has_id: bool = True) -> dict[str, Any]:
    response: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
    if has_id:
        response["id"] = request_id
    response["error"] = {"code": code, "message": message}
    return response


def _result(request_id: Any, result: Any, *, has_id: bool = True) -> dict[str, Any]:
    response: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION}
    if has_id:
        response["id"] = request_id
    response["result"] = result
    return response


class McpServer:
    """Routes decoded JSON-RPC messages through the session gate to the registry."""

    def __init__(self, registry: ToolRegistry, session: Session | None = None) -> None:
        self.registry = registry
        self.session = session or Session()

    # -- message level ------------------------------------------------------

    def handle_line(self, line: str) -> dict[str, Any] | None:
        """Decode one input line and return the response, or None for no reply."""
        line = line.strip()
        if not line:
            return None
        try:
            message = json.loads(line)
        except ValueError:
            message = None
        if not isinstance(message, dict) or not isinstance(message.get("method", ""), str):
            logger.warning("parse_error", extra={"error": line[:200]})
            return _error(None, PARSE_ERROR, "Parse error", has_id=False)
        return self.handle_message(message)

    def handle_message(self, message: dict[str, Any]) -> dict[str, Any] | None:
        method: str = message.get("method", "")
        params = message.get("params")
        request_id = message.get("id")
        has_id = "id" in message

        if method == "notifications/initialized":
            self.session.initialized = True
            return None
        if method.startswith(_NOTIFICATION_PREFIX):
            return None

        if method == "initialize":
            return _result(request_id, self._initialize(params), has_id=has_id)
        if method == "ping":
            return _result(request_id, {}, has_id=has_id)
        if method in _PRIVILEGED_METHODS and not self.session.initialized:
            logger.warning("not_initialized", extra={"rpc_method": method, "rpc_id": request_id})
            return _error(request_id, SERVER_NOT_INITIALIZED, "Server not initialized", has_id=has_id)
        if method == "tools/list":
            return _result(request_id, {"tools": self.registry.describe()}, has_id=has_id)
        if method == "tools/call":
            if not isinstance(params, dict):
                return _error(request_id, INVALID_PARAMS, "Invalid params", has_id=has_id)
            name = params.get("name", "")
            arguments = params.get("arguments")
            if arguments is None:
                arguments = {}
            if not isinstance(name, str) or not isinstance(arguments, dict):
                return _error(request_id, INVALID_PARAMS, "Invalid params", has_id=has_id)
            value, error = self.registry.call(name, arguments, request_id=request_id)
            return _result(request_id, build_tool_result(value, error), has_id=has_id)

        logger.warning("method_not_found", extra={"rpc_method": method, "rpc_id": request_id})
        return _error(request_id, METHOD_NOT_FOUND, "Method not found", has_id=has_id)

    def _initialize(self, params: Any) -> dict[str, Any]:
        requested = params.get("protocolVersion") if isinstance(params, dict) else None
        if isinstance(requested, str) and requested.strip():
            self.session.protocol_version = requested.strip()
        return {
            "protocolVersion": self.session.protocol_version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
        }

    # -- stream level -------------------------------------------------------

    def serve(self, stdin: IO[str], stdout: IO[str]) -> None:
        """Serve until end of input.

        Each response is written and flushed before the next line is read.
        Read failures (including :class:`LineTooLongError`) propagate.
        """
        while True:
            line = stdin.readline(MAX_LINE_LENGTH + 1)
            if not line:
                return
            if len(line) > MAX_LINE_LENGTH and not line.endswith("\n"):
                msg = f"input line exceeds {MAX_LINE_LENGTH} characters"
                raise LineTooLongError(msg)
            response = self.handle_line(line)
            if response is not None:
                write_response(stdout, response)


def _internal_error_line(response: dict[str, Any]) -> str:
    fallback = _error(response.get("id"), INTERNAL_ERROR, "Internal error", has_id="id" in response)
    try:
        return json.dumps(fallback, allow_nan=False)
    except (TypeError, ValueError):
        return _INTERNAL_ERROR_LINE


def write_response(stdout: IO[str], response: dict[str, Any]) -> None:
    """Write one response line, falling back to an Internal error line.

    Encoding is strict JSON: NaN and infinities are rejected like any
    other unencodable value. The fallback keeps the request ``id``.
    """
    try:
        encoded = json.dumps(response, default=json_default, allow_nan=False)
    except (TypeError, ValueError):
        logger.error("response_encode_error", extra={"rpc_id": response.get("id")}, exc_info=True)
        encoded = _internal_error_line(response)
    stdout.write(encoded + "\n")
    stdout.flush()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------


def build_context(directory: Path | None = None, api_url: str | None = None) -> ToolContext:
    """Load config and wire the backend client."""
    config = read_config(directory)
    if api_url:
        config.api_url = api_url
    client = RamorieClient(config.api_url, api_key=config.api_key or None)
    return ToolContext(client=client, config=config, config_dir=directory)


def run(directory: Path | None = None, api_url: str | None = None) -> None:
    """Run the stdio server until stdin closes."""
    from ramorie.logging import setup_logging

    log = setup_logging(directory or config_dir())
    ctx = build_context(directory, api_url)
    server = McpServer(ToolRegistry(ctx))
    log.info(
        "mcp_server_start",
        extra={
            "tool": "server",
            "args_data": {"api_url": ctx.config.api_url, "catalogue": CATALOGUE_VERSION},
        },
    )

    stdin = io.TextIOWrapper(sys.stdin.buffer, encoding="utf-8", errors="replace")
    try:
        server.serve(stdin, sys.stdout)
    finally:
        ctx.client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Ramorie MCP server")
    parser.add_argument("--config-dir", type=Path, default=None, help="Config directory (default: ~/.ramorie)")
    parser.add_argument("--api-url", default=None, help="Backend API URL (overrides config)")
    args = parser.parse_args()

    try:
        run(args.config_dir, args.api_url)
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
