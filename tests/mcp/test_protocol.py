"""Tests for the JSON-RPC session state machine and the stdio framing loop."""

from __future__ import annotations

import io
import json
from typing import Any

import pytest

import ramorie.mcp_server as mcp_server
from ramorie.client import ApiError
from ramorie.mcp_server import (
    DEFAULT_PROTOCOL_VERSION,
    SERVER_NOT_INITIALIZED,
    LineTooLongError,
    McpServer,
    write_response,
)
from tests.mcp._helpers import _parse, tool_call


def _request(method: str, params: Any = None, request_id: Any = 1) -> dict[str, Any]:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return message


class _RecordingWriter(io.StringIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


def _reject_constant(token: str) -> Any:
    raise ValueError(f"non-standard JSON constant: {token}")


# ---------------------------------------------------------------------------
# Handshake
# ---------------------------------------------------------------------------


class TestInitialize:
    def test_requested_version_is_negotiated(self, server: McpServer) -> None:
        resp = server.handle_message(_request("initialize", {"protocolVersion": "2024-01-01"}))
        assert resp is not None
        assert resp["result"]["protocolVersion"] == "2024-01-01"

    def test_absent_version_uses_default(self, server: McpServer) -> None:
        resp = server.handle_message(_request("initialize", {"capabilities": {}}))
        assert resp is not None
        assert resp["result"]["protocolVersion"] == DEFAULT_PROTOCOL_VERSION

    def test_blank_version_uses_default(self, server: McpServer) -> None:
        resp = server.handle_message(_request("initialize", {"protocolVersion": "   "}))
        assert resp is not None
        assert resp["result"]["protocolVersion"] == DEFAULT_PROTOCOL_VERSION

    def test_missing_params_uses_default(self, server: McpServer) -> None:
        resp = server.handle_message(_request("initialize"))
        assert resp is not None
        assert resp["result"]["protocolVersion"] == DEFAULT_PROTOCOL_VERSION

    def test_advertises_tools_capability_and_identity(self, server: McpServer) -> None:
        resp = server.handle_message(_request("initialize", {}, request_id="abc"))
        assert resp is not None
        assert resp["id"] == "abc"
        assert resp["jsonrpc"] == "2.0"
        assert resp["result"]["capabilities"] == {"tools": {}}
        assert resp["result"]["serverInfo"]["name"] == "ramorie"
        assert "error" not in resp

    def test_initialize_does_not_open_the_gate(self, server: McpServer) -> None:
        server.handle_message(_request("initialize", {}))
        assert server.session.initialized is False
        resp = server.handle_message(_request("tools/list"))
        assert resp is not None
        assert resp["error"]["code"] == SERVER_NOT_INITIALIZED

    def test_initialized_notification_has_no_response(self, server: McpServer) -> None:
        resp = server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"})
        assert resp is None
        assert server.session.initialized is True

    def test_initialized_notification_is_idempotent(self, server: McpServer) -> None:
        for _ in range(2):
            assert server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"}) is None
        assert server.session.initialized is True


# ---------------------------------------------------------------------------
# Session gate
# ---------------------------------------------------------------------------


class TestSessionGate:
    @pytest.mark.parametrize("request_id", [1, "req-7", None])
    def test_tools_list_before_initialized(self, server: McpServer, request_id: Any) -> None:
        resp = server.handle_message(_request("tools/list", request_id=request_id))
        assert resp is not None
        assert resp["error"] == {"code": -32002, "message": "Server not initialized"}
        assert resp["id"] == request_id
        assert "result" not in resp

    @pytest.mark.parametrize("tool_name", ["create_task", "list_projects", "no_such_tool"])
    def test_tools_call_before_initialized(self, server: McpServer, tool_name: str) -> None:
        resp = server.handle_message(tool_call(tool_name, {}))
        assert resp is not None
        assert resp["error"]["code"] == -32002

    def test_tools_list_after_handshake(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(_request("tools/list"))
        assert resp is not None
        tools = resp["result"]["tools"]
        assert len(tools) == 57
        assert tools[0]["name"] == "create_task"
        assert tools[-1]["name"] == "delete_decision"
        for tool in tools:
            assert set(tool) >= {"name", "description", "inputSchema"}
            assert tool["inputSchema"]["type"] == "object"

    def test_tool_names_unique(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(_request("tools/list"))
        assert resp is not None
        names = [t["name"] for t in resp["result"]["tools"]]
        assert len(names) == len(set(names))


class TestPing:
    def test_ping_before_handshake(self, server: McpServer) -> None:
        resp = server.handle_message(_request("ping", request_id=9))
        assert resp == {"jsonrpc": "2.0", "id": 9, "result": {}}
        assert server.session.initialized is False

    def test_ping_after_handshake(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(_request("ping"))
        assert resp is not None
        assert resp["result"] == {}
        assert ready_server.session.initialized is True


class TestMethodRouting:
    def test_unknown_method_uninitialized(self, server: McpServer) -> None:
        resp = server.handle_message(_request("resources/list"))
        assert resp is not None
        assert resp["error"] == {"code": -32601, "message": "Method not found"}

    def test_unknown_method_initialized(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(_request("prompts/get", request_id=3))
        assert resp is not None
        assert resp["id"] == 3
        assert resp["error"]["code"] == -32601

    def test_missing_method_is_not_found(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message({"jsonrpc": "2.0", "id": 4})
        assert resp is not None
        assert resp["error"]["code"] == -32601

    def test_other_notifications_are_silent(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message({"jsonrpc": "2.0", "method": "notifications/cancelled", "params": {}})
        assert resp is None

    def test_null_id_is_echoed(self, server: McpServer) -> None:
        resp = server.handle_message(_request("ping", request_id=None))
        assert resp is not None
        assert "id" in resp
        assert resp["id"] is None

    def test_absent_id_is_omitted(self, server: McpServer) -> None:
        resp = server.handle_message({"jsonrpc": "2.0", "method": "ping"})
        assert resp is not None
        assert "id" not in resp
        assert resp["result"] == {}


# ---------------------------------------------------------------------------
# tools/call envelope
# ---------------------------------------------------------------------------


class TestToolsCall:
    def test_missing_required_argument_is_soft_failure(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(tool_call("create_task", {"description": ""}))
        assert resp is not None
        assert "error" not in resp
        result = resp["result"]
        assert result["isError"] is True
        assert "description is required" in result["content"][0]["text"]
        assert "structuredContent" not in result

    def test_unknown_tool_is_soft_failure(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(tool_call("frobnicate", {}))
        assert resp is not None
        assert "error" not in resp
        assert resp["result"]["isError"] is True
        assert resp["result"]["content"][0]["text"] == "tool not implemented"

    def test_success_carries_structured_and_text(self, ready_server: McpServer, fake_client: Any) -> None:
        fake_client.add_project("alpha")
        resp = ready_server.handle_message(tool_call("list_projects", {}))
        assert resp is not None
        result = resp["result"]
        assert result["isError"] is False
        assert result["structuredContent"]["count"] == 1
        assert result["structuredContent"]["items"][0]["name"] == "alpha"
        assert _parse(result) == result["structuredContent"]

    def test_none_result_is_wrapped(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(tool_call("get_active_task", {}))
        assert resp is not None
        assert resp["result"]["structuredContent"] == {"data": None}

    def test_absent_arguments_default_to_empty(self, ready_server: McpServer) -> None:
        resp = ready_server.handle_message(tool_call("list_contexts"))
        assert resp is not None
        assert resp["result"]["isError"] is False

    @pytest.mark.parametrize(
        "params",
        [None, [], "create_task", {"name": 42}, {"name": "create_task", "arguments": ["x"]}],
        ids=["absent", "array", "string", "non-string-name", "array-arguments"],
    )
    def test_malformed_params_are_invalid(self, ready_server: McpServer, params: Any) -> None:
        message = _request("tools/call", params, request_id=11)
        resp = ready_server.handle_message(message)
        assert resp is not None
        assert resp["id"] == 11
        assert resp["error"] == {"code": -32602, "message": "Invalid params"}

    def test_backend_failure_is_soft(self, ready_server: McpServer, fake_client: Any) -> None:
        fake_client.failures["list_projects"] = ApiError("boom", 503)
        resp = ready_server.handle_message(tool_call("list_projects", {}))
        assert resp is not None
        assert resp["result"]["isError"] is True
        assert "Server error" in resp["result"]["content"][0]["text"]


# ---------------------------------------------------------------------------
# Line decoding
# ---------------------------------------------------------------------------


class TestHandleLine:
    @pytest.mark.parametrize("line", ["", "   ", "\n", "\t \r\n"])
    def test_blank_lines_are_skipped(self, server: McpServer, line: str) -> None:
        assert server.handle_line(line) is None

    @pytest.mark.parametrize("line", ["{not json", "[1, 2]", '"ping"', "42", '{"method": 5, "id": 1}'])
    def test_unparseable_request(self, server: McpServer, line: str) -> None:
        resp = server.handle_line(line)
        assert resp == {"jsonrpc": "2.0", "error": {"code": -32700, "message": "Parse error"}}

    def test_valid_line_is_dispatched(self, server: McpServer) -> None:
        resp = server.handle_line('{"jsonrpc":"2.0","id":5,"method":"ping"}\n')
        assert resp == {"jsonrpc": "2.0", "id": 5, "result": {}}


# ---------------------------------------------------------------------------
# Framing loop
# ---------------------------------------------------------------------------


class TestServe:
    def _serve(self, server: McpServer, lines: list[str]) -> tuple[list[dict[str, Any]], _RecordingWriter]:
        stdin = io.StringIO("".join(line + "\n" for line in lines))
        stdout = _RecordingWriter()
        server.serve(stdin, stdout)
        out = [json.loads(line) for line in stdout.getvalue().splitlines()]
        return out, stdout

    def test_full_session(self, server: McpServer) -> None:
        lines = [
            json.dumps(_request("initialize", {"protocolVersion": "2025-06-18"}, request_id=1)),
            json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"}),
            json.dumps(_request("tools/list", request_id=2)),
            json.dumps(tool_call("create_task", {"description": "  "}, request_id=3)),
            json.dumps(_request("ping", request_id=4)),
        ]
        out, stdout = self._serve(server, lines)
        assert [r["id"] for r in out] == [1, 2, 3, 4]
        assert out[0]["result"]["protocolVersion"] == "2025-06-18"
        assert len(out[1]["result"]["tools"]) == 57
        assert out[2]["result"]["isError"] is True
        assert out[3]["result"] == {}
        assert stdout.flushes == 4

    def test_malformed_line_does_not_end_session(self, server: McpServer) -> None:
        lines = ["{oops", "", json.dumps(_request("ping", request_id=2)), "also bad"]
        out, _ = self._serve(server, lines)
        assert len(out) == 3
        assert out[0]["error"]["code"] == -32700
        assert "id" not in out[0]
        assert out[1] == {"jsonrpc": "2.0", "id": 2, "result": {}}
        assert out[2]["error"]["code"] == -32700

    def test_eof_without_trailing_newline(self, server: McpServer) -> None:
        stdin = io.StringIO('{"jsonrpc":"2.0","id":1,"method":"ping"}')
        stdout = io.StringIO()
        server.serve(stdin, stdout)
        assert json.loads(stdout.getvalue()) == {"jsonrpc": "2.0", "id": 1, "result": {}}

    def test_empty_input_ends_cleanly(self, server: McpServer) -> None:
        stdout = io.StringIO()
        server.serve(io.StringIO(""), stdout)
        assert stdout.getvalue() == ""

    def test_overlong_line_is_fatal(self, server: McpServer, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(mcp_server, "MAX_LINE_LENGTH", 64)
        stdin = io.StringIO(json.dumps(_request("ping", {"pad": "x" * 200})) + "\n")
        with pytest.raises(LineTooLongError):
            server.serve(stdin, io.StringIO())

    def test_line_at_ceiling_is_accepted(self, server: McpServer, monkeypatch: pytest.MonkeyPatch) -> None:
        line = json.dumps(_request("ping", request_id=1))
        monkeypatch.setattr(mcp_server, "MAX_LINE_LENGTH", len(line))
        stdout = io.StringIO()
        server.serve(io.StringIO(line + "\n"), stdout)
        assert json.loads(stdout.getvalue())["result"] == {}

    def test_read_error_propagates(self, server: McpServer) -> None:
        class _BrokenReader(io.StringIO):
            def readline(self, size: int | None = -1) -> str:
                raise OSError("device gone")

        with pytest.raises(OSError, match="device gone"):
            server.serve(_BrokenReader(), io.StringIO())


class TestWriteResponse:
    def test_one_line_per_response(self) -> None:
        stdout = _RecordingWriter()
        write_response(stdout, {"jsonrpc": "2.0", "id": 1, "result": {"text": "a\nb"}})
        assert stdout.getvalue().count("\n") == 1
        assert stdout.flushes == 1

    def test_unserializable_falls_back_to_internal_error(self) -> None:
        stdout = io.StringIO()
        write_response(stdout, {"jsonrpc": "2.0", "id": 42, "result": object()})
        resp = json.loads(stdout.getvalue())
        assert resp == {"jsonrpc": "2.0", "id": 42, "error": {"code": -32603, "message": "Internal error"}}

    def test_fallback_without_id_omits_it(self) -> None:
        stdout = io.StringIO()
        write_response(stdout, {"jsonrpc": "2.0", "result": object()})
        assert json.loads(stdout.getvalue()) == {"jsonrpc": "2.0", "error": {"code": -32603, "message": "Internal error"}}

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float_is_internal_error(self, value: float) -> None:
        stdout = io.StringIO()
        write_response(stdout, {"jsonrpc": "2.0", "id": "abc", "result": {"rate": value}})
        resp = json.loads(stdout.getvalue(), parse_constant=_reject_constant)
        assert resp["id"] == "abc"
        assert resp["error"]["code"] == -32603

    def test_non_finite_tool_values_become_null(self, ready_server: McpServer, fake_client: Any) -> None:
        fake_client.responses["/reports/stats"] = {"rate": float("nan"), "trend": [1.5, float("inf")]}
        resp = ready_server.handle_message(tool_call("get_stats", {}, request_id=7))
        assert resp is not None
        stdout = io.StringIO()
        write_response(stdout, resp)
        written = json.loads(stdout.getvalue(), parse_constant=_reject_constant)
        assert written["id"] == 7
        assert written["result"]["structuredContent"] == {"rate": None, "trend": [1.5, None]}
        assert _parse(written["result"]) == {"rate": None, "trend": [1.5, None]}
