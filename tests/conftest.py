"""Shared pytest fixtures for ramorie tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest
from click.testing import CliRunner

from ramorie.core import ENV_API_KEY, ENV_API_URL, ENV_HOME, CliConfig
from ramorie.mcp_server import McpServer, ToolRegistry
from ramorie.mcp_tools.common import ToolContext
from tests._fake_client import FakeClient


@pytest.fixture(autouse=True)
def ramorie_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Path, None, None]:
    """Point RAMORIE_HOME at a tmp dir so no test touches ~/.ramorie."""
    home = tmp_path / "ramorie-home"
    monkeypatch.setenv(ENV_HOME, str(home))
    monkeypatch.delenv(ENV_API_URL, raising=False)
    monkeypatch.delenv(ENV_API_KEY, raising=False)
    yield home


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def tool_ctx(fake_client: FakeClient, ramorie_home: Path) -> ToolContext:
    """ToolContext over the fake backend; persistence goes to ramorie_home."""
    return ToolContext(client=fake_client, config=CliConfig(), config_dir=ramorie_home)  # type: ignore[arg-type]


@pytest.fixture
def registry(tool_ctx: ToolContext) -> ToolRegistry:
    return ToolRegistry(tool_ctx)


@pytest.fixture
def server(registry: ToolRegistry) -> McpServer:
    """A fresh server that has not seen the handshake."""
    return McpServer(registry)


@pytest.fixture
def ready_server(server: McpServer) -> McpServer:
    """A server past initialize + notifications/initialized."""
    server.handle_message({"jsonrpc": "2.0", "id": 0, "method": "initialize", "params": {}})
    server.handle_message({"jsonrpc": "2.0", "method": "notifications/initialized"})
    return server


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
