"""Tests for context, context pack, organization, and decision MCP tools."""

from __future__ import annotations

from pathlib import Path

import pytest

from ramorie.core import read_config
from ramorie.mcp_server import ToolRegistry
from ramorie.mcp_tools.common import ToolContext
from tests._fake_client import FakeClient
from tests.mcp._helpers import call_err, call_ok


class TestContexts:
    def test_list(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "list_contexts") == [{"id": "ctx-1", "name": "work"}]

    def test_create(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        call_ok(registry, "create_context", {"name": "work", "description": "Day job"})
        assert fake_client.called("create_context") == [("work", "Day job")]

    def test_set_active_persists_id(
        self, registry: ToolRegistry, tool_ctx: ToolContext, ramorie_home: Path
    ) -> None:
        result = call_ok(registry, "set_active_context", {"name": "work"})
        assert result["ok"] is True
        assert result["context_id"] == "ctx-1"
        assert result["context"]["name"] == "work"
        assert tool_ctx.config.active_context_id == "ctx-1"
        assert read_config(ramorie_home).active_context_id == "ctx-1"

    def test_set_active_without_id(
        self, registry: ToolRegistry, fake_client: FakeClient, tool_ctx: ToolContext
    ) -> None:
        fake_client.use_context = lambda name: {"name": name}  # type: ignore[method-assign]
        result = call_ok(registry, "set_active_context", {"name": "work"})
        assert "context_id" not in result
        assert tool_ctx.config.active_context_id == ""

    @pytest.mark.parametrize("tool", ["create_context", "set_active_context"])
    def test_requires_name(self, registry: ToolRegistry, tool: str) -> None:
        assert call_err(registry, tool) == "name is required"


class TestContextPacks:
    def test_list_passes_filters(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        result = call_ok(registry, "list_context_packs", {"type": "project", "query": "api", "limit": 5})
        assert result == {"packs": [], "total": 0}
        assert fake_client.called("list_context_packs") == [("project", "", "api", 5, 0)]

    def test_create_defaults_type(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        pack = call_ok(registry, "create_context_pack", {"name": "Onboarding"})
        assert pack["type"] == "custom"
        assert fake_client.called("create_context_pack") == [("Onboarding", "custom", "", "", [])]

    def test_create_with_tags(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        call_ok(registry, "create_context_pack", {"name": "x", "type": "team", "tags": [" a ", "b"]})
        assert fake_client.called("create_context_pack")[0][4] == ["a", "b"]

    def test_create_requires_name(self, registry: ToolRegistry) -> None:
        assert call_err(registry, "create_context_pack", {"type": "team"}) == "name is required"

    def test_update_fields(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        call_ok(registry, "update_context_pack", {"packId": "pk1", "name": "", "status": "draft", "description": ""})
        assert fake_client.called("update_context_pack") == [("pk1", {"status": "draft", "description": ""})]

    def test_activate(self, registry: ToolRegistry) -> None:
        result = call_ok(registry, "activate_context_pack", {"packId": "pk1"})
        assert result == {"ok": True, "pack": {"id": "pk1", "status": "published"}}
        assert call_ok(registry, "get_active_context_pack") == {"id": "pk1", "status": "published"}

    def test_no_active_pack(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "get_active_context_pack") is None

    def test_delete(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "delete_context_pack", {"packId": "pk1"}) == {"ok": True, "deleted": "pk1"}

    @pytest.mark.parametrize(
        "tool", ["get_context_pack", "update_context_pack", "delete_context_pack", "activate_context_pack"]
    )
    def test_requires_pack_id(self, registry: ToolRegistry, tool: str) -> None:
        assert call_err(registry, tool) == "packId is required"


class TestOrganizations:
    def test_list(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "list_organizations") == [{"id": "org-1", "name": "Acme"}]

    def test_get(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "get_organization", {"orgId": "org-1"}) == {"id": "org-1"}

    def test_get_requires_id(self, registry: ToolRegistry) -> None:
        assert call_err(registry, "get_organization") == "orgId is required"

    def test_create(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        org = call_ok(registry, "create_organization", {"name": "Acme", "description": "HQ"})
        assert org["name"] == "Acme"
        assert fake_client.called("create_organization") == [("Acme", "HQ")]


class TestDecisions:
    def test_list_filters(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        decisions = call_ok(registry, "list_decisions", {"status": "accepted", "limit": "3"})
        assert decisions[0]["status"] == "accepted"
        assert fake_client.called("list_decisions") == [("accepted", "", 3)]

    def test_create_passes_all_fields(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        call_ok(
            registry,
            "create_decision",
            {"title": "Use SQLite", "area": "storage", "context": "Single user", "consequences": "No replicas"},
        )
        _, args, kwargs = [c for c in fake_client.calls if c[0] == "create_decision"][0]
        assert args == ("Use SQLite",)
        assert kwargs == {
            "description": "",
            "status": "",
            "area": "storage",
            "context": "Single user",
            "consequences": "No replicas",
        }

    def test_create_requires_title(self, registry: ToolRegistry) -> None:
        assert call_err(registry, "create_decision", {"area": "x"}) == "title is required"

    def test_update_clears_text_fields(self, registry: ToolRegistry, fake_client: FakeClient) -> None:
        call_ok(registry, "update_decision", {"decisionId": "d1", "title": "", "status": "accepted", "context": ""})
        assert fake_client.called("update_decision") == [("d1", {"status": "accepted", "context": ""})]

    def test_delete(self, registry: ToolRegistry) -> None:
        assert call_ok(registry, "delete_decision", {"decisionId": "d1"}) == {"ok": True, "deleted": "d1"}

    @pytest.mark.parametrize("tool", ["get_decision", "update_decision", "delete_decision"])
    def test_requires_decision_id(self, registry: ToolRegistry, tool: str) -> None:
        assert call_err(registry, tool) == "decisionId is required"
