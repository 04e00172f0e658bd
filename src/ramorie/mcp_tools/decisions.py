"""MCP tools for architectural decision records (ADRs)."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from ramorie.mcp_tools.common import Registration, ToolContext, optional_updates, parse_args, require
from ramorie.types.api import DeletedResponse
from ramorie.types.inputs import CreateDecisionArgs, DecisionIdArgs, ListDecisionsArgs, UpdateDecisionArgs

_STATUS_HELP = "Status: draft, proposed, approved, deprecated"
_AREA_HELP = "Area: Frontend, Backend, Architecture, DevOps, etc."
_DECISION_ID_SCHEMA = {
    "type": "object",
    "properties": {"decisionId": {"type": "string", "description": "Decision ID or ADR number (e.g., ADR-001)"}},
    "required": ["decisionId"],
}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for decision tools."""
    tools = [
        Tool(
            name="list_decisions",
            description="List architectural decisions (ADRs). Agents record important decisions here.",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {"type": "string", "description": _STATUS_HELP},
                    "area": {"type": "string", "description": _AREA_HELP},
                    "limit": {"type": "number", "description": "Maximum results"},
                },
            },
        ),
        Tool(name="get_decision", description="Get decision details.", inputSchema=_DECISION_ID_SCHEMA),
        Tool(
            name="create_decision",
            description="Create a new architectural decision (ADR). Use to record important technical decisions.",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "Decision title"},
                    "description": {"type": "string", "description": "Short description"},
                    "status": {"type": "string", "description": f"{_STATUS_HELP} (default: draft)"},
                    "area": {"type": "string", "description": _AREA_HELP},
                    "context": {"type": "string", "description": "Context and reasoning for the decision"},
                    "consequences": {"type": "string", "description": "Consequences and impacts of the decision"},
                },
                "required": ["title"],
            },
        ),
        Tool(
            name="update_decision",
            description="Update an existing decision.",
            inputSchema={
                "type": "object",
                "properties": {
                    "decisionId": {"type": "string", "description": "Decision ID or ADR number"},
                    "title": {"type": "string", "description": "New title"},
                    "description": {"type": "string", "description": "New description"},
                    "status": {"type": "string", "description": _STATUS_HELP},
                    "area": {"type": "string", "description": _AREA_HELP},
                    "context": {"type": "string", "description": "New context"},
                    "consequences": {"type": "string", "description": "New consequences"},
                },
                "required": ["decisionId"],
            },
        ),
        Tool(name="delete_decision", description="Delete a decision.", inputSchema=_DECISION_ID_SCHEMA),
    ]

    handlers = {
        "list_decisions": _handle_list_decisions,
        "get_decision": _handle_get_decision,
        "create_decision": _handle_create_decision,
        "update_decision": _handle_update_decision,
        "delete_decision": _handle_delete_decision,
    }

    return tools, handlers


def _handle_list_decisions(ctx: ToolContext, arguments: dict[str, Any]) -> list[dict[str, Any]]:
    args = parse_args(arguments, ListDecisionsArgs)
    return ctx.client.list_decisions(args.get("status", ""), args.get("area", ""), args.get("limit", 0))


def _handle_get_decision(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, DecisionIdArgs)
    require(args, "decisionId")
    return ctx.client.get_decision(args["decisionId"])


def _handle_create_decision(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, CreateDecisionArgs)
    require(args, "title")
    return ctx.client.create_decision(
        args["title"],
        description=args.get("description", ""),
        status=args.get("status", ""),
        area=args.get("area", ""),
        context=args.get("context", ""),
        consequences=args.get("consequences", ""),
    )


def _handle_update_decision(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, UpdateDecisionArgs)
    require(args, "decisionId")
    updates = optional_updates(
        args,
        non_empty=("title", "status", "area"),
        allow_empty=("description", "context", "consequences"),
    )
    return ctx.client.update_decision(args["decisionId"], updates)


def _handle_delete_decision(ctx: ToolContext, arguments: dict[str, Any]) -> DeletedResponse:
    args = parse_args(arguments, DecisionIdArgs)
    require(args, "decisionId")
    ctx.client.delete_decision(args["decisionId"])
    return DeletedResponse(ok=True, deleted=args["decisionId"])
