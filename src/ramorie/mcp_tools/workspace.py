"""MCP tools for contexts, context packs, and organizations."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from ramorie.mcp_tools.common import (
    Registration,
    ToolContext,
    optional_updates,
    parse_args,
    require,
)
from ramorie.types.api import ActivatePackResponse, ActiveContextResponse, DeletedResponse
from ramorie.types.inputs import (
    CreateContextArgs,
    CreateContextPackArgs,
    CreateOrganizationArgs,
    ListContextPacksArgs,
    OrgIdArgs,
    PackIdArgs,
    SetActiveContextArgs,
    UpdateContextPackArgs,
)

DEFAULT_PACK_TYPE = "custom"

_PACK_TYPE_HELP = "Pack type: project, integration, decision, custom"
_PACK_STATUS_HELP = "Pack status: draft, published"
_EMPTY_SCHEMA: dict[str, Any] = {"type": "object", "properties": {}}
_PACK_ID_SCHEMA = {
    "type": "object",
    "properties": {"packId": {"type": "string", "description": "Context pack ID"}},
    "required": ["packId"],
}
_NAME_DESCRIPTION_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Name"},
        "description": {"type": "string", "description": "Description"},
    },
    "required": ["name"],
}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for workspace tools."""
    tools = [
        Tool(name="list_contexts", description="List all contexts.", inputSchema=_EMPTY_SCHEMA),
        Tool(name="create_context", description="Create a new context.", inputSchema=_NAME_DESCRIPTION_SCHEMA),
        Tool(
            name="set_active_context",
            description="Set the active context.",
            inputSchema={
                "type": "object",
                "properties": {"name": {"type": "string", "description": "Context name"}},
                "required": ["name"],
            },
        ),
        Tool(
            name="list_context_packs",
            description="List context packs (Active Context). Filter by type, status, or search query.",
            inputSchema={
                "type": "object",
                "properties": {
                    "type": {"type": "string", "description": _PACK_TYPE_HELP},
                    "status": {"type": "string", "description": _PACK_STATUS_HELP},
                    "query": {"type": "string", "description": "Search in name/description"},
                    "limit": {"type": "number", "description": "Maximum results"},
                },
            },
        ),
        Tool(name="get_context_pack", description="Get context pack details.", inputSchema=_PACK_ID_SCHEMA),
        Tool(
            name="create_context_pack",
            description="Create a new context pack.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Pack name"},
                    "type": {"type": "string", "description": f"{_PACK_TYPE_HELP} (default: {DEFAULT_PACK_TYPE})"},
                    "description": {"type": "string", "description": "Pack description"},
                    "status": {"type": "string", "description": _PACK_STATUS_HELP},
                    "tags": {"type": "array", "items": {"type": "string"}, "description": "Tags"},
                },
                "required": ["name", "type"],
            },
        ),
        Tool(
            name="update_context_pack",
            description="Update an existing context pack.",
            inputSchema={
                "type": "object",
                "properties": {
                    "packId": {"type": "string", "description": "Context pack ID"},
                    "name": {"type": "string", "description": "New name"},
                    "type": {"type": "string", "description": _PACK_TYPE_HELP},
                    "description": {"type": "string", "description": "New description"},
                    "status": {"type": "string", "description": _PACK_STATUS_HELP},
                    "tags": {"type": "array", "items": {"type": "string"}, "description": "Replacement tag list"},
                },
                "required": ["packId"],
            },
        ),
        Tool(name="delete_context_pack", description="Delete a context pack.", inputSchema=_PACK_ID_SCHEMA),
        Tool(name="activate_context_pack", description="Activate (publish) a context pack.", inputSchema=_PACK_ID_SCHEMA),
        Tool(
            name="get_active_context_pack",
            description="Get the currently active context pack.",
            inputSchema=_EMPTY_SCHEMA,
        ),
        Tool(name="list_organizations", description="List organizations.", inputSchema=_EMPTY_SCHEMA),
        Tool(
            name="get_organization",
            description="Get organization details.",
            inputSchema={
                "type": "object",
                "properties": {"orgId": {"type": "string", "description": "Organization ID"}},
                "required": ["orgId"],
            },
        ),
        Tool(
            name="create_organization",
            description="Create a new organization.",
            inputSchema=_NAME_DESCRIPTION_SCHEMA,
        ),
    ]

    handlers = {
        "list_contexts": _handle_list_contexts,
        "create_context": _handle_create_context,
        "set_active_context": _handle_set_active_context,
        "list_context_packs": _handle_list_context_packs,
        "get_context_pack": _handle_get_context_pack,
        "create_context_pack": _handle_create_context_pack,
        "update_context_pack": _handle_update_context_pack,
        "delete_context_pack": _handle_delete_context_pack,
        "activate_context_pack": _handle_activate_context_pack,
        "get_active_context_pack": _handle_get_active_context_pack,
        "list_organizations": _handle_list_organizations,
        "get_organization": _handle_get_organization,
        "create_organization": _handle_create_organization,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Contexts
# ---------------------------------------------------------------------------


def _handle_list_contexts(ctx: ToolContext, arguments: dict[str, Any]) -> list[dict[str, Any]]:
    return ctx.client.list_contexts()


def _handle_create_context(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, CreateContextArgs)
    require(args, "name")
    return ctx.client.create_context(args["name"], args.get("description", ""))


def _handle_set_active_context(ctx: ToolContext, arguments: dict[str, Any]) -> ActiveContextResponse:
    args = parse_args(arguments, SetActiveContextArgs)
    require(args, "name")
    context = ctx.client.use_context(args["name"])
    response = ActiveContextResponse(ok=True, context=context)
    context_id = context.get("id") if isinstance(context, dict) else None
    if context_id:
        ctx.set_active_context(str(context_id))
        response["context_id"] = str(context_id)
    return response


# ---------------------------------------------------------------------------
# Context packs
# ---------------------------------------------------------------------------


def _handle_list_context_packs(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, ListContextPacksArgs)
    return ctx.client.list_context_packs(
        args.get("type", ""),
        args.get("status", ""),
        args.get("query", ""),
        args.get("limit", 0),
    )


def _handle_get_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, PackIdArgs)
    require(args, "packId")
    return ctx.client.get_context_pack(args["packId"])


def _handle_create_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, CreateContextPackArgs)
    require(args, "name")
    return ctx.client.create_context_pack(
        args["name"],
        args.get("type") or DEFAULT_PACK_TYPE,
        args.get("description", ""),
        args.get("status", ""),
        args.get("tags", []),
    )


def _handle_update_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, UpdateContextPackArgs)
    require(args, "packId")
    updates = optional_updates(args, non_empty=("name", "type", "status"), allow_empty=("description", "tags"))
    return ctx.client.update_context_pack(args["packId"], updates)


def _handle_delete_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> DeletedResponse:
    args = parse_args(arguments, PackIdArgs)
    require(args, "packId")
    ctx.client.delete_context_pack(args["packId"])
    return DeletedResponse(ok=True, deleted=args["packId"])


def _handle_activate_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> ActivatePackResponse:
    args = parse_args(arguments, PackIdArgs)
    require(args, "packId")
    pack = ctx.client.set_active_context_pack(args["packId"])
    return ActivatePackResponse(ok=True, pack=pack)


def _handle_get_active_context_pack(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any] | None:
    return ctx.client.get_active_context_pack()


# ---------------------------------------------------------------------------
# Organizations
# ---------------------------------------------------------------------------


def _handle_list_organizations(ctx: ToolContext, arguments: dict[str, Any]) -> list[dict[str, Any]]:
    return ctx.client.list_organizations()


def _handle_get_organization(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, OrgIdArgs)
    require(args, "orgId")
    return ctx.client.get_organization(args["orgId"])


def _handle_create_organization(ctx: ToolContext, arguments: dict[str, Any]) -> dict[str, Any]:
    args = parse_args(arguments, CreateOrganizationArgs)
    require(args, "name")
    return ctx.client.create_organization(args["name"], args.get("description", ""))
