"""MCP tools for statistics, activity history, and AI task analysis.

Report endpoints are not modeled on :class:`~ramorie.client.RamorieClient`;
they go through its generic ``request`` escape hatch.
"""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from ramorie.client import ApiError
from ramorie.mcp_tools.common import (
    Registration,
    ToolContext,
    ToolError,
    optional_project_id,
    parse_args,
    require,
)
from ramorie.types.inputs import GetStatsArgs, HistoryArgs, TaskIdArgs

_DEFAULT_DAYS = 7
_HISTORY_SCHEMA = {
    "type": "object",
    "properties": {
        "days": {"type": "number", "description": f"Number of days (default: {_DEFAULT_DAYS})"},
        "project": {"type": "string", "description": "Project name or ID"},
    },
}
_TASK_ID_SCHEMA = {
    "type": "object",
    "properties": {"taskId": {"type": "string", "description": "Task ID"}},
    "required": ["taskId"],
}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for report tools."""
    tools = [
        Tool(
            name="get_stats",
            description="Get task statistics and completion rates.",
            inputSchema={
                "type": "object",
                "properties": {"project": {"type": "string", "description": "Project name or ID"}},
            },
        ),
        Tool(
            name="get_history",
            description="Get task activity history for the last N days.",
            inputSchema=_HISTORY_SCHEMA,
        ),
        Tool(
            name="timeline",
            description="Get activity timeline for the last N days.",
            inputSchema=_HISTORY_SCHEMA,
        ),
        Tool(
            name="analyze_task_risks",
            description="Analyze potential risks for a task using AI.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        Tool(
            name="analyze_task_dependencies",
            description="Analyze dependencies and blockers for a task using AI.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
    ]

    handlers = {
        "get_stats": _handle_get_stats,
        "get_history": _handle_get_history,
        "timeline": _handle_timeline,
        "analyze_task_risks": _handle_analyze_task_risks,
        "analyze_task_dependencies": _handle_analyze_task_dependencies,
    }

    return tools, handlers


def _report(ctx: ToolContext, path: str, params: dict[str, Any], what: str) -> Any:
    payload = ctx.client.request("GET", path, params=params)
    if payload is None:
        msg = f"invalid {what} response"
        raise ToolError(msg)
    return payload


def _days(args: Any) -> int:
    return args.get("days") or _DEFAULT_DAYS


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_get_stats(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, GetStatsArgs)
    project_id = optional_project_id(ctx, args.get("project", ""))
    return _report(ctx, "/reports/stats", {"project_id": project_id}, "stats")


def _handle_get_history(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, HistoryArgs)
    days = _days(args)
    project_id = optional_project_id(ctx, args.get("project", ""))
    params = {"days": days if days > 0 else None, "project_id": project_id}
    return _report(ctx, "/reports/history", params, "history")


def _handle_timeline(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, HistoryArgs)
    params: dict[str, Any] = {"days": _days(args)}
    # An unresolvable project widens the timeline to every project.
    try:
        params["project_id"] = optional_project_id(ctx, args.get("project", ""))
    except (ToolError, ApiError):
        params["project_id"] = ""
    return _report(ctx, "/reports/history", params, "timeline")


def _handle_analyze_task_risks(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    return ctx.client.ai_risks(args["taskId"])


def _handle_analyze_task_dependencies(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    return ctx.client.ai_dependencies(args["taskId"])
