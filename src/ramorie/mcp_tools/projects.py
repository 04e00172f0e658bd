"""MCP tools for projects: CRUD, active-project selection, and export."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from ramorie.mcp_tools.common import (
    Registration,
    ToolContext,
    ToolError,
    find_project,
    optional_updates,
    parse_args,
    require,
    resolve_project_id,
)
from ramorie.types.api import ActiveProjectResponse, DeletedResponse, ExportResponse
from ramorie.types.core import ProjectDict, TaskDict
from ramorie.types.inputs import (
    CreateProjectArgs,
    ExportProjectArgs,
    ProjectIdArgs,
    SetActiveProjectArgs,
    UpdateProjectArgs,
)

_PROJECT_ID_SCHEMA = {
    "type": "object",
    "properties": {"projectId": {"type": "string", "description": "Project ID"}},
    "required": ["projectId"],
}
_STATUS_MARKS = {"COMPLETED": "[x]", "IN_PROGRESS": "[~]"}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for project tools."""
    tools = [
        Tool(
            name="list_projects",
            description="List all projects. ALWAYS call this before create_project to check existing projects.",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="create_project",
            description=(
                "Create a new project. IMPORTANT: call list_projects FIRST and reuse an existing project "
                "with a similar name or purpose instead of creating duplicates."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Project name - must be unique"},
                    "description": {"type": "string", "description": "Project description"},
                },
                "required": ["name"],
            },
        ),
        Tool(
            name="set_active_project",
            description="Set the active project used by tools that take an optional project.",
            inputSchema={
                "type": "object",
                "properties": {"projectName": {"type": "string", "description": "Project name or ID prefix"}},
                "required": ["projectName"],
            },
        ),
        Tool(name="get_project", description="Get project details.", inputSchema=_PROJECT_ID_SCHEMA),
        Tool(
            name="update_project",
            description="Update project name or description.",
            inputSchema={
                "type": "object",
                "properties": {
                    "projectId": {"type": "string", "description": "Project ID"},
                    "name": {"type": "string", "description": "New name"},
                    "description": {"type": "string", "description": "New description"},
                },
                "required": ["projectId"],
            },
        ),
        Tool(name="delete_project", description="Delete a project.", inputSchema=_PROJECT_ID_SCHEMA),
        Tool(
            name="export_project",
            description="Export a project report (task totals and task list) in markdown format.",
            inputSchema={
                "type": "object",
                "properties": {
                    "project": {"type": "string", "description": "Project name or ID"},
                    "format": {"type": "string", "description": "Report format (default: markdown)"},
                },
                "required": ["project"],
            },
        ),
    ]

    handlers = {
        "list_projects": _handle_list_projects,
        "create_project": _handle_create_project,
        "set_active_project": _handle_set_active_project,
        "get_project": _handle_get_project,
        "update_project": _handle_update_project,
        "delete_project": _handle_delete_project,
        "export_project": _handle_export_project,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_list_projects(ctx: ToolContext, arguments: dict[str, Any]) -> list[ProjectDict]:
    return ctx.client.list_projects()


def _handle_create_project(ctx: ToolContext, arguments: dict[str, Any]) -> ProjectDict:
    args = parse_args(arguments, CreateProjectArgs)
    require(args, "name")
    return ctx.client.create_project(args["name"], args.get("description", ""))


def _handle_set_active_project(ctx: ToolContext, arguments: dict[str, Any]) -> ActiveProjectResponse:
    args = parse_args(arguments, SetActiveProjectArgs)
    require(args, "projectName")
    project = find_project(ctx, args["projectName"])
    project_id = str(project["id"])
    ctx.client.set_project_active(project_id)
    ctx.set_active_project(project_id)
    return ActiveProjectResponse(ok=True, project_id=project_id, name=str(project.get("name", "")))


def _handle_get_project(ctx: ToolContext, arguments: dict[str, Any]) -> ProjectDict:
    args = parse_args(arguments, ProjectIdArgs)
    require(args, "projectId")
    return ctx.client.get_project(args["projectId"])


def _handle_update_project(ctx: ToolContext, arguments: dict[str, Any]) -> ProjectDict:
    args = parse_args(arguments, UpdateProjectArgs)
    require(args, "projectId")
    updates = optional_updates(args, non_empty=("name",), allow_empty=("description",))
    return ctx.client.update_project(args["projectId"], updates)


def _handle_delete_project(ctx: ToolContext, arguments: dict[str, Any]) -> DeletedResponse:
    args = parse_args(arguments, ProjectIdArgs)
    require(args, "projectId")
    ctx.client.delete_project(args["projectId"])
    return DeletedResponse(ok=True, deleted=args["projectId"])


def render_project_report(project: ProjectDict, tasks: list[TaskDict]) -> str:
    """Render the markdown body of an export_project report."""
    completed = sum(1 for t in tasks if t.get("status") == "COMPLETED")
    in_progress = sum(1 for t in tasks if t.get("status") == "IN_PROGRESS")
    pending = len(tasks) - completed - in_progress

    lines = [f"# {project.get('name', '')}", ""]
    if project.get("description"):
        lines += [str(project["description"]), ""]
    lines += [
        "## Summary",
        "",
        f"- **Total:** {len(tasks)}",
        f"- **Completed:** {completed}",
        f"- **In progress:** {in_progress}",
        f"- **Pending:** {pending}",
        "",
        "## Tasks",
        "",
    ]
    for task in tasks:
        mark = _STATUS_MARKS.get(str(task.get("status", "")), "[ ]")
        lines.append(f"- {mark} **{task.get('title', '')}** [{task.get('priority', '')}]")
    return "\n".join(lines) + "\n"


def _handle_export_project(ctx: ToolContext, arguments: dict[str, Any]) -> ExportResponse:
    args = parse_args(arguments, ExportProjectArgs)
    project_id = resolve_project_id(ctx, args.get("project", ""))
    project = next((p for p in ctx.client.list_projects() if str(p.get("id")) == project_id), None)
    if project is None:
        msg = "project not found"
        raise ToolError(msg)
    tasks = ctx.client.list_tasks(project_id)
    return ExportResponse(
        project=str(project.get("name", "")),
        format=args.get("format") or "markdown",
        markdown=render_project_report(project, tasks),
    )
