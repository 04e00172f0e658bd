"""MCP tools for task CRUD, status transitions, and bulk operations."""

from __future__ import annotations

import logging
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
    resolve_project_id,
    resolve_task_ids,
    slice_limit,
)
from ramorie.types.api import CountResponse, DeletedResponse, DuplicateTaskResponse, MoveTasksResponse, OkResponse
from ramorie.types.core import TaskDict
from ramorie.types.inputs import (
    AddTaskNoteArgs,
    BulkTasksArgs,
    CreateSubtaskArgs,
    CreateTaskArgs,
    DuplicateTaskArgs,
    GetNextTasksArgs,
    ListTasksArgs,
    MoveTasksArgs,
    SearchTasksArgs,
    TaskIdArgs,
    UpdateProgressArgs,
    UpdateTaskStatusArgs,
)
from ramorie.validation import normalize_priority, priority_rank

logger = logging.getLogger(__name__)

_DEFAULT_NEXT_COUNT = 5
_TASK_ID_SCHEMA = {
    "type": "object",
    "properties": {"taskId": {"type": "string", "description": "Task ID or short identifier"}},
    "required": ["taskId"],
}
_TASK_IDS_SCHEMA = {
    "type": "object",
    "properties": {"taskIds": {"type": "array", "items": {"type": "string"}, "description": "Task IDs"}},
    "required": ["taskIds"],
}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for task tools."""
    tools = [
        Tool(
            name="create_task",
            description=(
                "Create a new task. IMPORTANT: use an existing project (project parameter), do NOT create "
                "new projects for tasks. Check list_tasks first to avoid duplicates."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "description": {"type": "string", "description": "Task description - clear and actionable"},
                    "priority": {"type": "string", "description": "Priority: H=High, M=Medium, L=Low"},
                    "project": {"type": "string", "description": "Project name or ID (uses active project if not specified)"},
                },
                "required": ["description"],
            },
        ),
        Tool(
            name="list_tasks",
            description="List tasks with filtering. Call this before create_task to check for existing similar tasks.",
            inputSchema={
                "type": "object",
                "properties": {
                    "status": {"type": "string", "description": "Filter by status: TODO, IN_PROGRESS, COMPLETED"},
                    "project": {"type": "string", "description": "Project name or ID"},
                    "limit": {"type": "number", "description": "Maximum results"},
                },
            },
        ),
        Tool(
            name="search_tasks",
            description="Search tasks by keyword. Use before creating similar tasks to avoid duplicates.",
            inputSchema={
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query"},
                    "status": {"type": "string", "description": "Filter by status"},
                    "project": {"type": "string", "description": "Project name or ID"},
                    "tag": {"type": "string", "description": "Filter by tag"},
                    "limit": {"type": "number", "description": "Maximum results"},
                },
                "required": ["query"],
            },
        ),
        Tool(
            name="get_next_tasks",
            description="Get prioritized TODO tasks for agent workflow, sorted by priority (H>M>L) then age. Use at session start.",
            inputSchema={
                "type": "object",
                "properties": {
                    "count": {"type": "number", "description": f"Number of tasks (default: {_DEFAULT_NEXT_COUNT})"},
                    "project": {"type": "string", "description": "Project name or ID"},
                    "tag": {"type": "string", "description": "Filter by tag"},
                },
            },
        ),
        Tool(name="get_task", description="Get task details including notes and metadata.", inputSchema=_TASK_ID_SCHEMA),
        Tool(
            name="start_task",
            description="Start a task (sets status to IN_PROGRESS). Use when beginning work on a task.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        Tool(
            name="complete_task",
            description="Complete a task (sets status to COMPLETED). Use when work is finished.",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        Tool(
            name="stop_task",
            description="Pause a task (clears the active task, keeps IN_PROGRESS status).",
            inputSchema=_TASK_ID_SCHEMA,
        ),
        Tool(
            name="get_active_task",
            description="Get the currently active task (used for memory auto-linking).",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(name="delete_task", description="Delete a task (soft delete).", inputSchema=_TASK_ID_SCHEMA),
        Tool(
            name="update_task_status",
            description="Update task status (TODO, IN_PROGRESS, COMPLETED).",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskId": {"type": "string", "description": "Task ID or short identifier"},
                    "status": {"type": "string", "description": "New status"},
                },
                "required": ["taskId", "status"],
            },
        ),
        Tool(
            name="update_progress",
            description="Update task progress percentage (0-100).",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskId": {"type": "string", "description": "Task ID or short identifier"},
                    "progress": {"type": "number", "minimum": 0, "maximum": 100, "description": "Progress percentage"},
                },
                "required": ["taskId", "progress"],
            },
        ),
        Tool(
            name="add_task_note",
            description="Add a note/annotation to a task.",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskId": {"type": "string", "description": "Task ID or short identifier"},
                    "note": {"type": "string", "description": "Note text"},
                },
                "required": ["taskId", "note"],
            },
        ),
        Tool(
            name="create_subtask",
            description="Create a subtask for breaking down work.",
            inputSchema={
                "type": "object",
                "properties": {
                    "parentTaskId": {"type": "string", "description": "Parent task ID"},
                    "description": {"type": "string", "description": "Subtask description"},
                },
                "required": ["parentTaskId", "description"],
            },
        ),
        Tool(name="bulk_start_tasks", description="Start multiple tasks at once.", inputSchema=_TASK_IDS_SCHEMA),
        Tool(name="bulk_complete_tasks", description="Complete multiple tasks at once.", inputSchema=_TASK_IDS_SCHEMA),
        Tool(
            name="duplicate_task",
            description="Duplicate a task with its notes (status reset to TODO, progress to 0).",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskId": {"type": "string", "description": "Task ID to copy"},
                    "newDescription": {"type": "string", "description": "Title for the copy (default: original title + ' (copy)')"},
                },
                "required": ["taskId"],
            },
        ),
        Tool(
            name="move_tasks_to_project",
            description="Move tasks to another existing project.",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskIds": {"type": "array", "items": {"type": "string"}, "description": "Task IDs to move"},
                    "targetProject": {"type": "string", "description": "Target project name or ID"},
                },
                "required": ["taskIds", "targetProject"],
            },
        ),
    ]

    handlers = {
        "create_task": _handle_create_task,
        "list_tasks": _handle_list_tasks,
        "search_tasks": _handle_search_tasks,
        "get_next_tasks": _handle_get_next_tasks,
        "get_task": _handle_get_task,
        "start_task": _handle_start_task,
        "complete_task": _handle_complete_task,
        "stop_task": _handle_stop_task,
        "get_active_task": _handle_get_active_task,
        "delete_task": _handle_delete_task,
        "update_task_status": _handle_update_task_status,
        "update_progress": _handle_update_progress,
        "add_task_note": _handle_add_task_note,
        "create_subtask": _handle_create_subtask,
        "bulk_start_tasks": _handle_bulk_start_tasks,
        "bulk_complete_tasks": _handle_bulk_complete_tasks,
        "duplicate_task": _handle_duplicate_task,
        "move_tasks_to_project": _handle_move_tasks_to_project,
    }

    return tools, handlers


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_create_task(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict:
    args = parse_args(arguments, CreateTaskArgs)
    require(args, "description")
    project_id = resolve_project_id(ctx, args.get("project", ""))
    return ctx.client.create_task(project_id, args["description"], "", normalize_priority(args.get("priority")))


def _handle_list_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> list[TaskDict]:
    args = parse_args(arguments, ListTasksArgs)
    project_id = optional_project_id(ctx, args.get("project", ""))
    tasks = ctx.client.list_tasks(project_id, args.get("status", ""))
    return slice_limit(tasks, args.get("limit", 0))


def _handle_search_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> list[TaskDict]:
    args = parse_args(arguments, SearchTasksArgs)
    require(args, "query")
    project_id = optional_project_id(ctx, args.get("project", ""))
    tag = args.get("tag", "")
    tasks = ctx.client.list_tasks(project_id, args.get("status", ""), query=args["query"], tags=[tag] if tag else None)
    return slice_limit(tasks, args.get("limit", 0))


def _handle_get_next_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> list[TaskDict]:
    args = parse_args(arguments, GetNextTasksArgs)
    count = args.get("count", 0)
    if count <= 0:
        count = _DEFAULT_NEXT_COUNT
    project_id = optional_project_id(ctx, args.get("project", ""))
    tag = args.get("tag", "")
    tasks = ctx.client.list_tasks(project_id, "TODO", tags=[tag] if tag else None)
    # Highest priority first; oldest first within a priority. ISO timestamps sort lexically.
    tasks = sorted(tasks, key=lambda t: (-priority_rank(t.get("priority")), str(t.get("created_at") or "")))
    return tasks[:count]


def _handle_get_task(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    return ctx.client.get_task(args["taskId"])


def _handle_start_task(ctx: ToolContext, arguments: dict[str, Any]) -> OkResponse:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    ctx.client.start_task(args["taskId"])
    return OkResponse(ok=True)


def _handle_complete_task(ctx: ToolContext, arguments: dict[str, Any]) -> OkResponse:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    ctx.client.complete_task(args["taskId"])
    return OkResponse(ok=True)


def _handle_stop_task(ctx: ToolContext, arguments: dict[str, Any]) -> OkResponse:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    ctx.client.stop_task(args["taskId"])
    return OkResponse(ok=True)


def _handle_get_active_task(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict | None:
    return ctx.client.get_active_task()


def _handle_delete_task(ctx: ToolContext, arguments: dict[str, Any]) -> DeletedResponse:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    ctx.client.delete_task(args["taskId"])
    return DeletedResponse(ok=True, deleted=args["taskId"])


def _handle_update_task_status(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict:
    args = parse_args(arguments, UpdateTaskStatusArgs)
    require(args, "taskId", "status")
    return ctx.client.update_task(args["taskId"], {"status": args["status"]})


def _handle_update_progress(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict:
    args = parse_args(arguments, UpdateProgressArgs)
    require(args, "taskId")
    progress = args.get("progress", 0)
    if progress < 0 or progress > 100:
        msg = "progress must be between 0 and 100"
        raise ToolError(msg)
    return ctx.client.update_task(args["taskId"], {"progress": progress})


def _handle_add_task_note(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, AddTaskNoteArgs)
    require(args, "taskId", "note")
    return ctx.client.create_annotation(args["taskId"], args["note"])


def _handle_create_subtask(ctx: ToolContext, arguments: dict[str, Any]) -> TaskDict:
    args = parse_args(arguments, CreateSubtaskArgs)
    require(args, "parentTaskId", "description")
    return ctx.client.create_subtask(args["parentTaskId"], args["description"])


def _bulk_set_status(ctx: ToolContext, arguments: dict[str, Any], status: str) -> CountResponse:
    args = parse_args(arguments, BulkTasksArgs)
    ids = resolve_task_ids(ctx, args.get("taskIds"))
    ctx.client.bulk_update_tasks(ids, status)
    return CountResponse(ok=True, count=len(ids))


def _handle_bulk_start_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> CountResponse:
    return _bulk_set_status(ctx, arguments, "IN_PROGRESS")


def _handle_bulk_complete_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> CountResponse:
    return _bulk_set_status(ctx, arguments, "COMPLETED")


def _handle_duplicate_task(ctx: ToolContext, arguments: dict[str, Any]) -> DuplicateTaskResponse:
    args = parse_args(arguments, DuplicateTaskArgs)
    require(args, "taskId")
    original = ctx.client.get_task(args["taskId"])
    title = args.get("newDescription") or f"{original.get('title', '')} (copy)"
    copy = ctx.client.create_task(
        str(original.get("project_id", "")),
        title,
        original.get("description") or "",
        normalize_priority(original.get("priority")),
    )
    new_id = str(copy.get("id", ""))
    for annotation in original.get("annotations") or []:
        content = annotation.get("content") if isinstance(annotation, dict) else None
        if not content:
            continue
        try:
            ctx.client.create_annotation(new_id, content)
        except ApiError as exc:
            logger.warning("Failed to copy note to duplicate %s: %s", new_id, exc)
    return DuplicateTaskResponse(
        ok=True,
        original_id=str(original.get("id", args["taskId"])),
        new_id=new_id,
        title=str(copy.get("title", title)),
    )


def _handle_move_tasks_to_project(ctx: ToolContext, arguments: dict[str, Any]) -> MoveTasksResponse:
    args = parse_args(arguments, MoveTasksArgs)
    require(args, "targetProject")
    ids = resolve_task_ids(ctx, args.get("taskIds"))
    project_id = resolve_project_id(ctx, args["targetProject"])
    moved = 0
    for task_id in ids:
        try:
            ctx.client.update_task(task_id, {"project_id": project_id})
        except ApiError as exc:
            logger.warning("Failed to move task %s to %s: %s", task_id, project_id, exc)
            continue
        moved += 1
    return MoveTasksResponse(ok=True, moved=moved, total=len(ids), project_id=project_id)
