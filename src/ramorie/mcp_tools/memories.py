"""MCP tools for the memory knowledge base and memory/task links."""

from __future__ import annotations

from typing import Any

from mcp.types import Tool

from ramorie.mcp_tools.common import (
    Registration,
    ToolContext,
    optional_project_id,
    optional_updates,
    parse_args,
    require,
    resolve_project_id,
    slice_limit,
)
from ramorie.types.api import DeletedResponse, OkResponse, RecallHit, RecallResponse
from ramorie.types.core import MemoryDict, TaskDict
from ramorie.types.inputs import (
    AddMemoryArgs,
    CreateMemoryTaskLinkArgs,
    ListMemoriesArgs,
    MemoryIdArgs,
    RecallArgs,
    TaskIdArgs,
    UpdateMemoryArgs,
)

_DEFAULT_RECALL_LIMIT = 10
_MEMORY_ID_SCHEMA = {
    "type": "object",
    "properties": {"memoryId": {"type": "string", "description": "Memory ID"}},
    "required": ["memoryId"],
}


def register() -> Registration:
    """Return (tool_definitions, handler_map) for memory tools."""
    tools = [
        Tool(
            name="add_memory",
            description=(
                "Add a new memory/note to the knowledge base. Use for storing important information, "
                "learnings, decisions, or context."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "content": {"type": "string", "description": "Memory content - be descriptive"},
                    "project": {"type": "string", "description": "Project name or ID (uses active project if not specified)"},
                },
                "required": ["content"],
            },
        ),
        Tool(
            name="list_memories",
            description="List memories with optional filtering.",
            inputSchema={
                "type": "object",
                "properties": {
                    "project": {"type": "string", "description": "Project name or ID"},
                    "term": {"type": "string", "description": "Case-insensitive text filter"},
                    "limit": {"type": "number", "description": "Maximum results"},
                },
            },
        ),
        Tool(
            name="get_task_memories",
            description="Get memories linked to a specific task.",
            inputSchema={
                "type": "object",
                "properties": {"taskId": {"type": "string", "description": "Task ID"}},
                "required": ["taskId"],
            },
        ),
        Tool(name="memory_tasks", description="Get tasks linked to a specific memory.", inputSchema=_MEMORY_ID_SCHEMA),
        Tool(
            name="create_memory_task_link",
            description="Create a manual link between a task and memory.",
            inputSchema={
                "type": "object",
                "properties": {
                    "taskId": {"type": "string", "description": "Task ID"},
                    "memoryId": {"type": "string", "description": "Memory ID"},
                    "relationType": {"type": "string", "description": "Relation type (default: MANUAL)"},
                },
                "required": ["taskId", "memoryId"],
            },
        ),
        Tool(name="get_memory", description="Get memory details by ID.", inputSchema=_MEMORY_ID_SCHEMA),
        Tool(
            name="update_memory",
            description="Update memory content or tags.",
            inputSchema={
                "type": "object",
                "properties": {
                    "memoryId": {"type": "string", "description": "Memory ID"},
                    "content": {"type": "string", "description": "New content"},
                    "tags": {"type": "array", "items": {"type": "string"}, "description": "Replacement tag list"},
                },
                "required": ["memoryId"],
            },
        ),
        Tool(name="delete_memory", description="Delete a memory.", inputSchema=_MEMORY_ID_SCHEMA),
        Tool(
            name="recall",
            description="Search memories by text (keyword search).",
            inputSchema={
                "type": "object",
                "properties": {
                    "term": {"type": "string", "description": "Text to look for"},
                    "limit": {"type": "number", "description": f"Maximum results (default: {_DEFAULT_RECALL_LIMIT})"},
                },
                "required": ["term"],
            },
        ),
    ]

    handlers = {
        "add_memory": _handle_add_memory,
        "list_memories": _handle_list_memories,
        "get_task_memories": _handle_get_task_memories,
        "memory_tasks": _handle_memory_tasks,
        "create_memory_task_link": _handle_create_memory_task_link,
        "get_memory": _handle_get_memory,
        "update_memory": _handle_update_memory,
        "delete_memory": _handle_delete_memory,
        "recall": _handle_recall,
    }

    return tools, handlers


def _matches(memory: MemoryDict, term: str) -> bool:
    return term.lower() in str(memory.get("content", "")).lower()


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


def _handle_add_memory(ctx: ToolContext, arguments: dict[str, Any]) -> MemoryDict:
    args = parse_args(arguments, AddMemoryArgs)
    require(args, "content")
    project_id = resolve_project_id(ctx, args.get("project", ""))
    return ctx.client.create_memory(project_id, args["content"])


def _handle_list_memories(ctx: ToolContext, arguments: dict[str, Any]) -> list[MemoryDict]:
    args = parse_args(arguments, ListMemoriesArgs)
    project_id = optional_project_id(ctx, args.get("project", ""))
    memories = ctx.client.list_memories(project_id)
    term = args.get("term", "")
    if term:
        memories = [m for m in memories if _matches(m, term)]
    return slice_limit(memories, args.get("limit", 0))


def _handle_get_task_memories(ctx: ToolContext, arguments: dict[str, Any]) -> list[MemoryDict]:
    args = parse_args(arguments, TaskIdArgs)
    require(args, "taskId")
    return ctx.client.list_task_memories(args["taskId"])


def _handle_memory_tasks(ctx: ToolContext, arguments: dict[str, Any]) -> list[TaskDict]:
    args = parse_args(arguments, MemoryIdArgs)
    require(args, "memoryId")
    return ctx.client.list_memory_tasks(args["memoryId"])


def _handle_create_memory_task_link(ctx: ToolContext, arguments: dict[str, Any]) -> Any:
    args = parse_args(arguments, CreateMemoryTaskLinkArgs)
    require(args, "taskId", "memoryId")
    link = ctx.client.create_memory_task_link(args["taskId"], args["memoryId"], args.get("relationType", ""))
    if link is None:
        return OkResponse(ok=True)
    return link


def _handle_get_memory(ctx: ToolContext, arguments: dict[str, Any]) -> MemoryDict:
    args = parse_args(arguments, MemoryIdArgs)
    require(args, "memoryId")
    return ctx.client.get_memory(args["memoryId"])


def _handle_update_memory(ctx: ToolContext, arguments: dict[str, Any]) -> MemoryDict:
    args = parse_args(arguments, UpdateMemoryArgs)
    require(args, "memoryId")
    updates = optional_updates(args, non_empty=("content",), allow_empty=("tags",))
    return ctx.client.update_memory(args["memoryId"], updates)


def _handle_delete_memory(ctx: ToolContext, arguments: dict[str, Any]) -> DeletedResponse:
    args = parse_args(arguments, MemoryIdArgs)
    require(args, "memoryId")
    ctx.client.delete_memory(args["memoryId"])
    return DeletedResponse(ok=True, deleted=args["memoryId"])


def _handle_recall(ctx: ToolContext, arguments: dict[str, Any]) -> RecallResponse:
    args = parse_args(arguments, RecallArgs)
    require(args, "term")
    term = args["term"]
    limit = args.get("limit") or _DEFAULT_RECALL_LIMIT

    results: list[RecallHit] = []
    for memory in ctx.client.list_memories():
        if not _matches(memory, term):
            continue
        results.append(
            RecallHit(
                id=str(memory.get("id", "")),
                content=str(memory.get("content", "")),
                created_at=memory.get("created_at"),
            )
        )
        if len(results) >= limit:
            break

    return RecallResponse(term=term, count=len(results), results=results)
