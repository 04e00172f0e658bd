# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
"""TypedDict contracts for MCP tool handler input arguments.

Each TypedDict mirrors the JSON Schema ``inputSchema`` on the corresponding
``mcp.types.Tool`` definition.  The ``TOOL_ARGS_MAP`` registry maps tool names
to their TypedDict class; the dispatcher coerces the raw argument bag against
these annotations (``mcp_tools.common.parse_args``) before any handler runs,
and the sync test verifies structural agreement with the schemas.
"""

# NOTE: Do NOT add ``from __future__ import annotations`` to this module.
# parse_args() resolves field types with get_type_hints(), and the sync test
# relies on TypedDict.__required_keys__ / __optional_keys__ introspection.

from typing import NotRequired, TypedDict

# ---------------------------------------------------------------------------
# tasks.py handlers
# ---------------------------------------------------------------------------


class CreateTaskArgs(TypedDict):
    description: str
    priority: NotRequired[str]
    project: NotRequired[str]


class ListTasksArgs(TypedDict):
    status: NotRequired[str]
    project: NotRequired[str]
    limit: NotRequired[int]


class SearchTasksArgs(TypedDict):
    query: str
    status: NotRequired[str]
    project: NotRequired[str]
    tag: NotRequired[str]
    limit: NotRequired[int]


class GetNextTasksArgs(TypedDict):
    count: NotRequired[int]
    project: NotRequired[str]
    tag: NotRequired[str]


class TaskIdArgs(TypedDict):
    taskId: str


class UpdateTaskStatusArgs(TypedDict):
    taskId: str
    status: str


class UpdateProgressArgs(TypedDict):
    taskId: str
    progress: int


class AddTaskNoteArgs(TypedDict):
    taskId: str
    note: str


class CreateSubtaskArgs(TypedDict):
    parentTaskId: str
    description: str


class BulkTasksArgs(TypedDict):
    taskIds: list[str]


class DuplicateTaskArgs(TypedDict):
    taskId: str
    newDescription: NotRequired[str]


class MoveTasksArgs(TypedDict):
    taskIds: list[str]
    targetProject: str


# ---------------------------------------------------------------------------
# projects.py handlers
# ---------------------------------------------------------------------------


class CreateProjectArgs(TypedDict):
    name: str
    description: NotRequired[str]


class SetActiveProjectArgs(TypedDict):
    projectName: str


class ProjectIdArgs(TypedDict):
    projectId: str


class UpdateProjectArgs(TypedDict):
    projectId: str
    name: NotRequired[str]
    description: NotRequired[str]


class ExportProjectArgs(TypedDict):
    project: str
    format: NotRequired[str]


# ---------------------------------------------------------------------------
# memories.py handlers
# ---------------------------------------------------------------------------


class AddMemoryArgs(TypedDict):
    content: str
    project: NotRequired[str]


class ListMemoriesArgs(TypedDict):
    project: NotRequired[str]
    term: NotRequired[str]
    limit: NotRequired[int]


class MemoryIdArgs(TypedDict):
    memoryId: str


class CreateMemoryTaskLinkArgs(TypedDict):
    taskId: str
    memoryId: str
    relationType: NotRequired[str]


class UpdateMemoryArgs(TypedDict):
    memoryId: str
    content: NotRequired[str]
    tags: NotRequired[list[str]]


class RecallArgs(TypedDict):
    term: str
    limit: NotRequired[int]


# ---------------------------------------------------------------------------
# reports.py handlers
# ---------------------------------------------------------------------------


class GetStatsArgs(TypedDict):
    project: NotRequired[str]


class HistoryArgs(TypedDict):
    days: NotRequired[int]
    project: NotRequired[str]


# ---------------------------------------------------------------------------
# workspace.py handlers
# ---------------------------------------------------------------------------


class CreateContextArgs(TypedDict):
    name: str
    description: NotRequired[str]


class SetActiveContextArgs(TypedDict):
    name: str


class ListContextPacksArgs(TypedDict):
    type: NotRequired[str]
    status: NotRequired[str]
    query: NotRequired[str]
    limit: NotRequired[int]


class PackIdArgs(TypedDict):
    packId: str


class CreateContextPackArgs(TypedDict):
    name: str
    type: str
    description: NotRequired[str]
    status: NotRequired[str]
    tags: NotRequired[list[str]]


class UpdateContextPackArgs(TypedDict):
    packId: str
    name: NotRequired[str]
    type: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[str]
    tags: NotRequired[list[str]]


class OrgIdArgs(TypedDict):
    orgId: str


class CreateOrganizationArgs(TypedDict):
    name: str
    description: NotRequired[str]


# ---------------------------------------------------------------------------
# decisions.py handlers
# ---------------------------------------------------------------------------


class ListDecisionsArgs(TypedDict):
    status: NotRequired[str]
    area: NotRequired[str]
    limit: NotRequired[int]


class DecisionIdArgs(TypedDict):
    decisionId: str


class CreateDecisionArgs(TypedDict):
    title: str
    description: NotRequired[str]
    status: NotRequired[str]
    area: NotRequired[str]
    context: NotRequired[str]
    consequences: NotRequired[str]


class UpdateDecisionArgs(TypedDict):
    decisionId: str
    title: NotRequired[str]
    description: NotRequired[str]
    status: NotRequired[str]
    area: NotRequired[str]
    context: NotRequired[str]
    consequences: NotRequired[str]


# Registry: tool_name -> TypedDict class.
# No-argument tools (empty inputSchema properties) are intentionally excluded.
TOOL_ARGS_MAP: dict[str, type] = {
    # tasks.py
    "create_task": CreateTaskArgs,
    "list_tasks": ListTasksArgs,
    "search_tasks": SearchTasksArgs,
    "get_next_tasks": GetNextTasksArgs,
    "get_task": TaskIdArgs,
    "start_task": TaskIdArgs,
    "complete_task": TaskIdArgs,
    "stop_task": TaskIdArgs,
    "delete_task": TaskIdArgs,
    "update_task_status": UpdateTaskStatusArgs,
    "update_progress": UpdateProgressArgs,
    "add_task_note": AddTaskNoteArgs,
    "create_subtask": CreateSubtaskArgs,
    "bulk_start_tasks": BulkTasksArgs,
    "bulk_complete_tasks": BulkTasksArgs,
    "duplicate_task": DuplicateTaskArgs,
    "move_tasks_to_project": MoveTasksArgs,
    # projects.py
    "create_project": CreateProjectArgs,
    "set_active_project": SetActiveProjectArgs,
    "get_project": ProjectIdArgs,
    "update_project": UpdateProjectArgs,
    "delete_project": ProjectIdArgs,
    "export_project": ExportProjectArgs,
    # memories.py
    "add_memory": AddMemoryArgs,
    "list_memories": ListMemoriesArgs,
    "get_task_memories": TaskIdArgs,
    "memory_tasks": MemoryIdArgs,
    "create_memory_task_link": CreateMemoryTaskLinkArgs,
    "get_memory": MemoryIdArgs,
    "update_memory": UpdateMemoryArgs,
    "delete_memory": MemoryIdArgs,
    "recall": RecallArgs,
    # reports.py
    "get_stats": GetStatsArgs,
    "get_history": HistoryArgs,
    "timeline": HistoryArgs,
    "analyze_task_risks": TaskIdArgs,
    "analyze_task_dependencies": TaskIdArgs,
    # workspace.py
    "create_context": CreateContextArgs,
    "set_active_context": SetActiveContextArgs,
    "list_context_packs": ListContextPacksArgs,
    "get_context_pack": PackIdArgs,
    "create_context_pack": CreateContextPackArgs,
    "update_context_pack": UpdateContextPackArgs,
    "delete_context_pack": PackIdArgs,
    "activate_context_pack": PackIdArgs,
    "get_organization": OrgIdArgs,
    "create_organization": CreateOrganizationArgs,
    # decisions.py
    "list_decisions": ListDecisionsArgs,
    "get_decision": DecisionIdArgs,
    "create_decision": CreateDecisionArgs,
    "update_decision": UpdateDecisionArgs,
    "delete_decision": DecisionIdArgs,
}
