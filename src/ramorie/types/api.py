# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
"""TypedDicts for MCP tool handler responses that are shaped locally.

Tools that pass backend records straight through return the types in
``ramorie.types.core``; these cover the acknowledgments and composite
payloads the handlers build themselves.
"""

from __future__ import annotations

from typing import Any, NotRequired, TypedDict


class OkResponse(TypedDict):
    ok: bool


class DeletedResponse(TypedDict):
    ok: bool
    deleted: str


class CountResponse(TypedDict):
    ok: bool
    count: int


class ActiveProjectResponse(TypedDict):
    ok: bool
    project_id: str
    name: str


class ActiveContextResponse(TypedDict):
    ok: bool
    context: Any
    context_id: NotRequired[str]


class DuplicateTaskResponse(TypedDict):
    ok: bool
    original_id: str
    new_id: str
    title: str


class MoveTasksResponse(TypedDict):
    ok: bool
    moved: int
    total: int
    project_id: str


class RecallHit(TypedDict):
    id: str
    content: str
    created_at: Any


class RecallResponse(TypedDict):
    term: str
    count: int
    results: list[RecallHit]


class ExportResponse(TypedDict):
    project: str
    format: str
    markdown: str


class ActivatePackResponse(TypedDict):
    ok: bool
    pack: Any
