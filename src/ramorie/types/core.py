# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
"""TypedDicts for records decoded from the ramorie backend.

The backend owns these shapes; keys are declared ``total=False`` because
list endpoints routinely omit relationships and optional columns.
"""

from __future__ import annotations

from typing import Any, NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class AnnotationDict(TypedDict, total=False):
    id: str
    task_id: str
    content: str
    created_at: ISOTimestamp


class TaskDict(TypedDict, total=False):
    id: str
    title: str
    description: str
    status: str
    priority: str
    progress: int
    project_id: str
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    completed_at: ISOTimestamp | None
    annotations: list[AnnotationDict]
    tags: Any


class ProjectDict(TypedDict, total=False):
    id: str
    name: str
    description: str | None
    is_active: bool
    created_at: ISOTimestamp
    updated_at: ISOTimestamp


class MemoryDict(TypedDict, total=False):
    id: str
    content: str
    project_id: str
    created_at: ISOTimestamp
    updated_at: ISOTimestamp
    tags: list[Any]
