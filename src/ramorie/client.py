"""HTTP client for the ramorie backend.

Every task, project, memory, context, decision and organization operation
the MCP tools perform goes through :class:`RamorieClient`. Methods return
decoded JSON (dicts and lists) or raise :class:`ApiError`; callers never see
httpx exceptions or raw status codes.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ramorie.types.core import AnnotationDict, MemoryDict, ProjectDict, TaskDict

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
_LIST_ENVELOPE_KEYS = ("data", "items", "results")


class ApiError(Exception):
    """A backend call failed.

    ``status_code`` is ``None`` when the request never produced a response
    (DNS, connection refused, timeout).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


def describe_api_error(exc: ApiError) -> str:
    """Turn an ApiError into a message an agent can act on."""
    status = exc.status_code
    lowered = exc.message.lower()
    if status == 429 or "rate limit" in lowered or "too many requests" in lowered:
        return "Rate limit exceeded. Please wait a moment and try again."
    if status == 413 or "too large" in lowered:
        return "Content exceeds the maximum allowed length. Please reduce the content size."
    if status == 401 or "unauthorized" in lowered or "invalid api key" in lowered:
        return "Authentication failed. Set an API key with 'ramorie config set api_key <key>'."
    if status == 403 or "forbidden" in lowered or "suspended" in lowered:
        return "Access denied. Your account may be suspended."
    if status == 404:
        return f"Resource not found: {exc.message}"
    if status is not None and status >= 500:
        return f"Server error, please try again later: {exc.message}"
    if status is None:
        return f"Network error: {exc.message}"
    return exc.message


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    text = response.text.strip()
    return text or response.reason_phrase or "request failed"


def _unwrap_list(payload: Any, *keys: str) -> list[Any]:
    """Return the list inside a list endpoint's response.

    Accepts a bare array or an object envelope keyed by one of *keys* or a
    generic envelope key (``data``, ``items``, ``results``).
    """
    if payload is None:
        return []
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in (*keys, *_LIST_ENVELOPE_KEYS):
            value = payload.get(key)
            if isinstance(value, list):
                return value
    msg = "unexpected list response from backend"
    raise ApiError(msg)


def _unwrap_object(payload: Any, *keys: str) -> Any:
    """Return the record inside ``{"data": {...}}``-style envelopes."""
    if isinstance(payload, dict):
        for key in (*keys, "data"):
            value = payload.get(key)
            if isinstance(value, dict):
                return value
    return payload


class RamorieClient:
    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json", "User-Agent": "ramorie-mcp"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._http = httpx.Client(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> RamorieClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(self, method: str, path: str, body: Any = None, *, params: dict[str, Any] | None = None) -> Any:
        """Issue a request and return the decoded JSON body (``None`` if empty).

        This is also the escape hatch for report endpoints that have no
        dedicated method.
        """
        if not self._base_url:
            msg = "API URL is not configured"
            raise ApiError(msg)
        query = {k: v for k, v in (params or {}).items() if v not in (None, "")}
        try:
            response = self._http.request(
                method.upper(),
                path if path.startswith("/") else f"/{path}",
                json=body,
                params=query or None,
            )
        except httpx.HTTPError as exc:
            logger.warning("Backend request %s %s failed: %s", method, path, exc)
            raise ApiError(str(exc) or exc.__class__.__name__) from exc

        if response.is_error:
            raise ApiError(_error_message(response), response.status_code)
        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            msg = f"invalid JSON response from {path}"
            raise ApiError(msg, response.status_code) from exc

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(
        self,
        project_id: str = "",
        status: str = "",
        *,
        query: str = "",
        tags: list[str] | None = None,
    ) -> list[TaskDict]:
        params = {
            "project_id": project_id,
            "status": status,
            "q": query,
            "tags": ",".join(tags) if tags else None,
        }
        return _unwrap_list(self.request("GET", "/tasks", params=params), "tasks")

    def get_task(self, task_id: str) -> TaskDict:
        return _unwrap_object(self.request("GET", f"/tasks/{task_id}"), "task")

    def create_task(self, project_id: str, title: str, description: str = "", priority: str = "M") -> TaskDict:
        body = {"project_id": project_id, "title": title, "description": description, "priority": priority}
        return _unwrap_object(self.request("POST", "/tasks", body), "task")

    def update_task(self, task_id: str, updates: dict[str, Any]) -> TaskDict:
        return _unwrap_object(self.request("PUT", f"/tasks/{task_id}", updates), "task")

    def delete_task(self, task_id: str) -> None:
        self.request("DELETE", f"/tasks/{task_id}")

    def start_task(self, task_id: str) -> None:
        self.request("POST", f"/tasks/{task_id}/start")

    def complete_task(self, task_id: str) -> None:
        self.request("POST", f"/tasks/{task_id}/complete")

    def stop_task(self, task_id: str) -> None:
        self.request("POST", f"/tasks/{task_id}/stop")

    def get_active_task(self) -> TaskDict | None:
        return _unwrap_object(self.request("GET", "/tasks/active"), "task")

    def bulk_update_tasks(self, task_ids: list[str], status: str) -> None:
        self.request("PUT", "/tasks/bulk", {"task_ids": task_ids, "status": status})

    def create_annotation(self, task_id: str, content: str) -> AnnotationDict:
        return _unwrap_object(self.request("POST", f"/tasks/{task_id}/annotations", {"content": content}), "annotation")

    def create_subtask(self, task_id: str, description: str) -> TaskDict:
        return _unwrap_object(self.request("POST", f"/tasks/{task_id}/subtasks", {"description": description}), "subtask")

    def list_subtasks(self, task_id: str) -> list[TaskDict]:
        return _unwrap_list(self.request("GET", f"/tasks/{task_id}/subtasks"), "subtasks")

    def ai_risks(self, task_id: str) -> Any:
        return self.request("POST", f"/tasks/{task_id}/ai/risks")

    def ai_dependencies(self, task_id: str) -> Any:
        return self.request("POST", f"/tasks/{task_id}/ai/dependencies")

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self) -> list[ProjectDict]:
        return _unwrap_list(self.request("GET", "/projects"), "projects")

    def get_project(self, project_id: str) -> ProjectDict:
        return _unwrap_object(self.request("GET", f"/projects/{project_id}"), "project")

    def create_project(self, name: str, description: str = "") -> ProjectDict:
        return _unwrap_object(self.request("POST", "/projects", {"name": name, "description": description}), "project")

    def update_project(self, project_id: str, updates: dict[str, Any]) -> ProjectDict:
        return _unwrap_object(self.request("PUT", f"/projects/{project_id}", updates), "project")

    def delete_project(self, project_id: str) -> None:
        self.request("DELETE", f"/projects/{project_id}")

    def set_project_active(self, project_id: str) -> None:
        self.request("POST", f"/projects/{project_id}/activate")

    # ------------------------------------------------------------------
    # Memories
    # ------------------------------------------------------------------

    def list_memories(self, project_id: str = "", term: str = "") -> list[MemoryDict]:
        params = {"project_id": project_id, "q": term}
        return _unwrap_list(self.request("GET", "/memories", params=params), "memories")

    def get_memory(self, memory_id: str) -> MemoryDict:
        return _unwrap_object(self.request("GET", f"/memories/{memory_id}"), "memory")

    def create_memory(self, project_id: str, content: str) -> MemoryDict:
        body = {"project_id": project_id, "content": content}
        return _unwrap_object(self.request("POST", "/memories", body), "memory")

    def update_memory(self, memory_id: str, updates: dict[str, Any]) -> MemoryDict:
        return _unwrap_object(self.request("PUT", f"/memories/{memory_id}", updates), "memory")

    def delete_memory(self, memory_id: str) -> None:
        self.request("DELETE", f"/memories/{memory_id}")

    def list_task_memories(self, task_id: str) -> list[MemoryDict]:
        return _unwrap_list(self.request("GET", f"/tasks/{task_id}/memories"), "memories")

    def list_memory_tasks(self, memory_id: str) -> list[TaskDict]:
        return _unwrap_list(self.request("GET", f"/memories/{memory_id}/tasks"), "tasks")

    def create_memory_task_link(self, task_id: str, memory_id: str, relation_type: str = "") -> Any:
        body = {"task_id": task_id, "memory_id": memory_id, "relation_type": relation_type or "MANUAL"}
        return self.request("POST", "/memory-task-links", body)

    # ------------------------------------------------------------------
    # Contexts and context packs
    # ------------------------------------------------------------------

    def list_contexts(self) -> list[dict[str, Any]]:
        return _unwrap_list(self.request("GET", "/contexts"), "contexts")

    def create_context(self, name: str, description: str = "") -> dict[str, Any]:
        body = {"name": name, "description": description}
        return _unwrap_object(self.request("POST", "/contexts", body), "context")

    def use_context(self, name: str) -> dict[str, Any]:
        return _unwrap_object(self.request("POST", "/contexts/use", {"name": name}), "context")

    def list_context_packs(
        self,
        pack_type: str = "",
        status: str = "",
        query: str = "",
        limit: int = 0,
        offset: int = 0,
    ) -> Any:
        params = {
            "type": pack_type,
            "status": status,
            "q": query,
            "limit": limit if limit > 0 else None,
            "offset": offset if offset > 0 else None,
        }
        return self.request("GET", "/context-packs", params=params)

    def get_context_pack(self, pack_id: str) -> dict[str, Any]:
        return _unwrap_object(self.request("GET", f"/context-packs/{pack_id}"), "pack")

    def create_context_pack(
        self,
        name: str,
        pack_type: str,
        description: str = "",
        status: str = "",
        tags: list[str] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"name": name, "type": pack_type, "description": description, "tags": tags or []}
        if status:
            body["status"] = status
        return _unwrap_object(self.request("POST", "/context-packs", body), "pack")

    def update_context_pack(self, pack_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return _unwrap_object(self.request("PUT", f"/context-packs/{pack_id}", updates), "pack")

    def delete_context_pack(self, pack_id: str) -> None:
        self.request("DELETE", f"/context-packs/{pack_id}")

    def set_active_context_pack(self, pack_id: str) -> dict[str, Any]:
        return _unwrap_object(self.request("POST", f"/context-packs/{pack_id}/activate"), "pack")

    def get_active_context_pack(self) -> dict[str, Any] | None:
        return _unwrap_object(self.request("GET", "/context-packs/active"), "pack")

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    def list_organizations(self) -> list[dict[str, Any]]:
        return _unwrap_list(self.request("GET", "/organizations"), "organizations")

    def get_organization(self, org_id: str) -> dict[str, Any]:
        return _unwrap_object(self.request("GET", f"/organizations/{org_id}"), "organization")

    def create_organization(self, name: str, description: str = "") -> dict[str, Any]:
        body = {"name": name, "description": description}
        return _unwrap_object(self.request("POST", "/organizations", body), "organization")

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def list_decisions(self, status: str = "", area: str = "", limit: int = 0) -> list[dict[str, Any]]:
        params = {"status": status, "area": area, "limit": limit if limit > 0 else None}
        return _unwrap_list(self.request("GET", "/decisions", params=params), "decisions")

    def get_decision(self, decision_id: str) -> dict[str, Any]:
        return _unwrap_object(self.request("GET", f"/decisions/{decision_id}"), "decision")

    def create_decision(
        self,
        title: str,
        *,
        description: str = "",
        status: str = "",
        area: str = "",
        context: str = "",
        consequences: str = "",
    ) -> dict[str, Any]:
        body = {
            "title": title,
            "description": description,
            "status": status or "draft",
            "area": area,
            "context": context,
            "consequences": consequences,
        }
        return _unwrap_object(self.request("POST", "/decisions", body), "decision")

    def update_decision(self, decision_id: str, updates: dict[str, Any]) -> dict[str, Any]:
        return _unwrap_object(self.request("PUT", f"/decisions/{decision_id}", updates), "decision")

    def delete_decision(self, decision_id: str) -> None:
        self.request("DELETE", f"/decisions/{decision_id}")
