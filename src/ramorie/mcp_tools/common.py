"""Pure helpers and constants shared across MCP tool modules.

This module has NO dependency on ``mcp_server`` module globals, so it can
be imported freely without triggering circular-import issues.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar, cast, get_args, get_origin, get_type_hints

from mcp.types import Tool

from ramorie.core import read_config, write_config
from ramorie.validation import clean_str, clean_str_list, is_uuid, to_int

if TYPE_CHECKING:
    from ramorie.client import RamorieClient
    from ramorie.core import CliConfig
    from ramorie.types.core import ProjectDict

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

Handler = Callable[["ToolContext", dict[str, Any]], Any]
Registration = tuple[list[Tool], dict[str, Handler]]


class ToolError(ValueError):
    """A tool call could not be completed; the message is shown to the agent."""


@dataclass
class ToolContext:
    """Everything a handler may touch, built once per server process.

    ``config`` holds the active project/context identifiers; only
    :meth:`set_active_project` and :meth:`set_active_context` change them.
    """

    client: RamorieClient
    config: CliConfig
    config_dir: Path | None = None
    persist: bool = True

    def set_active_project(self, project_id: str) -> None:
        self.config.active_project_id = project_id
        self._persist("active_project_id", project_id)

    def set_active_context(self, context_id: str) -> None:
        self.config.active_context_id = context_id
        self._persist("active_context_id", context_id)

    def _persist(self, key: str, value: str) -> None:
        if not self.persist:
            return
        # Re-read without env overrides so RAMORIE_API_KEY never lands on disk.
        on_disk = read_config(self.config_dir, apply_env=False)
        setattr(on_disk, key, value)
        try:
            write_config(on_disk, self.config_dir)
        except OSError:
            logger.warning("Failed to persist %s", key, exc_info=True)


# ---------------------------------------------------------------------------
# Argument boundary
# ---------------------------------------------------------------------------


def _coerce(key: str, value: Any, annotation: Any) -> tuple[bool, Any]:
    """Coerce one raw argument. Returns (keep, value)."""
    if annotation is str:
        if not isinstance(value, str):
            return (False, None)
        return (True, value.strip())
    if annotation is int:
        return (True, to_int(value))
    if get_origin(annotation) is list and get_args(annotation) == (str,):
        items, err = clean_str_list(value, key)
        if err:
            raise ToolError(err)
        return (True, items)
    return (True, value)


def parse_args(arguments: dict[str, Any], cls: type[_T]) -> _T:
    """Coerce a raw MCP argument bag against a TypedDict from ``types.inputs``.

    Strings are trimmed (non-strings dropped as absent), numbers go through
    :func:`ramorie.validation.to_int`, string arrays are type-checked, and
    keys the TypedDict does not declare are discarded. Presence of required
    keys is left to the handler, which owns the error wording.
    """
    hints = _hints_for(cls)
    parsed: dict[str, Any] = {}
    for key, annotation in hints.items():
        if key not in arguments or arguments[key] is None:
            continue
        keep, value = _coerce(key, arguments[key], annotation)
        if keep:
            parsed[key] = value
    return cast(_T, parsed)


_HINT_CACHE: dict[type, dict[str, Any]] = {}


def _hints_for(cls: type) -> dict[str, Any]:
    hints = _HINT_CACHE.get(cls)
    if hints is None:
        hints = get_type_hints(cls)
        _HINT_CACHE[cls] = hints
    return hints


def require(args: Any, *keys: str) -> None:
    """Raise ToolError unless every key holds a non-empty value."""
    if all(args.get(k) for k in keys):
        return
    if len(keys) == 1:
        msg = f"{keys[0]} is required"
    else:
        msg = f"{', '.join(keys[:-1])} and {keys[-1]} are required"
    raise ToolError(msg)


def optional_updates(args: Any, *, non_empty: tuple[str, ...] = (), allow_empty: tuple[str, ...] = ()) -> dict[str, Any]:
    """Collect update fields present in *args*.

    Keys in *non_empty* are only taken when they hold a non-blank value;
    keys in *allow_empty* are taken whenever supplied, so callers can clear
    a field with ``""``.
    """
    updates: dict[str, Any] = {}
    for key in non_empty:
        if args.get(key):
            updates[key] = args[key]
    for key in allow_empty:
        if key in args:
            updates[key] = args[key]
    return updates


def slice_limit(items: list[Any], limit: int) -> list[Any]:
    """Apply a positive ``limit``; zero or negative means unlimited."""
    if 0 < limit < len(items):
        return items[:limit]
    return items


# ---------------------------------------------------------------------------
# Identifier resolution
# ---------------------------------------------------------------------------


def _match_one(candidates: list[Any], identifier: str, kind: str) -> Any:
    """Pick the candidate whose name equals or whose id starts with *identifier*."""
    exact = [c for c in candidates if c.get("name") == identifier]
    if len(exact) == 1:
        return exact[0]
    matches = exact or [c for c in candidates if str(c.get("id", "")).startswith(identifier)]
    if not matches:
        msg = f"{kind} not found: {identifier}"
        raise ToolError(msg)
    if len(matches) > 1:
        msg = f"ambiguous {kind} identifier '{identifier}' matches {len(matches)} {kind}s, be more specific"
        raise ToolError(msg)
    return matches[0]


def find_project(ctx: ToolContext, identifier: str) -> ProjectDict:
    """Resolve a project name or id prefix against the backend's project list."""
    return cast("ProjectDict", _match_one(ctx.client.list_projects(), identifier, "project"))


def resolve_project_id(ctx: ToolContext, identifier: str = "") -> str:
    """Resolve an explicit project identifier, or the active project when blank.

    Blank identifiers fall back to the locally persisted active project,
    then to whichever backend project is flagged active.
    """
    identifier = clean_str(identifier)
    if not identifier:
        if ctx.config.active_project_id:
            return ctx.config.active_project_id
        for project in ctx.client.list_projects():
            if project.get("is_active"):
                return str(project["id"])
        msg = "no active project: pass a project name or ID, or call set_active_project first"
        raise ToolError(msg)

    if is_uuid(identifier):
        return identifier
    return str(find_project(ctx, identifier)["id"])


def optional_project_id(ctx: ToolContext, identifier: str = "") -> str:
    """Resolve *identifier* only when supplied; blank means "all projects"."""
    if not clean_str(identifier):
        return ""
    return resolve_project_id(ctx, identifier)


def resolve_task_ids(ctx: ToolContext, task_ids: Any) -> list[str]:
    """Expand short task identifiers to full ids via the backend.

    Bulk endpoints only accept full UUIDs, while single-task lookups also
    accept short identifiers.
    """
    if task_ids is None:
        msg = "taskIds is required"
        raise ToolError(msg)
    if not task_ids:
        msg = "taskIds cannot be empty"
        raise ToolError(msg)
    resolved: list[str] = []
    for raw in task_ids:
        if not raw:
            continue
        task = ctx.client.get_task(raw)
        resolved.append(str(task.get("id", raw)) if isinstance(task, dict) else raw)
    if not resolved:
        msg = "no valid task ids"
        raise ToolError(msg)
    return resolved
