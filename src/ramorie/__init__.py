"""Ramorie: agent-facing task and memory tools over MCP stdio."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("ramorie")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

from ramorie.client import ApiError, RamorieClient

__all__ = ["ApiError", "RamorieClient", "__version__"]
