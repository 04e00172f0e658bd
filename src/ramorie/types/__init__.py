# IMPORT CONSTRAINT: types/ modules must only import from typing, stdlib, and each other.
"""Typed contracts for backend records, tool inputs and tool responses."""

from __future__ import annotations

from ramorie.types.core import (
    AnnotationDict,
    ISOTimestamp,
    MemoryDict,
    ProjectDict,
    TaskDict,
)

__all__ = [
    "AnnotationDict",
    "ISOTimestamp",
    "MemoryDict",
    "ProjectDict",
    "TaskDict",
]
