"""In-place Makefile rewriting with atomic writes."""

from __future__ import annotations

from .atomic import atomic_write
from .include import add_include_directive
from .placement import Placement, determine_target_file, find_existing_help_file
from .remove import HelpRemover, RemovalResult

__all__ = [
    "HelpRemover",
    "Placement",
    "RemovalResult",
    "add_include_directive",
    "atomic_write",
    "determine_target_file",
    "find_existing_help_file",
]
