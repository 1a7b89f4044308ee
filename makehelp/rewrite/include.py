"""Append a self-locating include directive for the help file."""

from __future__ import annotations

import os
import re
from pathlib import Path

from .atomic import atomic_write

SELF_DIR = "$(dir $(lastword $(MAKEFILE_LIST)))"


def include_directive(rel_path: str) -> str:
    return f"-include {SELF_DIR}{rel_path}"


def relative_help_path(makefile_path: str, help_file: str) -> str:
    rel_path = os.path.relpath(help_file, os.path.dirname(makefile_path))
    return Path(rel_path).as_posix()


def has_include_for(content: str, rel_path: str) -> bool:
    pattern = re.compile(
        r"(?m)^-?include\s+(\$\(dir \$\(lastword \$\(MAKEFILE_LIST\)\)\))?(\./)?"
        + re.escape(rel_path)
        + r"\s*$"
    )
    return bool(pattern.search(content))


def add_include_directive(makefile_path: str, help_file: str) -> bool:
    """Append an include for `help_file` unless one exists. Returns True if written."""
    path = Path(makefile_path)
    content = path.read_text(encoding="utf-8")
    rel_path = relative_help_path(makefile_path, help_file)
    if has_include_for(content, rel_path):
        return False
    atomic_write(path, content + f"\n{include_directive(rel_path)}\n")
    return True


__all__ = [
    "SELF_DIR",
    "add_include_directive",
    "has_include_for",
    "include_directive",
    "relative_help_path",
]
