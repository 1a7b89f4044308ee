"""Remove generated help targets, their include lines and help files."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from ..discovery.executor import SubprocessGateway
from ..discovery.makefile import validate_makefile_syntax
from ..errors import WriteFailedError
from ..logging import get_logger
from .atomic import atomic_write
from .include import has_include_for
from .placement import find_generated_help_files

_HELP_INCLUDE = re.compile(
    r"^-?include\s+(\$\(dir \$\(lastword \$\(MAKEFILE_LIST\)\)\))?(\S*/)?(\d+-)?help\.mk\s*$"
)


@dataclass
class RemovalResult:
    makefile_path: str
    removed_includes: List[str] = field(default_factory=list)
    removed_inline: bool = False
    deleted_files: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed_includes or self.removed_inline or self.deleted_files)

    def message(self) -> str:
        if self.changed:
            return f"Successfully removed help target from: {self.makefile_path}"
        return f"No help target found in: {self.makefile_path}"


def strip_help_includes(content: str, explicit_rel_path: str = "") -> Tuple[str, List[str]]:
    """Drop include lines for help files, and for `explicit_rel_path` when given."""
    kept: List[str] = []
    removed: List[str] = []
    for line in content.split("\n"):
        if _HELP_INCLUDE.match(line) or (
            explicit_rel_path and has_include_for(line, explicit_rel_path)
        ):
            removed.append(line)
        else:
            kept.append(line)
    return "\n".join(kept), removed


def strip_inline_help_target(content: str) -> Tuple[str, bool]:
    """Drop `.PHONY: help` and `help:` blocks written directly in the Makefile.

    A block runs until the first non-indented, non-blank line.
    """
    kept: List[str] = []
    in_block = False
    removed = False
    for line in content.split("\n"):
        if _starts_help_block(line):
            in_block = True
            removed = True
            continue
        if in_block:
            if not line.strip() or line.startswith(("\t", " ")):
                continue
            in_block = False
        kept.append(line)
    return "\n".join(kept), removed


def _starts_help_block(line: str) -> bool:
    if line.startswith(".PHONY:"):
        names = line[len(".PHONY:"):].split()
        return names == ["help"]
    return bool(re.match(r"^help\s*:(?!=)", line))


class HelpRemover:
    """Undo everything help generation added to a Makefile."""

    def __init__(self, gateway: SubprocessGateway | None = None) -> None:
        self.gateway = gateway or SubprocessGateway()
        self.logger = get_logger("remove")

    def remove(self, makefile_path: str, explicit_rel_path: str = "") -> RemovalResult:
        validate_makefile_syntax(self.gateway, makefile_path)
        result = RemovalResult(makefile_path=makefile_path)
        path = Path(makefile_path)

        content = path.read_text(encoding="utf-8")
        content, result.removed_includes = strip_help_includes(content, explicit_rel_path)
        for line in result.removed_includes:
            self.logger.debug("Removed include directive: %s", line)
        if result.removed_includes:
            atomic_write(path, content)

        content, result.removed_inline = strip_inline_help_target(content)
        if result.removed_inline:
            self.logger.debug("Removed inline help target from %s", makefile_path)
            atomic_write(path, content)

        for help_file in find_generated_help_files(makefile_path, explicit_rel_path):
            try:
                os.remove(help_file)
            except OSError as exc:
                raise WriteFailedError(help_file, f"cannot remove: {exc.strerror or exc}") from exc
            self.logger.debug("Removed help file: %s", help_file)
            result.deleted_files.append(help_file)

        return result


__all__ = [
    "HelpRemover",
    "RemovalResult",
    "strip_help_includes",
    "strip_inline_help_target",
]
