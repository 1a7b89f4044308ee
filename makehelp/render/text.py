"""Render a HelpModel into help lines for the terminal or a generated file."""

from __future__ import annotations

import os
from typing import IO, List

from ..models import Category, HelpModel, TargetRecord
from .colors import ColorScheme

USAGE_LINE = "Usage: make [<target>...] [<ENV_VAR>=<value>...]"


class HelpRenderer:
    """Produces unescaped help lines shared by stdout output and help.mk."""

    def __init__(self, colors: ColorScheme | None = None, makefile_dir: str = "") -> None:
        self.colors = colors or ColorScheme()
        self.makefile_dir = makefile_dir

    def render_lines(self, model: HelpModel) -> List[str]:
        lines = [USAGE_LINE]

        entry_docs = next(
            (doc for doc in model.file_docs if doc.is_entry_point and doc.documentation), None
        )
        if entry_docs is not None:
            lines.append("")
            lines.extend(entry_docs.documentation)

        included = [doc for doc in model.file_docs if not doc.is_entry_point and doc.documentation]
        if included:
            lines.append("")
            lines.append("Included files:")
            for doc in included:
                lines.append(f"  {self.display_path(doc.source_file)}")
                for line in doc.documentation:
                    lines.append(f"    {line}" if line else "")
                lines.append("")

        if model.categories:
            lines.append("")
            lines.append("Targets:")
            for category in model.categories:
                lines.extend(self._category_lines(category))
        return lines

    def detailed_lines(self, target: TargetRecord) -> List[str]:
        c = self.colors
        lines = [f"{c.target}Target: {target.name}{c.reset}"]
        if target.aliases:
            lines.append(f"{c.alias}Aliases: {', '.join(target.aliases)}{c.reset}")
        if target.variables:
            lines.append(f"{c.variable}Variables:{c.reset}")
            for variable in target.variables:
                line = f"  - {c.variable}{variable.name}{c.reset}"
                if variable.description:
                    line += f": {c.documentation}{variable.description}{c.reset}"
                lines.append(line)
        if target.documentation:
            if target.variables:
                lines.append("")
            lines.extend(f"{c.documentation}{line}{c.reset}" for line in target.documentation)
        lines.extend(self._source_lines(target.source_file, target.line_number))
        return lines

    def basic_lines(self, name: str, source_file: str = "", line_number: int = 0) -> List[str]:
        """Lines for a target that exists but carries no documentation."""
        c = self.colors
        lines = [
            f"{c.target}Target: {name}{c.reset}",
            "",
            f"{c.documentation}No documentation available.{c.reset}",
        ]
        lines.extend(self._source_lines(source_file, line_number))
        return lines

    def display_path(self, path: str) -> str:
        return display_path(path, self.makefile_dir)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _category_lines(self, category: Category) -> List[str]:
        c = self.colors
        lines: List[str] = []
        if category.name:
            lines.append("")
            lines.append(f"{c.category}{category.name}:{c.reset}")
        for target in category.targets:
            lines.extend(self._target_lines(target))
        return lines

    def _target_lines(self, target: TargetRecord) -> List[str]:
        c = self.colors
        line = f"  - {c.target}{target.name}{c.reset}"
        if target.aliases:
            line += f" {c.alias}{', '.join(target.aliases)}{c.reset}"
        if target.summary:
            line += f": {c.documentation}{target.summary}{c.reset}"
        lines = [line]
        if target.variables:
            names = ", ".join(variable.name for variable in target.variables)
            lines.append(f"    Vars: {c.variable}{names}{c.reset}")
        return lines

    def _source_lines(self, source_file: str, line_number: int) -> List[str]:
        if not source_file:
            return []
        return ["", f"Source: {self.display_path(source_file)}:{line_number}"]


def display_path(path: str, makefile_dir: str) -> str:
    """Show absolute paths relative to the entry Makefile's directory."""
    if not path or not makefile_dir or not os.path.isabs(path):
        return path
    try:
        return os.path.relpath(path, makefile_dir)
    except ValueError:
        return path


def write_lines(lines: List[str], stream: IO[str]) -> None:
    for line in lines:
        stream.write(line + "\n")


__all__ = ["HelpRenderer", "USAGE_LINE", "display_path", "write_lines"]
