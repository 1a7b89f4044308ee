"""Apply lint fixes and format lint reports."""

from __future__ import annotations

import os
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..logging import get_logger
from ..rewrite.atomic import atomic_write
from .checks import Fix, FixOperation, LintWarning


@dataclass
class FixResult:
    total_fixed: int = 0
    files_modified: Dict[str, int] = field(default_factory=dict)


class Fixer:
    """Applies fixes file by file with one atomic write per file.

    Fixes whose `old_content` no longer matches the file are skipped.
    """

    def __init__(self, dry_run: bool = False) -> None:
        self.dry_run = dry_run
        self.logger = get_logger("fixer")

    def apply(self, fixes: Sequence[Fix]) -> FixResult:
        result = FixResult()
        by_file: Dict[str, List[Fix]] = defaultdict(list)
        for fix in fixes:
            by_file[fix.file].append(fix)

        for path, file_fixes in by_file.items():
            count = self._apply_file(path, file_fixes)
            if count:
                result.files_modified[path] = count
                result.total_fixed += count
        return result

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _apply_file(self, path: str, fixes: List[Fix]) -> int:
        with open(path, encoding="utf-8") as handle:
            lines = handle.read().splitlines()

        deleted = set()
        applied = 0
        for fix in sorted(fixes, key=lambda item: item.line, reverse=True):
            if not _is_valid(fix, lines):
                self.logger.debug("Skipping stale fix at %s:%d", path, fix.line)
                continue
            if fix.operation is FixOperation.REPLACE:
                lines[fix.line - 1] = fix.new_content
            else:
                deleted.add(fix.line - 1)
            applied += 1

        if not applied or self.dry_run:
            return applied

        kept = [line for index, line in enumerate(lines) if index not in deleted]
        atomic_write(path, "\n".join(kept) + "\n")
        self.logger.debug("Applied %d fix(es) to %s", applied, path)
        return applied


def _is_valid(fix: Fix, lines: List[str]) -> bool:
    if fix.line < 1 or fix.line > len(lines):
        return False
    expected = fix.old_content.strip()
    return not expected or lines[fix.line - 1].strip() == expected


def format_report(
    warnings: Sequence[LintWarning],
    fix_result: Optional[FixResult] = None,
    *,
    dry_run: bool = False,
    cwd: str | None = None,
) -> List[str]:
    """Render warnings grouped by file, then the totals."""
    lines: List[str] = []
    current_file: Optional[str] = None
    for warning in warnings:
        if warning.file != current_file:
            if current_file is not None:
                lines.append("")
            lines.append(_display_path(warning.file, cwd))
            current_file = warning.file
        tag = " [fixable]" if warning.fixable else ""
        if warning.line > 0:
            lines.append(f"  {warning.line}: {warning.message}{tag}")
        else:
            lines.append(f"  {warning.message}{tag}")

    if warnings:
        count = len(warnings)
        fixable = sum(1 for warning in warnings if warning.fixable)
        lines.append("")
        if fixable:
            lines.append(f"Found {count} warning(s) ({fixable} fixable)")
        elif count == 1:
            lines.append("Found 1 warning")
        else:
            lines.append(f"Found {count} warnings")

    if fix_result is not None:
        if warnings:
            lines.append("")
        verb = "Would fix" if dry_run else "Fixed"
        lines.append(
            f"{verb} {fix_result.total_fixed} issue(s) in {len(fix_result.files_modified)} file(s)"
        )
    return lines


def _display_path(path: str, cwd: str | None) -> str:
    base = cwd if cwd is not None else os.getcwd()
    if not path or not os.path.isabs(path):
        return path
    try:
        return os.path.relpath(path, base)
    except ValueError:
        return path


__all__ = ["FixResult", "Fixer", "format_report"]
