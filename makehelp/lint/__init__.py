"""Documentation lint checks and auto-fixes."""

from __future__ import annotations

from .checks import (
    Check,
    CheckContext,
    Fix,
    FixOperation,
    LintWarning,
    all_checks,
    collect_fixes,
    run_checks,
)
from .fixer import FixResult, Fixer, format_report

__all__ = [
    "Check",
    "CheckContext",
    "Fix",
    "FixOperation",
    "FixResult",
    "Fixer",
    "LintWarning",
    "all_checks",
    "collect_fixes",
    "format_report",
    "run_checks",
]
