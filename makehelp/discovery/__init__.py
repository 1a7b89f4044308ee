"""Build-graph discovery: included Makefiles and the target database."""

from __future__ import annotations

from .executor import CommandResult, Outcome, SubprocessGateway
from .files import discover_makefiles
from .makefile import resolve_makefile_path, validate_makefile_exists, validate_makefile_syntax
from .targets import discover_targets, parse_database

__all__ = [
    "CommandResult",
    "Outcome",
    "SubprocessGateway",
    "discover_makefiles",
    "discover_targets",
    "parse_database",
    "resolve_makefile_path",
    "validate_makefile_exists",
    "validate_makefile_syntax",
]
