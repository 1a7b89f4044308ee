"""Build the target database from `make -p` output."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Optional

from ..errors import DiscoveryError, DiscoveryTimeoutError
from ..logging import get_logger
from ..models import TargetDatabase
from .executor import GENERATING_ENV, INTROSPECTION_TIMEOUT, Outcome, SubprocessGateway

_TARGET_LINE = re.compile(r"^([a-zA-Z0-9_/.@%+-][a-zA-Z0-9_/.@%+-]*)\s*::?\s*(.*)$")
_RECIPE_MARKER = "recipe to execute"
_NOT_A_TARGET = "# Not a target:"
_TARGET_VARIABLE = re.compile(r"^\S+\s*(?:::?=|:::=|[?+!]=|=)")
_NO_TARGETS_MARKER = "No targets"

SPECIAL_TARGETS = frozenset(
    {
        ".SUFFIXES",
        ".DEFAULT",
        ".PRECIOUS",
        ".INTERMEDIATE",
        ".SECONDARY",
        ".SECONDEXPANSION",
        ".DELETE_ON_ERROR",
        ".IGNORE",
        ".LOW_RESOLUTION_TIME",
        ".SILENT",
        ".EXPORT_ALL_VARIABLES",
        ".NOTPARALLEL",
        ".ONESHELL",
        ".POSIX",
        "Makefile",
        "makefile",
        "GNUmakefile",
    }
)

logger = get_logger("discovery.targets")


def discover_targets(
    gateway: SubprocessGateway,
    makefile_path: str,
    *,
    timeout: float = INTROSPECTION_TIMEOUT,
) -> TargetDatabase:
    """Run make in print-database mode and parse the dump."""
    path = Path(makefile_path)
    result = gateway.run(
        [
            "make",
            "-s",
            "--no-print-directory",
            "-f",
            str(path),
            "-p",
            "-r",
            f"{GENERATING_ENV}=1",
        ],
        timeout=timeout,
        env={GENERATING_ENV: "1"},
        cwd=str(path.parent),
    )
    if result.outcome is Outcome.TIMEOUT:
        raise DiscoveryTimeoutError(f"make timed out after {timeout:g}s while listing targets")
    if not result.ok:
        if _NO_TARGETS_MARKER in result.stderr:
            # `make -p` on a Makefile with no rules still prints a database.
            database = parse_database(result.stdout, extra_specials=[path.name])
            logger.debug("make reported no targets for %s", path)
            return database
        raise DiscoveryError(f"failed to discover targets:\n{result.stderr.strip()}")

    database = parse_database(result.stdout, extra_specials=[path.name])
    logger.debug(
        "Discovered %d target(s), %d phony", len(database.targets), len(database.phony)
    )
    return database


def is_special_target(name: str, extra_specials: Iterable[str] = ()) -> bool:
    """Return True for built-in special targets, pattern rules and assignments."""
    if name in SPECIAL_TARGETS or name in extra_specials:
        return True
    return "%" in name or "=" in name


def parse_database(output: str, extra_specials: Iterable[str] = ()) -> TargetDatabase:
    """Parse the textual database printed by `make -p`."""
    specials = set(extra_specials)
    database = TargetDatabase()
    current: Optional[str] = None
    skip_next = False

    for line in output.splitlines():
        if line == _NOT_A_TARGET:
            skip_next = True
            continue
        if line.startswith(".PHONY:"):
            database.phony.update(line[len(".PHONY:"):].split())
            current = None
            continue

        if _RECIPE_MARKER in line and current is not None:
            database.has_recipe.add(current)
            continue

        if not line or line.startswith("#") or line[0] in " \t":
            continue

        match = _TARGET_LINE.match(line)
        if not match:
            current = None
            continue

        name = match.group(1)
        remainder = match.group(2)
        if skip_next:
            skip_next = False
            current = None
            continue
        if remainder.startswith("=") or is_special_target(name, specials):
            current = None
            continue
        if _TARGET_VARIABLE.match(remainder):
            # Target-specific variable assignment, not a rule.
            continue

        current = name
        if name not in database.dependencies:
            database.targets.append(name)
            database.dependencies[name] = [
                dep for dep in remainder.split() if not is_special_target(dep, specials)
            ]

    database.phony = {name for name in database.phony if not is_special_target(name, specials)}
    return database


__all__ = ["SPECIAL_TARGETS", "discover_targets", "is_special_target", "parse_database"]
