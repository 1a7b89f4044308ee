"""Choose where the generated help file lives and detect existing ones."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..logging import get_logger

MAKE_DIR = "make"
HELP_BASENAME = "help"
DEFAULT_SUFFIX = ".mk"

_MAKE_INCLUDE = re.compile(
    r"(?m)^-?include\s+(?:\$\([^)]+\))?(\./)?make/\*(\.[a-zA-Z0-9]+)?(?:\s|$)"
)
_HELP_FILE = re.compile(r"^(0+-)?help(\.mk)?$")
_GENERATED_MARKER = re.compile(r"(?i)^#\s*generated[- ]by:?\s*make-help")
_COMMAND_PREFIX = "# command:"

logger = get_logger("placement")


@dataclass
class IncludePattern:
    """An `include make/*<suffix>` line found in the entry point."""

    suffix: str
    full_pattern: str
    pattern_prefix: str


@dataclass
class Placement:
    path: str
    needs_include: bool


def find_make_include_pattern(content: str) -> Optional[IncludePattern]:
    match = _MAKE_INCLUDE.search(content)
    if not match:
        return None
    return IncludePattern(
        suffix=match.group(2) or "",
        full_pattern=match.group(0).strip(),
        pattern_prefix="./make/" if match.group(1) else "make/",
    )


def number_prefix(make_dir: Path, suffix: str) -> str:
    """Return a zero prefix so the help file sorts before numbered siblings.

    The prefix is as wide as the widest numeric prefix among files the include
    pattern would load (`10-a.mk`, `100-b.mk` -> `000-`).
    """
    if not make_dir.is_dir():
        return ""
    numbered = re.compile(r"^(\d+)-.*" + re.escape(suffix) + r"$")
    widest = 0
    for entry in make_dir.iterdir():
        if entry.is_dir():
            continue
        match = numbered.match(entry.name)
        if match:
            widest = max(widest, len(match.group(1)))
    if not widest:
        return ""
    return "0" * widest + "-"


def determine_target_file(
    makefile_path: str,
    explicit_rel_path: str = "",
    *,
    create_dirs: bool = True,
) -> Placement:
    """Pick the help file location using the three-tier policy.

    1. An explicit relative path always wins and needs an include line.
    2. An `include make/*` pattern in the entry point means the file goes in
       make/ (with a numbered prefix when siblings are numbered) and is
       already covered by that include.
    3. Otherwise the file is make/help.mk and needs an include line.
    """
    makefile_dir = Path(makefile_path).parent

    if explicit_rel_path:
        target = makefile_dir / explicit_rel_path
        if create_dirs:
            target.parent.mkdir(parents=True, exist_ok=True)
        return Placement(path=os.path.normpath(str(target)), needs_include=True)

    content = Path(makefile_path).read_text(encoding="utf-8", errors="replace")
    pattern = find_make_include_pattern(content)

    make_dir = makefile_dir / MAKE_DIR
    if create_dirs:
        make_dir.mkdir(parents=True, exist_ok=True)

    if pattern is None:
        return Placement(path=str(make_dir / (HELP_BASENAME + DEFAULT_SUFFIX)), needs_include=True)

    suffix = pattern.suffix
    prefix = number_prefix(make_dir, suffix)
    filename = f"{prefix}{HELP_BASENAME}{suffix}"
    logger.debug("Include pattern %r found; help file is %s", pattern.full_pattern, filename)
    return Placement(path=str(make_dir / filename), needs_include=False)


def is_generated_by_make_help(path: Path | str) -> bool:
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            first_line = handle.readline().strip()
    except OSError:
        return False
    return bool(_GENERATED_MARKER.match(first_line))


def find_existing_help_file(makefile_path: str, explicit_rel_path: str = "") -> Optional[str]:
    """Return a previously generated help file for this Makefile, if any."""
    found = find_generated_help_files(makefile_path, explicit_rel_path)
    return found[0] if found else None


def find_generated_help_files(makefile_path: str, explicit_rel_path: str = "") -> list[str]:
    """Every generated help file known for this Makefile."""
    makefile_dir = Path(makefile_path).parent
    found: list[str] = []
    if explicit_rel_path:
        candidate = makefile_dir / explicit_rel_path
        if is_generated_by_make_help(candidate):
            found.append(os.path.normpath(str(candidate)))
    make_dir = makefile_dir / MAKE_DIR
    if make_dir.is_dir():
        for entry in sorted(make_dir.iterdir()):
            if entry.is_file() and _HELP_FILE.match(entry.name) and is_generated_by_make_help(entry):
                if str(entry) not in found:
                    found.append(str(entry))
    return found


def extract_command_line(path: Path | str) -> str:
    """Return the `# command:` value recorded in a generated help file."""
    with open(path, encoding="utf-8", errors="replace") as handle:
        for line in handle:
            stripped = line.strip()
            if stripped.startswith(_COMMAND_PREFIX):
                return stripped[len(_COMMAND_PREFIX):].strip()
    return ""


__all__ = [
    "IncludePattern",
    "Placement",
    "determine_target_file",
    "extract_command_line",
    "find_existing_help_file",
    "find_generated_help_files",
    "find_make_include_pattern",
    "is_generated_by_make_help",
    "number_prefix",
]
