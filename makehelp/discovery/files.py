"""Discover every Makefile loaded for an entry point via $(MAKEFILE_LIST)."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import List

from ..errors import (
    DiscoveryEmptyError,
    DiscoveryError,
    DiscoveryNotFoundError,
    DiscoveryReadError,
    DiscoveryTimeoutError,
)
from ..logging import get_logger
from .executor import GENERATING_ENV, INTROSPECTION_TIMEOUT, Outcome, SubprocessGateway

_LIST_TARGET = "_list_makefiles"
_LIST_RULE = f"\n\n.PHONY: {_LIST_TARGET}\n{_LIST_TARGET}:\n\t@echo $(MAKEFILE_LIST)\n"

logger = get_logger("discovery.files")


def discover_makefiles(
    gateway: SubprocessGateway,
    makefile_path: str,
    *,
    timeout: float = INTROSPECTION_TIMEOUT,
) -> List[str]:
    """Return the entry point plus every included Makefile, in load order.

    The entry point is copied next to itself with an extra phony rule that
    echoes $(MAKEFILE_LIST); the copy is removed on every exit path.
    """
    entry = Path(makefile_path)
    try:
        content = entry.read_bytes()
    except OSError as exc:
        raise DiscoveryReadError(f"failed to read Makefile {entry}: {exc}") from exc

    fd, tmp_name = tempfile.mkstemp(prefix=".makefile-discovery-", suffix=".mk", dir=entry.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(content)
            handle.write(_LIST_RULE.encode("utf-8"))
        result = gateway.run(
            ["make", "-s", "--no-print-directory", "-f", tmp_name, _LIST_TARGET],
            timeout=timeout,
            env={GENERATING_ENV: "1"},
            cwd=str(entry.parent),
        )
    finally:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass

    if result.outcome is Outcome.TIMEOUT:
        raise DiscoveryTimeoutError(f"make timed out after {timeout:g}s while listing Makefiles")
    if not result.ok:
        raise DiscoveryError(f"failed to list Makefiles:\n{result.stderr.strip()}")

    files = resolve_makefile_list(result.stdout, str(entry), Path(tmp_name).name)
    logger.debug("Discovered %d Makefile(s): %s", len(files), ", ".join(files))
    return files


def resolve_makefile_list(output: str, entry_path: str, tmp_basename: str) -> List[str]:
    """Turn `echo $(MAKEFILE_LIST)` output into absolute, existing paths."""
    tokens = output.split()
    if not tokens:
        raise DiscoveryEmptyError("no Makefiles found in MAKEFILE_LIST")

    base_dir = Path(entry_path).parent
    files: List[str] = []
    seen = set()
    for token in tokens:
        if Path(token).name == tmp_basename:
            resolved = str(Path(entry_path))
        else:
            candidate = Path(token)
            if not candidate.is_absolute():
                candidate = base_dir / candidate
            resolved = os.path.normpath(str(candidate))
        if resolved in seen:
            continue
        if not Path(resolved).exists():
            raise DiscoveryNotFoundError(f"Makefile not found: {resolved}")
        seen.add(resolved)
        files.append(resolved)
    return files


__all__ = ["discover_makefiles", "resolve_makefile_list"]
