"""Entry-point Makefile resolution and syntax validation."""

from __future__ import annotations

import os
from pathlib import Path

from ..errors import ResolvePathError, ScriptNotFoundError, ValidationFailedError
from .executor import GENERATING_ENV, VALIDATION_TIMEOUT, Outcome, SubprocessGateway


def resolve_makefile_path(path: str | None) -> str:
    """Return an absolute Makefile path, defaulting to ./Makefile."""
    try:
        if not path:
            return os.path.join(os.getcwd(), "Makefile")
        return os.path.abspath(os.path.expanduser(path))
    except OSError as exc:
        raise ResolvePathError(f"failed to resolve Makefile path {path!r}: {exc}") from exc


def validate_makefile_exists(path: str) -> None:
    candidate = Path(path)
    if not candidate.exists():
        raise ScriptNotFoundError(candidate)
    if candidate.is_dir():
        raise ScriptNotFoundError(
            candidate,
            f"Makefile path is a directory: {candidate}\n"
            "Use --makefile-path to point at the Makefile itself",
        )


def validate_makefile_syntax(
    gateway: SubprocessGateway,
    path: str,
    *,
    timeout: float = VALIDATION_TIMEOUT,
) -> None:
    """Run `make -n` so broken Makefiles are never rewritten."""
    result = gateway.run(
        ["make", "-n", "-f", path],
        timeout=timeout,
        env={GENERATING_ENV: "1"},
        cwd=str(Path(path).parent),
    )
    if result.outcome is Outcome.TIMEOUT:
        raise ValidationFailedError("validation timed out")
    if not result.ok:
        raise ValidationFailedError(f"syntax error in Makefile:\n{result.stderr}")


__all__ = ["resolve_makefile_path", "validate_makefile_exists", "validate_makefile_syntax"]
