"""Subprocess gateway for invoking make."""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping, Optional, Sequence

from ..logging import get_logger

INTROSPECTION_TIMEOUT = 30.0
VALIDATION_TIMEOUT = 10.0

GENERATING_ENV = "MAKE_HELP_GENERATING"


class Outcome(Enum):
    OK = "ok"
    TIMEOUT = "timeout"
    NON_ZERO = "non_zero"
    SPAWN_FAILURE = "spawn_failure"


@dataclass
class CommandResult:
    """Captured output of one make invocation."""

    stdout: str
    stderr: str
    outcome: Outcome
    exit_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK


Runner = Callable[..., subprocess.CompletedProcess]


class SubprocessGateway:
    """Runs commands with a hard timeout and classifies the result."""

    def __init__(self, runner: Runner | None = None) -> None:
        self._runner = runner or subprocess.run
        self.logger = get_logger("executor")

    def run(
        self,
        args: Sequence[str],
        *,
        timeout: float = INTROSPECTION_TIMEOUT,
        env: Mapping[str, str] | None = None,
        cwd: str | None = None,
    ) -> CommandResult:
        """Execute `args` and return stdout, stderr and the outcome."""
        command = list(args)
        merged_env = None
        if env:
            merged_env = os.environ.copy()
            merged_env.update(env)
        self.logger.debug("Running %s", " ".join(command))
        try:
            completed = self._runner(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=merged_env,
                cwd=cwd,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            return CommandResult(
                stdout=_decode(exc.stdout),
                stderr=_decode(exc.stderr),
                outcome=Outcome.TIMEOUT,
            )
        except OSError as exc:
            return CommandResult(stdout="", stderr=str(exc), outcome=Outcome.SPAWN_FAILURE)

        if completed.returncode != 0:
            return CommandResult(
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
                outcome=Outcome.NON_ZERO,
                exit_code=completed.returncode,
            )
        return CommandResult(
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            outcome=Outcome.OK,
            exit_code=0,
        )


def _decode(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


__all__ = [
    "CommandResult",
    "GENERATING_ENV",
    "INTROSPECTION_TIMEOUT",
    "Outcome",
    "SubprocessGateway",
    "VALIDATION_TIMEOUT",
]
