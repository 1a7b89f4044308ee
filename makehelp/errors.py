"""Error types surfaced by make-help pipelines.

Every error carries a ``kind`` tag and a single human-readable message. The
CLI maps usage errors to exit code 2 and everything else to exit code 1.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence


class MakeHelpError(RuntimeError):
    """Base class for all make-help failures."""

    kind = "error"


class ResolvePathError(MakeHelpError):
    """Raised when the Makefile path cannot be made absolute."""

    kind = "resolvePath"


class ScriptNotFoundError(MakeHelpError):
    """Raised when the entry-point Makefile is missing or is a directory."""

    kind = "scriptNotFound"

    def __init__(self, path: Path | str, message: str | None = None) -> None:
        self.path = Path(path)
        if message is None:
            message = f"Makefile not found: {path}\nUse --makefile-path to specify location"
        super().__init__(message)


class ValidationFailedError(MakeHelpError):
    """Raised when `make -n` rejects the Makefile."""

    kind = "validationFailed"


class DiscoveryError(MakeHelpError):
    """Raised when make cannot report files or targets."""

    kind = "discovery"


class DiscoveryEmptyError(DiscoveryError):
    kind = "discoveryEmpty"


class DiscoveryTimeoutError(DiscoveryError):
    kind = "discoveryTimeout"


class DiscoveryReadError(DiscoveryError):
    kind = "discoveryReadFailure"


class DiscoveryNotFoundError(DiscoveryError):
    kind = "discoveryNotFound"


class ParseReadError(MakeHelpError):
    """Raised when an included Makefile cannot be read."""

    kind = "parseReadFailure"


class MixedCategorizationError(MakeHelpError):
    """Raised when categorized and uncategorized targets are mixed."""

    kind = "mixedCategorization"

    def __init__(self, uncategorized: Sequence[str]) -> None:
        self.uncategorized: List[str] = list(uncategorized)
        message = (
            "mixed categorization: found both categorized and uncategorized targets\n"
            f"Uncategorized targets: {', '.join(self.uncategorized)}\n"
            "Use --default-category to assign uncategorized targets to a default category"
        )
        super().__init__(message)


class UnknownCategoryError(MakeHelpError):
    """Raised when --category-order names a category that does not exist."""

    kind = "unknownCategory"

    def __init__(self, name: str, available: Sequence[str]) -> None:
        self.name = name
        self.available: List[str] = sorted(available)
        message = (
            f"unknown category {name!r} in --category-order\n"
            f"Available categories: {', '.join(self.available)}"
        )
        super().__init__(message)


class ConflictWithExistingTargetError(MakeHelpError):
    """Raised when a source Makefile already defines a generated target name."""

    kind = "conflictWithExistingTarget"

    def __init__(self, name: str, source: Path | str | None = None) -> None:
        self.name = name
        self.source = source
        location = f" in {source}" if source else ""
        super().__init__(
            f"target {name!r} is already defined{location}; "
            "remove it or rename it before generating help"
        )


class WriteFailedError(MakeHelpError):
    """Raised when an atomic write cannot complete."""

    kind = "writeFailed"

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"failed to write {path}: {reason}")


class UsageError(MakeHelpError):
    """Base class for invalid command-line usage (exit code 2)."""

    kind = "usage"


class ConflictingFlagsError(UsageError):
    kind = "conflictingFlags"


class UnknownFormatError(UsageError):
    kind = "unknownFormat"

    def __init__(self, name: str, supported: Sequence[str]) -> None:
        self.name = name
        super().__init__(f"unknown format type: {name} (supported: {', '.join(supported)})")


class BadRelativePathError(UsageError):
    kind = "badRelativePath"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"--help-file-rel-path must be a relative path (got {path!r})")


class RecursionDetectedError(MakeHelpError):
    """Raised when make-help runs inside a make process it spawned itself."""

    kind = "recursion"

    def __init__(self) -> None:
        super().__init__(
            "recursion detected: make-help was invoked from within a make process "
            "spawned by make-help. This usually happens when a Makefile runs make-help "
            "while being introspected; regenerate help.mk with the current make-help"
        )


__all__ = [
    "BadRelativePathError",
    "ConflictWithExistingTargetError",
    "ConflictingFlagsError",
    "DiscoveryEmptyError",
    "DiscoveryError",
    "DiscoveryNotFoundError",
    "DiscoveryReadError",
    "DiscoveryTimeoutError",
    "MakeHelpError",
    "MixedCategorizationError",
    "ParseReadError",
    "RecursionDetectedError",
    "ResolvePathError",
    "ScriptNotFoundError",
    "UnknownCategoryError",
    "UnknownFormatError",
    "UsageError",
    "ValidationFailedError",
    "WriteFailedError",
]
