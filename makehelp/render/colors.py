"""ANSI color scheme and terminal detection."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import IO, Optional

RESET = "\033[0m"
BOLD_CYAN = "\033[1;36m"
BOLD_GREEN = "\033[1;32m"
YELLOW = "\033[0;33m"
MAGENTA = "\033[0;35m"
WHITE = "\033[0;37m"


@dataclass(frozen=True)
class ColorScheme:
    """Escape codes per help element; every field is empty when color is off."""

    category: str = ""
    target: str = ""
    alias: str = ""
    variable: str = ""
    documentation: str = ""
    warning: str = ""
    reset: str = ""

    @classmethod
    def create(cls, use_color: bool) -> "ColorScheme":
        if not use_color:
            return cls()
        return cls(
            category=BOLD_CYAN,
            target=BOLD_GREEN,
            alias=YELLOW,
            variable=MAGENTA,
            documentation=WHITE,
            warning=YELLOW,
            reset=RESET,
        )


def should_use_color(mode: Optional[bool], stream: IO[str]) -> bool:
    """Resolve an explicit --color/--no-color choice, or auto-detect a TTY."""
    if mode is not None:
        return mode
    if os.environ.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


__all__ = ["ColorScheme", "should_use_color"]
