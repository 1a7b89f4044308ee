"""Help rendering: colors, escaping, line layout and output formats."""

from __future__ import annotations

from .colors import ColorScheme, should_use_color
from .escape import escape_for_make_echo
from .formats import Formatter, create_formatter, resolve_format
from .text import HelpRenderer, write_lines

__all__ = [
    "ColorScheme",
    "Formatter",
    "HelpRenderer",
    "create_formatter",
    "escape_for_make_echo",
    "resolve_format",
    "should_use_color",
    "write_lines",
]
