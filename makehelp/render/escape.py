"""Escaping rendered help for `@printf '%b\\n' "..."` recipe lines."""

from __future__ import annotations

# Each value passes through make, then the double-quoted shell string, then %b.
_REPLACEMENTS = {
    "$": "\\$$",
    '"': '\\"',
    "\\": "\\\\\\\\",
    "`": "\\`",
    "'": "\\0047",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\x1b": "\\033",
}


def escape_for_make_echo(text: str) -> str:
    """Escape `text` so make and the shell pass it through verbatim.

    `$` becomes `\\$$`: make collapses `$$` and the shell reads `\\$` as a
    literal dollar. A backslash is written four times so the shell and %b each
    halve it. Quotes and backticks are escaped for the double-quoted string;
    control characters and ESC become sequences that printf's %b expands.
    """
    return "".join(_REPLACEMENTS.get(char, char) for char in text)


__all__ = ["escape_for_make_echo"]
