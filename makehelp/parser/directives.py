"""Line classification and `##` directive parsing."""

from __future__ import annotations

import re
from typing import List, Tuple

from ..models import Directive, DirectiveKind, Variable

DOC_MARKER = "##"

# Keywords that look like directives but do not match case-sensitively.
_DIRECTIVE_LIKE = re.compile(r"^!(file|category|var|alias|notalias)\b", re.IGNORECASE)


def is_documentation_line(line: str) -> bool:
    return line == DOC_MARKER or line.startswith(DOC_MARKER + " ")


def is_target_line(line: str) -> bool:
    """Return True for rule definitions, excluding assignments like `:=` and `::=`."""
    if not line or line[0] in " \t#":
        return False
    index = line.find(":")
    if index < 0:
        return False
    if "=" in line[:index]:
        return False
    following = line[index + 1:index + 2]
    return following not in ("=", ":")


def extract_target_name(line: str) -> str:
    """Return the first target name declared on a rule line."""
    index = line.find(":")
    if index < 0:
        return ""
    following = line[index + 1:index + 2]
    if following in ("=", ":"):
        return ""
    head = line[:index].rstrip()
    if head.endswith("&"):
        head = head[:-1]
    parts = head.split()
    return parts[0] if parts else ""


def parse_directive(line: str, source_file: str, line_number: int) -> Directive:
    """Classify a documentation line into a Directive."""
    content = "" if line == DOC_MARKER else line[len(DOC_MARKER) + 1:]
    kind, value = classify(content)
    return Directive(kind=kind, value=value, source_file=source_file, line_number=line_number)


def classify(content: str) -> Tuple[DirectiveKind, str]:
    if _is_keyword(content, "!file"):
        return DirectiveKind.FILE, content[len("!file"):].strip()
    if content.startswith("!category "):
        return DirectiveKind.CATEGORY, content[len("!category "):].strip()
    if content.startswith("!var "):
        return DirectiveKind.VARIABLE, content[len("!var "):].strip()
    if content.startswith("!alias "):
        return DirectiveKind.ALIAS, content[len("!alias "):].strip()
    if _is_keyword(content, "!notalias"):
        return DirectiveKind.NOT_ALIAS, ""
    return DirectiveKind.DOC, content


def looks_like_directive(content: str) -> bool:
    """True when a DOC line carries a directive keyword in the wrong case."""
    match = _DIRECTIVE_LIKE.match(content)
    return bool(match) and classify(content)[0] is DirectiveKind.DOC


def parse_variable(value: str) -> Variable:
    """Parse `NAME - description` (description optional)."""
    name, sep, description = value.partition(" - ")
    if not sep:
        return Variable(name=value.strip())
    return Variable(name=name.strip(), description=description.strip())


def parse_aliases(value: str) -> List[str]:
    return [alias.strip() for alias in value.split(",") if alias.strip()]


def _is_keyword(content: str, keyword: str) -> bool:
    if not content.startswith(keyword):
        return False
    rest = content[len(keyword):]
    return not rest or rest[0].isspace()


__all__ = [
    "DOC_MARKER",
    "classify",
    "extract_target_name",
    "is_documentation_line",
    "is_target_line",
    "looks_like_directive",
    "parse_aliases",
    "parse_directive",
    "parse_variable",
]
