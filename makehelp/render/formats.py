"""Output formats for help shown on demand: make/text, Markdown, HTML and JSON."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..errors import UnknownFormatError
from ..models import FileDoc, HelpModel, TargetRecord, Variable
from ..summary import first_sentence
from .colors import ColorScheme
from .text import HelpRenderer, display_path

USAGE = "make [<target>...] [<ENV_VAR>=<value>...]"
DEFAULT_FORMAT = "make"
SUPPORTED_FORMATS = ("make", "text", "html", "markdown", "json")
FORMAT_ALIASES = {"mk": "make", "txt": "text", "md": "markdown"}

_MARKDOWN_SPECIAL = re.compile(r"([\\`*_\[\]()#])")
_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"


def resolve_format(name: str) -> str:
    """Map a format name or alias to its canonical name."""
    key = name.strip().lower()
    key = FORMAT_ALIASES.get(key, key)
    if key not in SUPPORTED_FORMATS:
        raise UnknownFormatError(name, SUPPORTED_FORMATS)
    return key


def escape_markdown(text: str) -> str:
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


class Formatter:
    """Renders the summary, detailed and basic help views as strings."""

    name = ""
    content_type = "text/plain"
    extension = ".txt"

    def __init__(self, use_color: bool = False, makefile_dir: str = "") -> None:
        self.use_color = use_color
        self.makefile_dir = makefile_dir

    def render_help(self, model: HelpModel) -> str:
        raise NotImplementedError

    def render_detailed(self, target: TargetRecord) -> str:
        raise NotImplementedError

    def render_basic(self, name: str, source_file: str = "", line_number: int = 0) -> str:
        raise NotImplementedError

    def display_path(self, path: str) -> str:
        return display_path(path, self.makefile_dir)


class TextFormatter(Formatter):
    """The plain help `make help` prints, optionally with ANSI colors."""

    name = "text"

    def __init__(self, use_color: bool = False, makefile_dir: str = "") -> None:
        super().__init__(use_color, makefile_dir)
        self.renderer = HelpRenderer(ColorScheme.create(use_color), makefile_dir)

    def render_help(self, model: HelpModel) -> str:
        return _lines_text(self.renderer.render_lines(model))

    def render_detailed(self, target: TargetRecord) -> str:
        return _lines_text(self.renderer.detailed_lines(target))

    def render_basic(self, name: str, source_file: str = "", line_number: int = 0) -> str:
        return _lines_text(self.renderer.basic_lines(name, source_file, line_number))


class MakeFormatter(TextFormatter):
    name = "make"
    extension = ".mk"


class MarkdownFormatter(Formatter):
    """GitHub-flavored Markdown; summaries keep their inline markup."""

    name = "markdown"
    content_type = "text/markdown"
    extension = ".md"

    def render_help(self, model: HelpModel) -> str:
        lines = ["# Makefile Help", "", "## Usage", "", "```", USAGE, "```", ""]

        entry = _entry_docs(model)
        if entry is not None:
            lines.extend(["## Description", ""])
            lines.extend(entry.documentation)
            lines.append("")

        included = _included_docs(model)
        if included:
            lines.extend(["## Included files", ""])
            for doc in included:
                lines.extend([f"### {escape_markdown(self.display_path(doc.source_file))}", ""])
                lines.extend(doc.documentation)
                lines.append("")

        if model.categories:
            lines.extend(["## Targets", ""])
            for category in model.categories:
                if category.name:
                    lines.extend([f"### {escape_markdown(category.name)}", ""])
                for target in category.targets:
                    lines.extend(self._target_lines(target))
                lines.append("")
        return _joined(lines)

    def render_detailed(self, target: TargetRecord) -> str:
        lines = [f"# Target: {escape_markdown(target.name)}", ""]
        if target.aliases:
            aliases = ", ".join(escape_markdown(alias) for alias in target.aliases)
            lines.extend([f"**Aliases:** {aliases}", ""])
        if target.variables:
            lines.extend(["**Variables:**", ""])
            for variable in target.variables:
                line = f"- `{variable.name}`"
                if variable.description:
                    line += f": {variable.description}"
                lines.append(line)
            lines.append("")
        if target.documentation:
            lines.extend(["## Description", ""])
            lines.extend(target.documentation)
            lines.append("")
        lines.extend(self._source_lines(target.source_file, target.line_number))
        return _joined(lines)

    def render_basic(self, name: str, source_file: str = "", line_number: int = 0) -> str:
        lines = [f"# Target: {escape_markdown(name)}", "", "_No documentation available._", ""]
        lines.extend(self._source_lines(source_file, line_number))
        return _joined(lines)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _target_lines(self, target: TargetRecord) -> List[str]:
        line = f"- **{escape_markdown(target.name)}**"
        if target.aliases:
            line += f" _({', '.join(escape_markdown(alias) for alias in target.aliases)})_"
        summary = markdown_summary(target)
        if summary:
            line += f": {summary}"
        lines = [line]
        if target.variables:
            names = ", ".join(f"`{variable.name}`" for variable in target.variables)
            lines.append(f"  - Variables: {names}")
        return lines

    def _source_lines(self, source_file: str, line_number: int) -> List[str]:
        if not source_file:
            return []
        return [f"**Source:** `{self.display_path(source_file)}:{line_number}`"]


class HtmlFormatter(Formatter):
    """Standalone HTML pages; the stylesheet is only embedded with color on."""

    name = "html"
    content_type = "text/html"
    extension = ".html"

    def __init__(self, use_color: bool = False, makefile_dir: str = "") -> None:
        super().__init__(use_color, makefile_dir)
        self._env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=select_autoescape(enabled_extensions=("html.j2",)),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render_help(self, model: HelpModel) -> str:
        entry = _entry_docs(model)
        return self._render(
            "help.html.j2",
            usage=USAGE,
            description=entry.documentation if entry is not None else [],
            included=[
                {"path": self.display_path(doc.source_file), "lines": doc.documentation}
                for doc in _included_docs(model)
            ],
            categories=[
                {"name": category.name, "targets": category.targets}
                for category in model.categories
            ],
        )

    def render_detailed(self, target: TargetRecord) -> str:
        return self._render(
            "target.html.j2",
            name=target.name,
            aliases=target.aliases,
            variables=target.variables,
            documentation=target.documentation,
            source=self._source(target.source_file, target.line_number),
        )

    def render_basic(self, name: str, source_file: str = "", line_number: int = 0) -> str:
        return self._render(
            "target.html.j2",
            name=name,
            aliases=[],
            variables=[],
            documentation=[],
            source=self._source(source_file, line_number),
        )

    def _render(self, template: str, **context: Any) -> str:
        return self._env.get_template(template).render(use_color=self.use_color, **context)

    def _source(self, source_file: str, line_number: int) -> str:
        if not source_file:
            return ""
        return f"{self.display_path(source_file)}:{line_number}"


class JsonFormatter(Formatter):
    """Machine-readable output; empty fields are omitted."""

    name = "json"
    content_type = "application/json"
    extension = ".json"

    def render_help(self, model: HelpModel) -> str:
        output: Dict[str, Any] = {"usage": USAGE}
        entry = _entry_docs(model)
        if entry is not None:
            output["description"] = "\n".join(entry.documentation)
        included = [
            {"path": self.display_path(doc.source_file), "description": "\n".join(doc.documentation)}
            for doc in _included_docs(model)
        ]
        if included:
            output["includedFiles"] = included
        if model.categories:
            output["categories"] = [
                {
                    "name": category.name,
                    "targets": [self._target(target) for target in category.targets],
                }
                for category in model.categories
            ]
        return _dumps(output)

    def render_detailed(self, target: TargetRecord) -> str:
        output = self._target(target)
        if target.documentation:
            output["documentation"] = list(target.documentation)
        return _dumps(output)

    def render_basic(self, name: str, source_file: str = "", line_number: int = 0) -> str:
        output: Dict[str, Any] = {"name": name}
        if source_file:
            output["sourceFile"] = self.display_path(source_file)
            output["lineNumber"] = line_number
        return _dumps(output)

    def _target(self, target: TargetRecord) -> Dict[str, Any]:
        output: Dict[str, Any] = {"name": target.name}
        if target.summary:
            output["summary"] = target.summary
        if target.aliases:
            output["aliases"] = list(target.aliases)
        if target.variables:
            output["variables"] = [_variable(variable) for variable in target.variables]
        if target.source_file:
            output["sourceFile"] = self.display_path(target.source_file)
            output["lineNumber"] = target.line_number
        return output


_FORMATTERS = {
    "make": MakeFormatter,
    "text": TextFormatter,
    "markdown": MarkdownFormatter,
    "html": HtmlFormatter,
    "json": JsonFormatter,
}


def create_formatter(name: str, use_color: bool = False, makefile_dir: str = "") -> Formatter:
    """Build the formatter for `name`; raises UnknownFormatError for other names."""
    return _FORMATTERS[resolve_format(name)](use_color, makefile_dir)


def markdown_summary(target: TargetRecord) -> str:
    """First sentence of the raw documentation, keeping inline Markdown."""
    text = " ".join(line.strip() for line in target.documentation if line.strip())
    if not text:
        return target.summary
    return first_sentence(text)


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _entry_docs(model: HelpModel) -> Optional[FileDoc]:
    return next((doc for doc in model.file_docs if doc.is_entry_point and doc.documentation), None)


def _included_docs(model: HelpModel) -> List[FileDoc]:
    return [doc for doc in model.file_docs if not doc.is_entry_point and doc.documentation]


def _variable(variable: Variable) -> Dict[str, str]:
    output = {"name": variable.name}
    if variable.description:
        output["description"] = variable.description
    return output


def _lines_text(lines: List[str]) -> str:
    return "".join(line + "\n" for line in lines)


def _joined(lines: List[str]) -> str:
    return "\n".join(lines).rstrip("\n") + "\n"


def _dumps(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


__all__ = [
    "DEFAULT_FORMAT",
    "FORMAT_ALIASES",
    "Formatter",
    "HtmlFormatter",
    "JsonFormatter",
    "MakeFormatter",
    "MarkdownFormatter",
    "SUPPORTED_FORMATS",
    "TextFormatter",
    "create_formatter",
    "escape_markdown",
    "markdown_summary",
    "resolve_format",
]
