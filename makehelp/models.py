"""Core data models shared across make-help components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Optional, Set


@dataclass
class BuildFile:
    """A Makefile loaded by make for the entry point."""

    path: str
    is_entry_point: bool = False
    discovery_order: int = 0


class DirectiveKind(Enum):
    FILE = "file"
    CATEGORY = "category"
    VARIABLE = "var"
    ALIAS = "alias"
    NOT_ALIAS = "notalias"
    DOC = "doc"


@dataclass(frozen=True)
class Directive:
    """A single `##` comment line classified by the scanner."""

    kind: DirectiveKind
    value: str
    source_file: str
    line_number: int


@dataclass
class ParsedFile:
    """Scanner output for one Makefile."""

    path: str
    directives: List[Directive] = field(default_factory=list)
    target_map: Dict[str, int] = field(default_factory=dict)
    # Every rule line, including redefinitions: line number -> target name.
    target_lines: Dict[int, str] = field(default_factory=dict)


@dataclass
class Variable:
    name: str
    description: str = ""


@dataclass
class TargetRecord:
    """A documented (or explicitly included) target in the help model."""

    name: str
    aliases: List[str] = field(default_factory=list)
    documentation: List[str] = field(default_factory=list)
    doc_lines: List[int] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)
    summary: str = ""
    source_file: str = ""
    line_number: int = 0
    discovery_order: int = 0

    @property
    def is_documented(self) -> bool:
        return bool(self.documentation or self.variables or self.aliases)


@dataclass
class Category:
    name: str
    discovery_order: int = 0
    targets: List[TargetRecord] = field(default_factory=list)


@dataclass
class FileDoc:
    """File-level documentation collected from `!file` blocks."""

    source_file: str
    documentation: List[str] = field(default_factory=list)
    is_entry_point: bool = False
    discovery_order: int = 0


@dataclass
class HelpModel:
    """Categorized view of every documented target."""

    file_docs: List[FileDoc] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    has_categories: bool = False
    default_category: str = ""
    not_alias_targets: Set[str] = field(default_factory=set)

    def iter_targets(self) -> Iterator[TargetRecord]:
        for category in self.categories:
            yield from category.targets

    def find_target(self, name: str) -> Optional[TargetRecord]:
        """Return the target named `name`, falling back to alias lookup."""
        for target in self.iter_targets():
            if target.name == name:
                return target
        for target in self.iter_targets():
            if name in target.aliases:
                return target
        return None

    def category_names(self) -> List[str]:
        return [category.name for category in self.categories]


@dataclass
class TargetDatabase:
    """Targets reported by `make -p`, in dump order."""

    targets: List[str] = field(default_factory=list)
    phony: Set[str] = field(default_factory=set)
    has_recipe: Set[str] = field(default_factory=set)
    dependencies: Dict[str, List[str]] = field(default_factory=dict)

    def is_phony(self, name: str) -> bool:
        return name in self.phony


__all__ = [
    "BuildFile",
    "Category",
    "Directive",
    "DirectiveKind",
    "FileDoc",
    "HelpModel",
    "ParsedFile",
    "TargetDatabase",
    "TargetRecord",
    "Variable",
]
