"""Fold scanned Makefiles into a categorized HelpModel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from .errors import MixedCategorizationError
from .logging import get_logger
from .models import (
    Category,
    Directive,
    DirectiveKind,
    FileDoc,
    HelpModel,
    ParsedFile,
    TargetDatabase,
    TargetRecord,
    Variable,
)
from .parser.directives import parse_aliases, parse_variable
from .summary import extract_summary


@dataclass
class BuilderConfig:
    """Inputs that shape model construction."""

    default_category: str = ""
    include_targets: List[str] = field(default_factory=list)
    include_all_phony: bool = False
    database: Optional[TargetDatabase] = None
    entry_point: str = ""


@dataclass
class _Pending:
    docs: List[str] = field(default_factory=list)
    doc_lines: List[int] = field(default_factory=list)
    variables: List[Variable] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    not_alias: bool = False

    def has_content(self) -> bool:
        return bool(self.docs or self.variables or self.aliases)


class ModelBuilder:
    """Build a HelpModel from ParsedFiles and the make target database."""

    def __init__(self, config: BuilderConfig | None = None) -> None:
        self.config = config or BuilderConfig()
        self.logger = get_logger("builder")
        self._not_alias: Set[str] = set()

    @property
    def not_alias_targets(self) -> Set[str]:
        return set(self._not_alias)

    def build(self, parsed_files: Sequence[ParsedFile]) -> HelpModel:
        model = HelpModel(default_category=self.config.default_category)
        self._not_alias = set()

        records: Dict[str, TargetRecord] = {}
        target_category: Dict[str, str] = {}
        categories: Dict[str, Category] = {}
        target_order = 0

        for file_index, parsed in enumerate(parsed_files):
            file_lines: List[str] = []
            current_category = ""
            pending = _Pending()

            for _, event in _merge_events(parsed):
                if isinstance(event, Directive):
                    if event.kind is DirectiveKind.FILE:
                        if event.value or file_lines:
                            file_lines.append(event.value)
                    elif event.kind is DirectiveKind.CATEGORY:
                        model.has_categories = True
                        current_category = event.value
                        if current_category not in categories:
                            categories[current_category] = Category(
                                name=current_category, discovery_order=len(categories)
                            )
                    else:
                        _collect(pending, event)
                    continue

                name, line_number = event
                if pending.not_alias:
                    self._not_alias.add(name)

                record = records.get(name)
                if record is None:
                    record = TargetRecord(
                        name=name,
                        source_file=parsed.path,
                        line_number=line_number,
                        discovery_order=target_order,
                    )
                    target_order += 1
                    records[name] = record
                    target_category[name] = current_category
                else:
                    if pending.has_content() and not record.is_documented:
                        record.source_file = parsed.path
                        record.line_number = line_number
                    if current_category and not target_category.get(name):
                        target_category[name] = current_category

                record.documentation.extend(pending.docs)
                record.doc_lines.extend(pending.doc_lines)
                _merge_variables(record.variables, pending.variables)
                _merge_unique(record.aliases, pending.aliases)
                pending = _Pending()

            while file_lines and not file_lines[-1].strip():
                file_lines.pop()
            if file_lines:
                model.file_docs.append(
                    FileDoc(
                        source_file=parsed.path,
                        documentation=file_lines,
                        is_entry_point=self._is_entry_point(parsed.path, file_index),
                        discovery_order=file_index,
                    )
                )

        included = self._select_targets(records)
        model.not_alias_targets = set(self._not_alias)

        for record in included:
            record.summary = extract_summary(record.documentation)

        self._categorize(model, included, target_category, categories)
        self.logger.debug(
            "Built model with %d target(s) in %d categor(ies)",
            len(included),
            len(model.categories),
        )
        return model

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _is_entry_point(self, path: str, index: int) -> bool:
        if self.config.entry_point:
            return path == self.config.entry_point
        return index == 0

    def _select_targets(self, records: Dict[str, TargetRecord]) -> List[TargetRecord]:
        """Apply inclusion rules and fold implicit aliases into their targets."""
        database = self.config.database
        include_names = set(self.config.include_targets)

        def is_included(record: TargetRecord) -> bool:
            if record.is_documented or record.name in include_names:
                return True
            return bool(
                self.config.include_all_phony and database and database.is_phony(record.name)
            )

        aliased: Dict[str, str] = {}
        for name, record in records.items():
            target = self._implicit_alias_target(record)
            if target is not None:
                aliased[name] = target

        included: List[TargetRecord] = []
        for record in sorted(records.values(), key=lambda item: item.discovery_order):
            resolved = _resolve_alias_chain(record.name, aliased)
            if resolved != record.name:
                owner = records.get(resolved)
                if owner is not None and is_included(owner):
                    _merge_unique(owner.aliases, [record.name])
                    continue
            if is_included(record):
                included.append(record)
        return included

    def _implicit_alias_target(self, record: TargetRecord) -> Optional[str]:
        database = self.config.database
        if database is None or record.is_documented:
            return None
        name = record.name
        if name in self._not_alias or not database.is_phony(name):
            return None
        if name in database.has_recipe:
            return None
        dependencies = database.dependencies.get(name, [])
        if len(dependencies) != 1 or not database.is_phony(dependencies[0]):
            return None
        return dependencies[0]

    def _categorize(
        self,
        model: HelpModel,
        targets: List[TargetRecord],
        target_category: Dict[str, str],
        categories: Dict[str, Category],
    ) -> None:
        if not model.has_categories:
            if targets:
                model.categories = [Category(name="", discovery_order=0, targets=list(targets))]
            return

        uncategorized = [t.name for t in targets if not target_category.get(t.name)]
        default = self.config.default_category
        if uncategorized and not default:
            raise MixedCategorizationError(uncategorized)

        if uncategorized and default not in categories:
            categories[default] = Category(name=default, discovery_order=len(categories))

        for target in targets:
            name = target_category.get(target.name) or default
            categories[name].targets.append(target)

        model.categories = [category for category in categories.values() if category.targets]


def _merge_events(parsed: ParsedFile) -> List[Tuple[int, Union[Directive, Tuple[str, int]]]]:
    events: List[Tuple[int, Union[Directive, Tuple[str, int]]]] = [
        (directive.line_number, directive) for directive in parsed.directives
    ]
    target_lines = parsed.target_lines or {line: name for name, line in parsed.target_map.items()}
    events.extend((line, (name, line)) for line, name in target_lines.items())
    events.sort(key=lambda item: item[0])
    return events


def _collect(pending: _Pending, directive: Directive) -> None:
    if directive.kind is DirectiveKind.DOC:
        pending.docs.append(directive.value)
        pending.doc_lines.append(directive.line_number)
    elif directive.kind is DirectiveKind.VARIABLE:
        pending.variables.append(parse_variable(directive.value))
    elif directive.kind is DirectiveKind.ALIAS:
        pending.aliases.extend(parse_aliases(directive.value))
    elif directive.kind is DirectiveKind.NOT_ALIAS:
        pending.not_alias = True


def _merge_unique(existing: List[str], additions: Iterable[str]) -> None:
    for item in additions:
        if item not in existing:
            existing.append(item)


def _merge_variables(existing: List[Variable], additions: Iterable[Variable]) -> None:
    names = {variable.name for variable in existing}
    for variable in additions:
        if variable.name not in names:
            existing.append(variable)
            names.add(variable.name)


def _resolve_alias_chain(name: str, aliased: Dict[str, str]) -> str:
    seen = {name}
    current = name
    while current in aliased:
        current = aliased[current]
        if current in seen:
            return name
        seen.add(current)
    return current


__all__ = ["BuilderConfig", "ModelBuilder"]
