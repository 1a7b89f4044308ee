"""Lint checks over a built HelpModel and the make target database."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from ..discovery.targets import SPECIAL_TARGETS
from ..logging import get_logger
from ..models import DirectiveKind, HelpModel, ParsedFile, TargetDatabase
from ..parser.directives import looks_like_directive

MAX_SUMMARY_LENGTH = 80

_KEBAB_CASE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")
_SUMMARY_ENDINGS = (".", "!", "?")

logger = get_logger("lint")


class FixOperation(Enum):
    REPLACE = "replace"
    DELETE = "delete"


@dataclass
class Fix:
    """A single-line edit; `old_content` guards against stale line numbers."""

    file: str
    line: int
    operation: FixOperation
    old_content: str = ""
    new_content: str = ""


@dataclass
class LintWarning:
    file: str
    line: int
    check: str
    message: str
    context: str = ""
    fixable: bool = False


@dataclass
class CheckContext:
    """Everything a check may inspect."""

    model: HelpModel
    makefile_path: str
    database: TargetDatabase = field(default_factory=TargetDatabase)
    parsed_files: List[ParsedFile] = field(default_factory=list)
    not_alias_targets: Set[str] = field(default_factory=set)
    documented: Set[str] = field(default_factory=set)
    aliases: Set[str] = field(default_factory=set)
    generated_help_targets: Set[str] = field(default_factory=set)
    target_locations: Dict[str, Tuple[str, int]] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        model: HelpModel,
        makefile_path: str,
        database: TargetDatabase,
        parsed_files: Sequence[ParsedFile],
        not_alias_targets: Set[str],
    ) -> "CheckContext":
        context = cls(
            model=model,
            makefile_path=makefile_path,
            database=database,
            parsed_files=list(parsed_files),
            not_alias_targets=set(not_alias_targets),
        )
        context.generated_help_targets = {"help", "update-help"}
        for target in model.iter_targets():
            context.documented.add(target.name)
            context.generated_help_targets.add(f"help-{target.name}")
            context.aliases.update(target.aliases)
        for parsed in parsed_files:
            for name, line in parsed.target_map.items():
                context.target_locations.setdefault(name, (parsed.path, line))
        return context

    def location(self, name: str) -> Tuple[str, int]:
        return self.target_locations.get(name, (self.makefile_path, 0))


CheckFunc = Callable[[CheckContext], List[LintWarning]]
FixFunc = Callable[[LintWarning], Optional[Fix]]


@dataclass
class Check:
    name: str
    run: CheckFunc
    fix: Optional[FixFunc] = None


# ----------------------------------------------------------------------
# Checks
# ----------------------------------------------------------------------
def check_undocumented_phony(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for name in sorted(ctx.database.phony):
        if name in ctx.documented or name in ctx.aliases:
            continue
        if name in ctx.generated_help_targets or name.startswith("help-"):
            continue
        file, line = ctx.location(name)
        warnings.append(
            LintWarning(file, line, "undocumented-phony", f"undocumented phony target '{name}'")
        )
    return warnings


def check_summary_punctuation(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        if not target.documentation:
            continue
        first = target.documentation[0].strip()
        if not first or first.endswith(_SUMMARY_ENDINGS):
            continue
        line = target.doc_lines[0] if target.doc_lines else target.line_number
        warnings.append(
            LintWarning(
                target.source_file,
                line,
                "summary-punctuation",
                f"summary for '{target.name}' does not end with punctuation",
                context=f"## {first}",
            )
        )
    return warnings


def fix_summary_punctuation(warning: LintWarning) -> Optional[Fix]:
    if not warning.context:
        return None
    return Fix(
        file=warning.file,
        line=warning.line,
        operation=FixOperation.REPLACE,
        old_content=warning.context,
        new_content=warning.context + ".",
    )


def check_orphan_aliases(ctx: CheckContext) -> List[LintWarning]:
    known = set(ctx.documented) | set(ctx.database.phony) | set(ctx.database.has_recipe)
    known.update(ctx.database.targets)
    warnings = []
    for target in ctx.model.iter_targets():
        for alias in target.aliases:
            if alias in known:
                continue
            warnings.append(
                LintWarning(
                    target.source_file,
                    target.line_number,
                    "orphan-alias",
                    f"alias '{alias}' points to non-existent target "
                    f"(referenced by '{target.name}')",
                    context=f"!alias {alias}",
                )
            )
    warnings.sort(key=lambda warning: warning.message)
    return warnings


def check_long_summaries(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        summary = target.summary.strip()
        if len(summary) <= MAX_SUMMARY_LENGTH:
            continue
        warnings.append(
            LintWarning(
                target.source_file,
                target.line_number,
                "long-summary",
                f"summary for '{target.name}' is too long "
                f"({len(summary)} characters, max {MAX_SUMMARY_LENGTH})",
                context=summary,
            )
        )
    return warnings


def check_empty_documentation(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        docs = target.documentation
        if not docs or len(target.doc_lines) != len(docs):
            continue
        if not docs[0].strip():
            warnings.append(
                LintWarning(
                    target.source_file,
                    target.doc_lines[0],
                    "empty-doc",
                    f"target '{target.name}' has empty documentation line at the beginning",
                    context="##",
                )
            )
        if len(docs) > 1 and not docs[-1].strip():
            warnings.append(
                LintWarning(
                    target.source_file,
                    target.doc_lines[-1],
                    "empty-doc",
                    f"target '{target.name}' has empty documentation line at the end",
                    context="##",
                )
            )
    return warnings


def fix_empty_documentation(warning: LintWarning) -> Optional[Fix]:
    return Fix(
        file=warning.file,
        line=warning.line,
        operation=FixOperation.DELETE,
        old_content="##",
    )


def check_missing_var_descriptions(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        for variable in target.variables:
            if variable.description.strip():
                continue
            warnings.append(
                LintWarning(
                    target.source_file,
                    target.line_number,
                    "missing-var-desc",
                    f"variable '{variable.name}' in target '{target.name}' "
                    "is missing a description",
                )
            )
    return warnings


def check_naming(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        if _KEBAB_CASE.match(target.name):
            continue
        warnings.append(
            LintWarning(
                target.source_file,
                target.line_number,
                "naming",
                f"target '{target.name}' does not follow kebab-case naming convention",
                context=target.name,
            )
        )
    return warnings


def check_special_target_docs(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for target in ctx.model.iter_targets():
        if not target.name.startswith(".") and target.name not in SPECIAL_TARGETS:
            continue
        line = target.doc_lines[0] if target.doc_lines else target.line_number
        warnings.append(
            LintWarning(
                target.source_file,
                line,
                "special-target-doc",
                f"documentation is attached to special target '{target.name}'; "
                "move it directly above the rule it describes",
                context=target.name,
            )
        )
    return warnings


def check_circular_dependencies(ctx: CheckContext) -> List[LintWarning]:
    """Report each dependency cycle once, keyed by its smallest member."""
    dependencies = ctx.database.dependencies
    visited: Set[str] = set()
    in_path: Set[str] = set()
    cycles: Dict[str, List[str]] = {}

    def visit(node: str, path: List[str]) -> None:
        if node in in_path:
            start = path.index(node)
            cycle = path[start:] + [node]
            cycles.setdefault(min(cycle), cycle)
            return
        if node in visited:
            return
        visited.add(node)
        in_path.add(node)
        path.append(node)
        for dependency in dependencies.get(node, []):
            visit(dependency, path)
        path.pop()
        in_path.discard(node)

    for name in sorted(dependencies):
        if name not in visited:
            visit(name, [])

    return [
        LintWarning(
            ctx.makefile_path,
            0,
            "circular-dependency",
            f"circular dependency chain detected: {' → '.join(cycles[key])}",
        )
        for key in sorted(cycles)
    ]


def check_redundant_directives(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for name in sorted(ctx.not_alias_targets):
        reason = _redundant_notalias_reason(name, ctx)
        if reason is None:
            continue
        file, line = ctx.location(name)
        warnings.append(
            LintWarning(file, line, "redundant-notalias", f"!notalias on '{name}' is redundant: {reason}")
        )

    for target in ctx.model.iter_targets():
        if target.name in target.aliases:
            file, line = ctx.location(target.name)
            warnings.append(
                LintWarning(
                    file,
                    line,
                    "redundant-alias",
                    f"target '{target.name}' has itself as an alias",
                )
            )
    return warnings


def check_directive_case(ctx: CheckContext) -> List[LintWarning]:
    warnings = []
    for parsed in ctx.parsed_files:
        for directive in parsed.directives:
            if directive.kind is not DirectiveKind.DOC:
                continue
            if not looks_like_directive(directive.value):
                continue
            keyword = directive.value.split()[0]
            warnings.append(
                LintWarning(
                    parsed.path,
                    directive.line_number,
                    "directive-case",
                    f"'{keyword}' looks like a directive but keywords are lowercase; "
                    "it is treated as documentation",
                    context=f"## {directive.value}",
                )
            )
    return warnings


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _redundant_notalias_reason(name: str, ctx: CheckContext) -> Optional[str]:
    database = ctx.database
    if name in ctx.documented:
        return "documented targets are never implicit aliases"
    if name in database.has_recipe:
        return "targets with recipes are never implicit aliases"
    if not database.is_phony(name):
        return "non-phony targets are never implicit aliases"
    dependencies = database.dependencies.get(name, [])
    if len(dependencies) != 1:
        return "only targets with exactly one dependency can be implicit aliases"
    if not database.is_phony(dependencies[0]):
        return (
            f"its dependency '{dependencies[0]}' is not phony, "
            "so it can't be an implicit alias"
        )
    return None


def all_checks() -> List[Check]:
    return [
        Check("undocumented-phony", check_undocumented_phony),
        Check("summary-punctuation", check_summary_punctuation, fix_summary_punctuation),
        Check("orphan-alias", check_orphan_aliases),
        Check("long-summary", check_long_summaries),
        Check("empty-doc", check_empty_documentation, fix_empty_documentation),
        Check("missing-var-desc", check_missing_var_descriptions),
        Check("naming", check_naming),
        Check("special-target-doc", check_special_target_docs),
        Check("circular-dependency", check_circular_dependencies),
        Check("redundant-notalias", check_redundant_directives),
        Check("directive-case", check_directive_case),
    ]


def run_checks(ctx: CheckContext, checks: Sequence[Check] | None = None) -> List[LintWarning]:
    """Run every check, turning a crashing check into a `check-failed` warning."""
    warnings: List[LintWarning] = []
    for check in checks if checks is not None else all_checks():
        try:
            found = check.run(ctx)
        except Exception as exc:
            logger.debug("Check %s raised", check.name, exc_info=True)
            warnings.append(
                LintWarning(ctx.makefile_path, 0, "check-failed", f"check '{check.name}' failed: {exc}")
            )
            continue
        for warning in found:
            warning.fixable = check.fix is not None and check.fix(warning) is not None
        warnings.extend(found)
    warnings.sort(key=lambda warning: (warning.file, warning.line))
    return warnings


def collect_fixes(checks: Sequence[Check], warnings: Sequence[LintWarning]) -> List[Fix]:
    by_name = {check.name: check for check in checks}
    fixes = []
    for warning in warnings:
        check = by_name.get(warning.check)
        if check is None or check.fix is None or not warning.fixable:
            continue
        fix = check.fix(warning)
        if fix is not None:
            fixes.append(fix)
    return fixes


__all__ = [
    "Check",
    "CheckContext",
    "Fix",
    "FixOperation",
    "LintWarning",
    "MAX_SUMMARY_LENGTH",
    "all_checks",
    "collect_fixes",
    "run_checks",
]
