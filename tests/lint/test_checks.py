"""Tests for the documentation lint checks."""

from __future__ import annotations

from typing import List, Optional

from makehelp.builder import BuilderConfig, ModelBuilder
from makehelp.lint.checks import (
    Check,
    CheckContext,
    FixOperation,
    LintWarning,
    all_checks,
    collect_fixes,
    run_checks,
)
from makehelp.models import TargetDatabase
from makehelp.parser.scanner import Scanner

MAKEFILE = "/p/Makefile"


def _context(content: str, database: Optional[TargetDatabase] = None) -> CheckContext:
    database = database or TargetDatabase()
    parsed = Scanner().scan_content(content, MAKEFILE)
    builder = ModelBuilder(BuilderConfig(database=database, entry_point=MAKEFILE))
    model = builder.build([parsed])
    return CheckContext.create(model, MAKEFILE, database, [parsed], builder.not_alias_targets)


def _warnings(ctx: CheckContext, check: str) -> List[LintWarning]:
    return [warning for warning in run_checks(ctx) if warning.check == check]


def test_undocumented_phony_skips_generated_help_targets() -> None:
    database = TargetDatabase(
        targets=["build", "clean", "help", "help-build"],
        phony={"build", "clean", "help", "help-build"},
        has_recipe={"build", "clean", "help", "help-build"},
    )
    ctx = _context("## Build it.\nbuild:\nclean:\n", database)

    warnings = _warnings(ctx, "undocumented-phony")

    assert [(w.file, w.line, w.message) for w in warnings] == [
        (MAKEFILE, 3, "undocumented phony target 'clean'")
    ]


def test_summary_punctuation_is_fixable() -> None:
    ctx = _context("## Build it\nbuild:\n")

    (warning,) = _warnings(ctx, "summary-punctuation")

    assert warning.line == 1
    assert warning.context == "## Build it"
    assert warning.fixable is True
    (fix,) = collect_fixes(all_checks(), [warning])
    assert fix.operation is FixOperation.REPLACE
    assert (fix.old_content, fix.new_content) == ("## Build it", "## Build it.")


def test_orphan_alias() -> None:
    database = TargetDatabase(targets=["build"], phony={"build"})
    ctx = _context("## !alias b, ghost\n## Build.\nbuild:\n", database)

    messages = [w.message for w in _warnings(ctx, "orphan-alias")]

    assert messages == [
        "alias 'b' points to non-existent target (referenced by 'build')",
        "alias 'ghost' points to non-existent target (referenced by 'build')",
    ]


def test_long_summary() -> None:
    ctx = _context(f"## {'x' * 81}\nbuild:\n")

    (warning,) = _warnings(ctx, "long-summary")

    assert warning.message == "summary for 'build' is too long (81 characters, max 80)"
    assert warning.fixable is False


def test_empty_documentation_edges_are_deletable() -> None:
    ctx = _context("##\n## Build.\n##\nbuild:\n")

    warnings = _warnings(ctx, "empty-doc")

    assert [w.line for w in warnings] == [1, 3]
    assert "at the beginning" in warnings[0].message
    assert "at the end" in warnings[1].message
    fixes = collect_fixes(all_checks(), warnings)
    assert [(f.line, f.operation, f.old_content) for f in fixes] == [
        (1, FixOperation.DELETE, "##"),
        (3, FixOperation.DELETE, "##"),
    ]


def test_missing_variable_description() -> None:
    ctx = _context("## !var ENV\n## !var REGION - Target region.\n## Deploy.\ndeploy:\n")

    messages = [w.message for w in _warnings(ctx, "missing-var-desc")]

    assert messages == ["variable 'ENV' in target 'deploy' is missing a description"]


def test_naming_convention() -> None:
    ctx = _context("## Build.\nBuild_All:\n## Test.\nrun-tests:\n")

    (warning,) = _warnings(ctx, "naming")

    assert warning.message == "target 'Build_All' does not follow kebab-case naming convention"
    assert warning.line == 2


def test_circular_dependencies_reported_once() -> None:
    database = TargetDatabase(
        targets=["a", "b", "c"],
        dependencies={"a": ["b"], "b": ["a"], "c": ["a"]},
    )
    ctx = _context("", database)

    (warning,) = _warnings(ctx, "circular-dependency")

    assert warning.message == "circular dependency chain detected: a → b → a"
    assert warning.line == 0


def test_redundant_directives() -> None:
    content = "## !notalias\n## Docs.\ndocs:\n## !alias build\n## Build.\nbuild:\n"
    ctx = _context(content, TargetDatabase(targets=["docs", "build"]))

    warnings = _warnings(ctx, "redundant-notalias") + _warnings(ctx, "redundant-alias")

    assert [(w.line, w.message) for w in warnings] == [
        (3, "!notalias on 'docs' is redundant: documented targets are never implicit aliases"),
        (6, "target 'build' has itself as an alias"),
    ]
    assert not any(w.fixable for w in warnings)


def test_notalias_needed_for_phony_forwarder_is_not_reported() -> None:
    database = TargetDatabase(
        targets=["all", "build"],
        phony={"all", "build"},
        dependencies={"all": ["build"], "build": []},
    )
    ctx = _context("## !notalias\nall: build\n## Build.\nbuild:\n", database)

    assert _warnings(ctx, "redundant-notalias") == []


def test_mixed_case_directive_keyword() -> None:
    ctx = _context("## !Category Build\n## Build.\nbuild:\n")

    (warning,) = _warnings(ctx, "directive-case")

    assert warning.line == 1
    assert warning.message.startswith("'!Category' looks like a directive")


def test_crashing_check_becomes_warning() -> None:
    def boom(ctx: CheckContext) -> List[LintWarning]:
        raise ValueError("bad state")

    warnings = run_checks(_context("## Build.\nbuild:\n"), [Check("boom", boom)])

    assert [(w.check, w.message) for w in warnings] == [
        ("check-failed", "check 'boom' failed: bad state")
    ]


def test_clean_makefile_has_no_warnings() -> None:
    database = TargetDatabase(targets=["build"], phony={"build"}, has_recipe={"build"})

    assert run_checks(_context("## Build the project.\nbuild:\n", database)) == []


def test_warnings_are_sorted_by_file_and_line() -> None:
    ctx = _context("## Build it\nbuild:\n## Test it\nTest:\n")

    lines = [warning.line for warning in run_checks(ctx)]

    assert lines == sorted(lines)


def test_documentation_on_special_target() -> None:
    ctx = _context("## Builds it.\n.PHONY: build\nbuild:\n\tcc\n")

    (warning,) = _warnings(ctx, "special-target-doc")

    assert warning.line == 1
    assert warning.context == ".PHONY"
    assert "special target '.PHONY'" in warning.message
    assert _warnings(_context(".PHONY: build\n## Builds it.\nbuild:\n"), "special-target-doc") == []
