"""Tests for makehelp.orchestrator."""

from __future__ import annotations

import io
import json
from datetime import datetime, timezone

import pytest

from makehelp.config import HelpOptions
from makehelp.discovery.executor import GENERATING_ENV
from makehelp.errors import (
    ConflictWithExistingTargetError,
    MakeHelpError,
    RecursionDetectedError,
)
from makehelp.generator import HelpFileGenerator
from makehelp.orchestrator import Orchestrator
from makehelp.render.text import USAGE_LINE
from makehelp.rewrite.include import include_directive
from tests._fixtures.gateway import RecordingGateway, database_dump

SOURCE = (
    "## !category Build\n"
    "## Build the project.\n"
    "build:\n"
    "\tcc -o app main.c\n"
    "\n"
    "## !category Test\n"
    "## Run tests.\n"
    "test: build\n"
    "\t./run-tests\n"
    "\n"
    "clean:\n"
    "\trm -f app\n"
)

DATABASE = database_dump(
    {"build": [], "test": ["build"], "clean": []},
    phony=["build", "test", "clean"],
    recipes=["build", "test", "clean"],
)


def _clock() -> datetime:
    return datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def _orchestrator(gateway: RecordingGateway, environ=None) -> Orchestrator:
    return Orchestrator(
        gateway=gateway,
        generator=HelpFileGenerator(clock=_clock),
        stdout=io.StringIO(),
        environ=environ if environ is not None else {},
    )


@pytest.fixture
def project(makefile_builder):
    makefile_builder.write({"Makefile": SOURCE})
    return makefile_builder


def test_render_prints_categorized_help(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    orchestrator.run_render(HelpOptions(makefile_path=str(project.path())))

    assert orchestrator.stdout.getvalue().split("\n") == [
        USAGE_LINE,
        "",
        "Targets:",
        "",
        "Build:",
        "  - build: Build the project.",
        "",
        "Test:",
        "  - test: Run tests.",
        "",
    ]


def test_detailed_view_for_documented_target(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    orchestrator.run_detailed(HelpOptions(makefile_path=str(project.path()), target="test"))

    assert orchestrator.stdout.getvalue() == "Target: test\nRun tests.\n\nSource: Makefile:8\n"


def test_detailed_view_for_undocumented_target(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    orchestrator.run_detailed(HelpOptions(makefile_path=str(project.path()), target="clean"))

    assert orchestrator.stdout.getvalue() == (
        "Target: clean\n\nNo documentation available.\n\nSource: Makefile:11\n"
    )


def test_detailed_view_for_unknown_target(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    with pytest.raises(MakeHelpError, match="target not found: deploy"):
        orchestrator.run_detailed(HelpOptions(makefile_path=str(project.path()), target="deploy"))


def test_generate_writes_help_file_and_include(project) -> None:
    gateway = RecordingGateway(database=DATABASE)
    orchestrator = _orchestrator(gateway)

    outcome = orchestrator.run_generate(HelpOptions(makefile_path=str(project.path())))

    help_file = project.path("make/help.mk")
    assert outcome.placement.path == str(help_file)
    assert outcome.include_added is True
    content = help_file.read_text(encoding="utf-8")
    assert content == outcome.content
    assert content.startswith("# generated-by: make-help\n# command: make-help --no-color\n")
    assert "# date: 2024-05-06T07:08:09 UTC\n" in content
    assert "## !category Help\n.PHONY: help\n" in content
    assert "\n.PHONY: help-build\nhelp-build:\n" in content
    assert "\t@printf '%b\\n' \"  - update-help: Regenerates help.mk from source Makefiles.\"\n" in content
    assert "MAKE_HELP_MAKEFILES := $(MAKE_HELP_DIR)../Makefile\n" in content
    assert "\t@make-help --makefile-path $(MAKE_HELP_DIR)../Makefile --no-color" in content
    assert project.read() == SOURCE + f"\n{include_directive('make/help.mk')}\n"
    assert orchestrator.stdout.getvalue() == f"Successfully created help target: {help_file}\n"
    assert help_file.stat().st_mtime_ns >= project.path().stat().st_mtime_ns
    assert gateway.commands()[0][:2] == ["make", "-n"]


def test_regeneration_is_stable(project) -> None:
    gateway = RecordingGateway(database=DATABASE)
    first = _orchestrator(gateway).run_generate(HelpOptions(makefile_path=str(project.path())))
    makefile_after_first = project.read()

    gateway.includes = ["make/help.mk"]
    second = _orchestrator(gateway).run_generate(HelpOptions(makefile_path=str(project.path())))

    assert second.content == first.content
    assert second.include_added is False
    assert project.read() == makefile_after_first


def test_dry_run_previews_without_writing(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))
    makefile = str(project.path())

    outcome = orchestrator.run_generate(HelpOptions(makefile_path=makefile, dry_run=True))

    output = orchestrator.stdout.getvalue()
    help_file = project.path("make/help.mk")
    assert output.startswith(
        "Dry run mode - no files will be modified\n\n"
        f"Would create: {help_file}\n"
        f"Would append to: {makefile}\n\n"
        f"--- {help_file} ---\n# generated-by: make-help\n"
    )
    assert output.endswith(
        f"--- Append to {makefile} ---\n\n{include_directive('make/help.mk')}\n--- end ---\n"
    )
    assert outcome.content in output
    assert not project.path("make").exists()
    assert project.read() == SOURCE


def test_existing_help_target_is_a_conflict(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "## Build.\nbuild:\n\nhelp:\n\t@echo mine\n"})
    orchestrator = _orchestrator(RecordingGateway(database=database_dump({"build": [], "help": []})))

    with pytest.raises(ConflictWithExistingTargetError, match="'help'"):
        orchestrator.run_generate(HelpOptions(makefile_path=str(makefile_builder.path())))

    assert not makefile_builder.path("make/help.mk").exists()


def test_recursion_is_detected(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(), environ={GENERATING_ENV: "1"})
    options = HelpOptions(makefile_path=str(project.path()))

    with pytest.raises(RecursionDetectedError):
        orchestrator.run_generate(options)
    with pytest.raises(RecursionDetectedError):
        orchestrator.run_lint(options)


def test_remove_after_generate(project) -> None:
    gateway = RecordingGateway(database=DATABASE)
    _orchestrator(gateway).run_generate(HelpOptions(makefile_path=str(project.path())))
    orchestrator = _orchestrator(gateway)

    result = orchestrator.run_remove(HelpOptions(makefile_path=str(project.path())))

    assert result.changed
    assert project.read() == SOURCE + "\n"
    assert not project.path("make/help.mk").exists()
    assert orchestrator.stdout.getvalue() == (
        f"Successfully removed help target from: {project.path()}\n"
    )


LINT_SOURCE = "## Build it\nbuild:\n\tcc\n"
LINT_DATABASE = database_dump({"build": []}, phony=["build"], recipes=["build"])


def test_lint_reports_and_fails(makefile_builder) -> None:
    makefile_builder.write({"Makefile": LINT_SOURCE})
    orchestrator = _orchestrator(RecordingGateway(database=LINT_DATABASE))

    code = orchestrator.run_lint(HelpOptions(makefile_path=str(makefile_builder.path())))

    output = orchestrator.stdout.getvalue()
    assert code == 1
    assert "  1: summary for 'build' does not end with punctuation [fixable]\n" in output
    assert output.endswith("Found 1 warning(s) (1 fixable)\n")


def test_lint_fix_rewrites_and_passes(makefile_builder) -> None:
    makefile_builder.write({"Makefile": LINT_SOURCE})
    orchestrator = _orchestrator(RecordingGateway(database=LINT_DATABASE))

    code = orchestrator.run_lint(HelpOptions(makefile_path=str(makefile_builder.path()), fix=True))

    assert code == 0
    assert makefile_builder.read() == "## Build it.\nbuild:\n\tcc\n"
    assert orchestrator.stdout.getvalue() == "Fixed 1 issue(s) in 1 file(s)\n"


def test_lint_fix_dry_run_leaves_file(makefile_builder) -> None:
    makefile_builder.write({"Makefile": LINT_SOURCE})
    orchestrator = _orchestrator(RecordingGateway(database=LINT_DATABASE))
    options = HelpOptions(makefile_path=str(makefile_builder.path()), fix=True, dry_run=True)

    code = orchestrator.run_lint(options)

    assert code == 1
    assert makefile_builder.read() == LINT_SOURCE
    assert orchestrator.stdout.getvalue().endswith("Would fix 1 issue(s) in 1 file(s)\n")


def test_render_in_markdown(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    orchestrator.run_render(
        HelpOptions(makefile_path=str(project.path()), output_format="markdown")
    )

    output = orchestrator.stdout.getvalue()
    assert output.startswith("# Makefile Help\n")
    assert "### Build\n\n- **build**: Build the project.\n" in output


def test_render_writes_output_file(project, tmp_path) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))
    destination = tmp_path / "help.json"

    orchestrator.run_detailed(
        HelpOptions(
            makefile_path=str(project.path()),
            target="test",
            output_format="json",
            output=str(destination),
        )
    )

    assert orchestrator.stdout.getvalue() == ""
    assert json.loads(destination.read_text(encoding="utf-8")) == {
        "name": "test",
        "summary": "Run tests.",
        "sourceFile": "Makefile",
        "lineNumber": 8,
        "documentation": ["Run tests."],
    }


def test_output_dash_means_stdout(project) -> None:
    orchestrator = _orchestrator(RecordingGateway(database=DATABASE))

    orchestrator.run_detailed(
        HelpOptions(makefile_path=str(project.path()), target="clean", output="-")
    )

    assert orchestrator.stdout.getvalue().startswith("Target: clean\n")
