"""Tests for parsing the `make -p` database."""

from __future__ import annotations

import pytest

from makehelp.discovery.executor import GENERATING_ENV, CommandResult, Outcome
from makehelp.discovery.targets import SPECIAL_TARGETS, discover_targets, parse_database
from makehelp.errors import DiscoveryError, DiscoveryTimeoutError
from tests._fixtures.gateway import RecordingGateway, database_dump, failed


def test_parse_database_collects_targets_phony_and_recipes() -> None:
    output = database_dump(
        {"build": ["deps"], "deps": [], "alias": ["build"]},
        phony=["build", "alias"],
        recipes=["build", "deps"],
    )

    database = parse_database(output, extra_specials=["Makefile"])

    assert database.targets == ["build", "deps", "alias"]
    assert database.phony == {"build", "alias"}
    assert database.has_recipe == {"build", "deps"}
    assert database.dependencies == {"build": ["deps"], "deps": [], "alias": ["build"]}
    assert database.is_phony("alias")


def test_special_targets_and_patterns_are_filtered() -> None:
    output = "\n".join(
        [
            ".PHONY: build .DEFAULT",
            ".DEFAULT:",
            ".SUFFIXES:",
            "%.o: %.c",
            "build: .PRECIOUS lib",
            "Makefile:",
            "",
        ]
    )

    database = parse_database(output, extra_specials=["Makefile"])

    assert database.targets == ["build"]
    assert database.phony == {"build"}
    assert database.dependencies["build"] == ["lib"]
    for name in SPECIAL_TARGETS:
        assert name not in database.targets


def test_not_a_target_entries_and_assignments_are_skipped() -> None:
    output = "\n".join(
        [
            "# Not a target:",
            "helper.mk:",
            "",
            "CC := gcc",
            "VERSION = 1.0",
            "build: CFLAGS := -O2",
            "build: main.o",
            "#  recipe to execute (from 'Makefile', line 4):",
            "\tcc -o build main.o",
            "",
        ]
    )

    database = parse_database(output)

    assert database.targets == ["build"]
    assert database.dependencies["build"] == ["main.o"]
    assert database.has_recipe == {"build"}


def test_discover_targets_runs_make_in_print_mode(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "build:\n"})
    gateway = RecordingGateway(database=database_dump({"build": []}, phony=["build"]))

    database = discover_targets(gateway, str(makefile_builder.path()))

    assert database.targets == ["build"]
    call = gateway.calls[0]
    assert call.args[:4] == ["make", "-s", "--no-print-directory", "-f"]
    assert "-p" in call.args and "-r" in call.args
    assert f"{GENERATING_ENV}=1" in call.args
    assert call.env == {GENERATING_ENV: "1"}
    assert call.cwd == str(makefile_builder.root)


def test_no_targets_is_an_empty_result(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "VAR = 1\n"})
    dump = CommandResult(
        stdout="# Files\n", stderr="make: *** No targets.  Stop.", outcome=Outcome.NON_ZERO
    )

    database = discover_targets(RecordingGateway(dump=dump), str(makefile_builder.path()))

    assert database.targets == []


def test_failures_raise_discovery_errors(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "build:\n"})
    path = str(makefile_builder.path())

    with pytest.raises(DiscoveryError, match="missing separator"):
        discover_targets(RecordingGateway(dump=failed("*** missing separator")), path)
    with pytest.raises(DiscoveryTimeoutError):
        discover_targets(RecordingGateway(dump=failed("", outcome=Outcome.TIMEOUT)), path)
