"""Tests for the directive scanner state machine."""

from __future__ import annotations

import pytest

from makehelp.errors import ParseReadError
from makehelp.models import DirectiveKind
from makehelp.parser.scanner import Scanner, ScannerState


def _kinds(parsed):
    return [(d.kind, d.value, d.line_number) for d in parsed.directives]


def test_docs_are_attached_when_a_target_follows() -> None:
    content = "## Builds the project.\n## !var OUT - Output dir\nbuild:\n\t@echo build\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert parsed.target_map == {"build": 3}
    assert _kinds(parsed) == [
        (DirectiveKind.DOC, "Builds the project.", 1),
        (DirectiveKind.VARIABLE, "OUT - Output dir", 2),
    ]


def test_orphan_docs_are_discarded_by_blank_line() -> None:
    content = "## Orphaned text.\n\nbuild:\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert parsed.directives == []
    assert parsed.target_map == {"build": 3}


def test_orphan_docs_are_discarded_by_assignment() -> None:
    content = "## Not for VAR.\nVAR := 1\nbuild:\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert parsed.directives == []


def test_file_directive_is_emitted_without_a_target() -> None:
    content = "## !file\n## Project overview.\n## Second line.\n\nVAR = 1\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert _kinds(parsed) == [
        (DirectiveKind.FILE, "", 1),
        (DirectiveKind.FILE, "Project overview.", 2),
        (DirectiveKind.FILE, "Second line.", 3),
    ]


def test_file_block_ends_at_first_non_doc_line() -> None:
    content = "## !file Overview.\n\n## Builds.\nbuild:\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert _kinds(parsed) == [
        (DirectiveKind.FILE, "Overview.", 1),
        (DirectiveKind.DOC, "Builds.", 3),
    ]


def test_category_directive_is_discarded_with_its_block() -> None:
    content = "## !category Build\n\nbuild:\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert parsed.directives == []


def test_redefinitions_are_all_recorded_as_target_lines() -> None:
    content = "## First.\nbuild:\n\n## More.\nbuild: extra\n"
    parsed = Scanner().scan_content(content, "Makefile")

    assert parsed.target_map == {"build": 2}
    assert parsed.target_lines == {2: "build", 5: "build"}
    assert len(parsed.directives) == 2


def test_crlf_line_endings_are_tolerated() -> None:
    parsed = Scanner().scan_content("## Builds.\r\nbuild:\r\n", "Makefile")

    assert parsed.target_map == {"build": 2}
    assert parsed.directives[0].value == "Builds."


def test_scanner_returns_to_idle_after_each_file() -> None:
    scanner = Scanner()
    scanner.scan_content("## Dangling doc.\n", "a.mk")

    assert scanner.state is ScannerState.IDLE
    parsed = scanner.scan_content("build:\n", "b.mk")
    assert parsed.directives == []


def test_scan_file_reads_from_disk(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "## Tests.\ntest:\n"})

    parsed = Scanner().scan_file(str(makefile_builder.path()))

    assert parsed.path == str(makefile_builder.path())
    assert parsed.target_map == {"test": 2}


def test_scan_file_missing_raises(tmp_path) -> None:
    with pytest.raises(ParseReadError):
        Scanner().scan_file(str(tmp_path / "missing.mk"))
