"""Generated help files exercised through a real `make`."""

from __future__ import annotations

import io
import os
import shutil
import subprocess
import time

import pytest

from makehelp.config import HelpOptions
from makehelp.orchestrator import Orchestrator

pytestmark = pytest.mark.skipif(shutil.which("make") is None, reason="GNU make is not installed")


def _generate(makefile_builder) -> None:
    orchestrator = Orchestrator(stdout=io.StringIO(), environ={})
    orchestrator.run_generate(HelpOptions(makefile_path=str(makefile_builder.path())))


def _make(makefile_builder, *targets: str) -> str:
    result = subprocess.run(
        ["make", "-s", *targets],
        cwd=makefile_builder.root,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


def test_doc_text_is_printed_verbatim(makefile_builder, tmp_path) -> None:
    marker = tmp_path / "marker"
    makefile_builder.write(
        {
            "Makefile": (
                f"## Compiles with $(touch {marker}) and $$HOME\n"
                "## Prints a literal \\n and \\t, plus `date` in quotes 'x'\n"
                "build:\n"
                "\t@echo building\n"
            )
        }
    )
    _generate(makefile_builder)

    summary = _make(makefile_builder, "help")
    detailed = _make(makefile_builder, "help-build")

    assert not marker.exists()
    assert f"Compiles with $(touch {marker}) and $$HOME" in summary
    assert "Prints a literal \\n and \\t, plus `date` in quotes 'x'" in detailed


def test_help_warns_when_a_source_makefile_is_newer(makefile_builder) -> None:
    makefile_builder.write({"Makefile": "## Builds it.\nbuild:\n\t@echo building\n"})
    _generate(makefile_builder)
    assert makefile_builder.path("make/help.mk").exists()
    assert "Warning:" not in _make(makefile_builder, "help")

    future = time.time() + 60
    os.utime(makefile_builder.path(), (future, future))

    output = _make(makefile_builder, "help")

    assert "Warning:" in output
    assert "is newer than help.mk" in output
    assert "- build: Builds it." in output
