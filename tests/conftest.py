from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.gateway import RecordingGateway
from tests._fixtures.makefile_builder import MakefileBuilder


@pytest.fixture
def makefile_builder(tmp_path: Path) -> MakefileBuilder:
    """Provide a reusable Makefile project rooted at the pytest tmp_path."""
    return MakefileBuilder(tmp_path)


@pytest.fixture
def gateway() -> RecordingGateway:
    """A gateway double that records make invocations."""
    return RecordingGateway()
