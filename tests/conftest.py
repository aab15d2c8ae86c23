"""Shared pytest fixtures for the full DocuGen test suite."""

from __future__ import annotations

import pytest

from docugen.telemetry.logger import configure_logging
from tests.fakes import RecordingSleeper


@pytest.fixture(autouse=True)
def _quiet_logging() -> None:
    """Keep runtime log lines out of test output unless a test installs its own sink."""

    configure_logging(level="CRITICAL")


@pytest.fixture
def sleeper() -> RecordingSleeper:
    """Provide a sleeper that records waits without real time passing."""

    return RecordingSleeper()
