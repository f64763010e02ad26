"""Shared test fixtures for blamecache tests."""

import logging

import pytest
import structlog
from structlog.testing import CapturingLogger
from structlog.typing import FilteringBoundLogger

from tests.fakes import FakeProcessFactory, FakeWatch, FakeWatchFactory, RecordingProgress


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def capturing_logger() -> CapturingLogger:
    """Return the raw logger behind the `logger` fixture."""
    return CapturingLogger()


@pytest.fixture
def logger(capturing_logger: CapturingLogger) -> FilteringBoundLogger:
    """Return a DEBUG-level structlog logger recording every call."""
    return structlog.wrap_logger(
        capturing_logger,
        processors=[],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
    )


@pytest.fixture
def processes() -> FakeProcessFactory:
    return FakeProcessFactory()


@pytest.fixture
def watch() -> FakeWatch:
    return FakeWatch()


@pytest.fixture
def watches() -> FakeWatchFactory:
    return FakeWatchFactory()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()
