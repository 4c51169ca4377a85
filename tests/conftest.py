"""Shared pytest fixtures and configuration for the brewed test suite.

Guidelines
----------
* Destinations write to in-memory buffers unless a test is about files.
* Lock files and settings live under ``tmp_path``, never in ``$HOME``.
* Tests must not depend on OS state.
"""

from __future__ import annotations

import io
from collections.abc import Iterator
from pathlib import Path

import pytest

from brewed.core.destination import LogDestination
from brewed.core.logger import Logger
from brewed.core.models import DestinationOptions, LogLevel
from brewed.infra.settings import Settings


@pytest.fixture()
def out_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def debug_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture()
def logger() -> Iterator[Logger]:
    with Logger() as log:
        yield log


@pytest.fixture()
def out_dest(logger: Logger, out_buffer: io.StringIO) -> LogDestination:
    """An ``output`` level destination registered on :func:`logger`."""
    return logger.open_destination(
        DestinationOptions(target=out_buffer, id="out", level=LogLevel.OUTPUT),
    )


@pytest.fixture()
def debug_dest(logger: Logger, debug_buffer: io.StringIO) -> LogDestination:
    """A ``debug`` level destination (folding on) registered on :func:`logger`."""
    return logger.open_destination(
        DestinationOptions(target=debug_buffer, id="dbg", level=LogLevel.DEBUG),
    )


@pytest.fixture()
def locks_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Logs" / "Locks"
    path.parent.mkdir(parents=True)
    return path


@pytest.fixture()
def settings(locks_dir: Path) -> Settings:
    return Settings(locks_dir=locks_dir, lock_timeout=1.0)
