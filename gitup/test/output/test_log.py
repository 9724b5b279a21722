"""Tests for gitup.output.log module."""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
from rich.logging import RichHandler

from gitup.output.log import configure_logging


@pytest.fixture(autouse=True)
def restore_logger() -> Iterator[None]:
    logger = logging.getLogger("gitup")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield
    logger.handlers[:] = saved[0]
    logger.setLevel(saved[1])
    logger.propagate = saved[2]


def test_default_level_is_warning() -> None:
    configure_logging()
    logger = logging.getLogger("gitup")
    assert logger.level == logging.WARNING
    assert not logging.getLogger("gitup.git.credentials").isEnabledFor(logging.DEBUG)


def test_verbose_enables_debug() -> None:
    configure_logging(verbose=True)
    assert logging.getLogger("gitup.git.updater").isEnabledFor(logging.DEBUG)


def test_single_rich_handler() -> None:
    configure_logging()
    configure_logging(verbose=True)
    handlers = logging.getLogger("gitup").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], RichHandler)
