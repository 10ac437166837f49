"""Tests for logging configuration."""

import logging

from rich.logging import RichHandler

from nutritrend.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("nutritrend")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert isinstance(logger.handlers[0], RichHandler)


def test_configure_logging_updates_level() -> None:
    logger = logging.getLogger("nutritrend")
    logger.handlers.clear()

    configure_logging("DEBUG")
    assert logger.level == logging.DEBUG

    configure_logging(logging.ERROR)
    assert logger.level == logging.ERROR
    assert len(logger.handlers) == 1
    assert logger.propagate is False
