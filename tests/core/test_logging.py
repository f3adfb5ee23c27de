"""
Tests for the engine logging helpers.
"""

import logging

import pytest
from rich.logging import RichHandler

from battle_engine.core import logging as engine_logging


@pytest.fixture
def clean_logger():
    """Restores the engine logger after a test configures it."""
    logger = engine_logging.logger
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_setup_logging_is_idempotent(clean_logger):
    """
    Test that repeated setup only adjusts the level.
    """
    engine_logging.setup_logging(logging.WARNING)
    engine_logging.setup_logging(logging.DEBUG)
    rich_handlers = [h for h in clean_logger.handlers if isinstance(h, RichHandler)]
    assert len(rich_handlers) == 1
    assert clean_logger.level == logging.DEBUG
    assert not clean_logger.propagate


def test_context_is_appended(mocker):
    error = mocker.patch.object(engine_logging.logger, "error")
    engine_logging.log_error("Handler failed", {"event_type": "toast", "handler": "show"})
    error.assert_called_once_with("Handler failed [event_type=toast handler=show]")


def test_message_without_context(mocker):
    debug = mocker.patch.object(engine_logging.logger, "debug")
    engine_logging.log_debug("Turn start")
    debug.assert_called_once_with("Turn start")
