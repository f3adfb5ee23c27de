"""
Logging configuration module for the battle engine.

Diagnostics go to the ``battle_engine`` logger; the battle narrative lives in
``BattleState.log`` and never passes through here.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler


def get_logger(name: str) -> logging.Logger:
    """
    Gets a logger instance with the specified name.

    Args:
        name (str): The name of the logger.

    Returns:
        logging.Logger: The configured logger instance.

    """
    return logging.getLogger(name)


# Default logger for the engine.
logger = get_logger("battle_engine")


def setup_logging(level: int = logging.INFO) -> None:
    """
    Attaches a rich handler to the engine logger.

    Only the ``battle_engine`` logger is configured, so applications keep
    control of the root logger. Calling it again just changes the level.

    Args:
        level (int): The logging level to set. Defaults to logging.INFO.

    """
    logger.setLevel(level)
    if any(isinstance(h, RichHandler) for h in logger.handlers):
        return

    console = Console(stderr=True, width=120, force_jupyter=False)
    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_level=True,
        show_path=False,
        # Context suffixes look like "[key=value]" and must not parse as markup.
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setFormatter(logging.Formatter("%(name)s - %(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)
    logger.propagate = False


def _with_context(message: str, context: dict[str, Any] | None) -> str:
    if not context:
        return message
    context_str = " ".join(f"{k}={v}" for k, v in context.items())
    return f"{message} [{context_str}]"


def log_error(message: str, context: dict[str, Any] | None = None) -> None:
    """
    Logs an error message with optional context.

    Args:
        message (str): The error message.
        context (dict[str, Any] | None): Optional context dictionary.

    """
    logger.error(_with_context(message, context))


def log_info(message: str, context: dict[str, Any] | None = None) -> None:
    """Logs an info message with optional key=value context."""
    logger.info(_with_context(message, context))


def log_debug(message: str, context: dict[str, Any] | None = None) -> None:
    """Logs a debug message with optional key=value context."""
    logger.debug(_with_context(message, context))
