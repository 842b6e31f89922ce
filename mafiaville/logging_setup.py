"""Logging configuration with game context.

Every record carries the current phase and round through a context
variable, so log lines from concurrent prompts stay attributable.
"""

import logging
from contextvars import ContextVar
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "mafiaville"

_game_context: ContextVar[dict[str, Any]] = ContextVar("game_context", default={})


def set_game_context(phase: str | None = None, round_number: int | None = None) -> None:
    """Update the current game context (partial updates supported)."""
    context = _game_context.get().copy()
    if phase is not None:
        context["phase"] = phase
    if round_number is not None:
        context["round"] = round_number
    _game_context.set(context)


def get_game_context() -> dict[str, Any]:
    """Get a copy of the current game context."""
    return _game_context.get().copy()


def clear_game_context() -> None:
    """Forget the current game context."""
    _game_context.set({})


def format_context() -> str:
    """Format context for log messages: 'phase:round'."""
    context = _game_context.get()
    if not context:
        return "lobby"
    return f"{context.get('phase', '?')}:{context.get('round', '?')}"


class GameContextFilter(logging.Filter):
    """Attach the formatted game context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = format_context()
        return True


def initialize_logging(level: int | str = logging.INFO, console: Console | None = None) -> logging.Logger:
    """Configure the package logger with a rich console handler.

    Args:
    ----
        level: Minimum level to emit
        console: Optional rich console to write to (defaults to stderr)

    Returns:
    -------
        The configured package logger

    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)
    handler.addFilter(GameContextFilter())
    handler.setFormatter(logging.Formatter("[%(context)s] %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("Logging initialized")
    return logger
