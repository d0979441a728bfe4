"""Logging setup: stdlib loggers rendered through rich."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "smartui_sdk"

_handler: RichHandler | None = None


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger inside the SDK's logger hierarchy."""
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(verbose: bool = False, console: Console | None = None) -> logging.Logger:
    """Attach a rich handler to the SDK logger. Safe to call more than once."""
    global _handler

    logger = logging.getLogger(LOGGER_NAME)
    if _handler is None:
        _handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        _handler.setFormatter(logging.Formatter("[%(name)s] %(message)s"))
        logger.addHandler(_handler)

    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    return logger
