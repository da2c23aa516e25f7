from __future__ import annotations

import logging

from rich.logging import RichHandler

__all__ = ["configure_logging", "get_logger"]


def configure_logging(level: int | str = logging.INFO) -> None:
    """Install a Rich handler on the root logger."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def get_logger(name: str = "hsicube", level: int | str | None = None) -> logging.Logger:
    """Return a Rich-configured logger for the project."""
    configure_logging(logging.INFO if level is None else level)
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)
    return logger
