"""Logging configuration for schemaforge.

All modules obtain their logger through :func:`get_logger`, which places it
under the ``schemaforge`` hierarchy. Output goes to stderr through a rich
handler so that generated file content written to stdout stays clean.

The level is taken from the ``SCHEMAFORGE_LOG_LEVEL`` environment variable
unless :func:`setup_logging` is called with an explicit level.
"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "schemaforge"
DEFAULT_LOG_LEVEL = os.getenv("SCHEMAFORGE_LOG_LEVEL", "WARNING")

_configured = False


class PlainFormatter(logging.Formatter):
    """Single-line formatter used when rich output is disabled."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def setup_logging(level: str | int | None = None, use_rich: bool = True) -> None:
    """Configure the ``schemaforge`` logger hierarchy.

    Args:
        level: Log level name or number. Defaults to ``SCHEMAFORGE_LOG_LEVEL``.
        use_rich: Render records with rich instead of plain text.
    """
    global _configured

    if level is None:
        level = DEFAULT_LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if use_rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(name)s | %(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(PlainFormatter())

    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger inside the ``schemaforge`` hierarchy.

    Args:
        name: Usually ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    if not _configured:
        setup_logging()

    if name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
