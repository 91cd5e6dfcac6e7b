"""Tests for the logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from schemaforge.logging_config import PlainFormatter, get_logger, setup_logging


@pytest.fixture
def root_logger():
    """The schemaforge root logger, restored to its defaults afterwards."""
    root = logging.getLogger("schemaforge")
    yield root
    setup_logging()
    root.propagate = True


class TestGetLogger:
    """Tests for get_logger."""

    def test_names_are_placed_under_root(self) -> None:
        """Foreign names are nested under the schemaforge logger."""
        assert get_logger("scripts.export").name == "schemaforge.scripts.export"
        assert get_logger("schemaforge.codegen").name == "schemaforge.codegen"
        assert get_logger("schemaforge").name == "schemaforge"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_rich_handler(self, root_logger) -> None:
        """Rich output is the default."""
        setup_logging("info")
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0], RichHandler)
        assert root_logger.propagate is False

    def test_plain_handler(self, root_logger) -> None:
        """Plain output uses a stream handler with a single-line format."""
        setup_logging(logging.DEBUG, use_rich=False)
        (handler,) = root_logger.handlers
        assert isinstance(handler, logging.StreamHandler)
        assert isinstance(handler.formatter, PlainFormatter)
        assert root_logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_warning(self, root_logger) -> None:
        """Unrecognised level names fall back to WARNING."""
        setup_logging("loud")
        assert root_logger.level == logging.WARNING
