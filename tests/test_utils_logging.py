"""Tests for rangeforge.utils.logging module."""

import logging

import pytest
from rich.logging import RichHandler

from rangeforge.utils.logging import (
    ROOT_LOGGER,
    Timer,
    get_logger,
    setup_logging,
)


@pytest.fixture
def clean_logger():
    """Detach handlers added by setup_logging after each test."""
    yield logging.getLogger(ROOT_LOGGER)
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


# =============================================================================
# Setup Tests
# =============================================================================


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_verbosity_levels(self, clean_logger):
        """Verbosity maps onto logging levels."""
        assert setup_logging(verbosity=0, use_rich=False).level == logging.WARNING
        assert setup_logging(verbosity=1, use_rich=False).level == logging.INFO
        assert setup_logging(verbosity=5, use_rich=False).level == logging.DEBUG

    def test_rich_handler(self, clean_logger):
        """The console handler uses rich by default."""
        logger = setup_logging()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], RichHandler)

    def test_handlers_replaced(self, clean_logger):
        """Repeated setup does not stack handlers."""
        setup_logging(use_rich=False)
        logger = setup_logging(use_rich=False)
        assert len(logger.handlers) == 1

    def test_log_file(self, clean_logger, tmp_path):
        """Debug messages reach the log file."""
        path = tmp_path / "rangeforge.log"
        logger = setup_logging(verbosity=0, log_file=path, use_rich=False)
        assert len(logger.handlers) == 2
        get_logger("rangeforge.ops.coverage").debug("sweep done")
        for handler in logger.handlers:
            handler.flush()
        assert "sweep done" in path.read_text()

    def test_get_logger(self):
        """Module loggers live under the package logger."""
        assert get_logger("rangeforge.engine").name == "rangeforge.engine"


# =============================================================================
# Timing Tests
# =============================================================================


class TestTimer:
    """Tests for Timer."""

    def test_elapsed_logged(self, caplog):
        """The elapsed time is recorded and logged."""
        logger = logging.getLogger("rangeforge.test.timer")
        with caplog.at_level(logging.INFO, logger="rangeforge.test.timer"):
            with Timer("Coverage", logger) as timer:
                sum(range(1000))
        assert timer.elapsed >= 0
        assert caplog.records[0].getMessage().startswith("Coverage completed in")

    def test_level(self, caplog):
        """The completion message uses the requested level."""
        logger = logging.getLogger("rangeforge.test.timer")
        with caplog.at_level(logging.DEBUG, logger="rangeforge.test.timer"):
            with Timer("Reduce", logger, logging.DEBUG):
                pass
        assert caplog.records[0].levelno == logging.DEBUG
