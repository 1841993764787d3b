"""Tests for logging configuration."""

import logging

import pytest

from gridgeom import Envelope, derive_subgrid, set_log_level, setup_logging


@pytest.fixture
def package_logger():
    """Restore the package logger after a test reconfigures it."""
    logger = logging.getLogger("gridgeom")
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestLoggingConfiguration:
    """Test setup_logging and set_log_level."""

    def test_set_log_level(self, package_logger):
        set_log_level("debug")

        assert package_logger.level == logging.DEBUG

    def test_setup_logging_to_file(self, package_logger, tmp_path, world_grid):
        """Test that derivation messages are written to the log file."""
        log_file = tmp_path / "logs" / "gridgeom.log"
        setup_logging(level="INFO", log_file=log_file)

        derive_subgrid(world_grid, Envelope((10, -20), (50, 20)))
        for handler in package_logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert "Logging to file" in text
        assert "gridgeom.main - INFO - Derived subgrid" in text
        assert not package_logger.propagate

    def test_setup_logging_replaces_handlers(self, package_logger):
        setup_logging(level=logging.WARNING)
        setup_logging(level=logging.WARNING)

        assert len(package_logger.handlers) == 1

    def test_debug_names_derivation_loggers(self, package_logger, tmp_path, world_grid):
        """Test that DEBUG output comes from the documented module loggers."""
        log_file = tmp_path / "debug.log"
        setup_logging(level="DEBUG", log_file=log_file)

        world_grid.derive().subgrid(Envelope((10, -20), (50, 20)), 2, 2)
        for handler in package_logger.handlers:
            handler.flush()

        text = log_file.read_text()
        assert "gridgeom.grid.derivation - DEBUG - Area of interest maps to" in text
        assert "gridgeom.grid.derivation - DEBUG - Subsampling factors" in text
