"""Tests for configuration defaults."""

import logging

from gridgeom import GridRoundingMode
from gridgeom.core import config


class TestDefaultRounding:
    """Test the default rounding mode and its override."""

    def test_override(self, monkeypatch, world_grid):
        """Test that new derivations use the configured rounding mode."""
        monkeypatch.setattr(config, "DEFAULT_ROUNDING_NAME", " enclosing ")

        assert config.get_default_rounding() is GridRoundingMode.ENCLOSING
        assert world_grid.derive().rounding_mode is GridRoundingMode.ENCLOSING

    def test_unknown_name_falls_back_to_nearest(self, monkeypatch, caplog):
        monkeypatch.setattr(config, "DEFAULT_ROUNDING_NAME", "upward")
        caplog.set_level(logging.WARNING, logger="gridgeom")

        assert config.get_default_rounding() is GridRoundingMode.NEAREST
        assert "Unknown GRIDGEOM_ROUNDING" in caplog.text
