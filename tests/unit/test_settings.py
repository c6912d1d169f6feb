"""Unit tests for configuration and logging utilities."""

import json
import logging
from pathlib import Path

import pytest
from pydantic import ValidationError

from pathalgebra.config import (
    ArithmeticConfig,
    FillRule,
    GeometryConfig,
    PathAlgebraSettings,
    get_default_settings,
)
from pathalgebra.utils import OperationLogger, configure_logging


class TestFillRule:
    """Tests for FillRule."""

    @pytest.mark.parametrize(
        ("count", "non_zero", "even_odd"),
        [(0, False, False), (1, True, True), (-1, True, True), (2, True, False), (-2, True, False)],
    )
    def test_is_filled(self, count: int, non_zero: bool, even_odd: bool) -> None:
        """Test which crossing counts are inside under each rule."""
        assert FillRule.NON_ZERO.is_filled(count) is non_zero
        assert FillRule.EVEN_ODD.is_filled(count) is even_odd

    def test_from_string(self) -> None:
        """Test rules can be created from their values."""
        assert FillRule("even_odd") is FillRule.EVEN_ODD


class TestSettings:
    """Tests for the pydantic settings models."""

    def test_defaults(self) -> None:
        """Test default settings."""
        settings = get_default_settings()
        assert settings.geometry.accuracy == 0.01
        assert settings.arithmetic.fill_rule == FillRule.EVEN_ODD
        assert settings.arithmetic.normalize_direction is True
        assert settings.arithmetic.strict is False
        assert settings.arithmetic.heal_gaps is True
        assert settings.logging.log_file is None

    def test_geometry_validation(self) -> None:
        """Test tolerances must be positive."""
        with pytest.raises(ValidationError):
            GeometryConfig(accuracy=0.0)
        with pytest.raises(ValidationError):
            GeometryConfig(max_collision_passes=0)

    def test_nested_settings(self) -> None:
        """Test building settings from nested configs."""
        settings = PathAlgebraSettings(
            arithmetic=ArithmeticConfig(fill_rule=FillRule.NON_ZERO, strict=True)
        )
        assert settings.arithmetic.fill_rule == FillRule.NON_ZERO
        assert settings.geometry == GeometryConfig()

    def test_fill_rule_from_value(self) -> None:
        """Test fill rules validate from strings."""
        config = ArithmeticConfig.model_validate({"fill_rule": "even_odd"})
        assert config.fill_rule == FillRule.EVEN_ODD


class TestLogging:
    """Tests for logging setup and operation statistics."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        """Remove handlers added by configure_logging."""
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        yield
        for handler in root.handlers[:]:
            if handler not in handlers:
                handler.close()
                root.removeHandler(handler)
        root.setLevel(level)

    def test_quiet_adds_no_console_handler(self) -> None:
        """Test quiet mode installs no handlers without a log file."""
        configure_logging(quiet=True)
        assert not [h for h in logging.getLogger().handlers if h.get_name() == "pathalgebra"]

    def test_reconfigure_replaces_handlers(self) -> None:
        """Test configuring twice does not duplicate the console handler."""
        configure_logging()
        configure_logging()
        ours = [h for h in logging.getLogger().handlers if h.get_name() == "pathalgebra"]
        assert len(ours) == 1

    def test_log_file(self, tmp_path: Path) -> None:
        """Test structured records are written to the log file."""
        log_file = tmp_path / "run.log"
        logger = configure_logging(log_file=log_file, quiet=True)
        OperationLogger(logger).log_operation_complete("union", 1, 12.3456)

        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = [line for line in log_file.read_text().splitlines() if "Operation complete" in line]
        assert lines
        record = json.loads(lines[-1])
        assert record["operation"] == "union"
        assert record["level"] == "info"
        assert record["duration_ms"] == 12.35

    def test_operation_stats(self) -> None:
        """Test statistics collected by OperationLogger."""
        op_logger = OperationLogger(configure_logging(quiet=True))
        op_logger.log_operation_start("union", 2)
        op_logger.log_operation_complete("union", 1, 1.0)
        op_logger.log_operation_error("subtract", ValueError("bad input"))

        stats = op_logger.stats
        assert stats.operation_count == 1
        assert stats.input_paths == 2
        assert stats.output_paths == 1
        assert stats.error_count == 1
        assert stats.errors == [("subtract", "bad input")]
        assert stats.duration_seconds >= 0.0
