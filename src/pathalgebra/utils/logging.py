"""Logging utilities for pathalgebra.

The core modules log through the standard library (``logging.getLogger``)
and the CLI logs through structlog. Both end up on the same root handlers,
which render every record with structlog: JSON lines in the log file and
key=value lines on the console.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import structlog

_HANDLER_NAME = "pathalgebra"

_SHARED_PROCESSORS: list[structlog.typing.Processor] = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
]


@dataclass
class OperationStats:
    """Statistics from a run of boolean operations."""

    operation_count: int = 0
    input_paths: int = 0
    output_paths: int = 0
    error_count: int = 0
    errors: list[tuple[str, str]] = field(default_factory=list)
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Time from the first operation starting to the last one finishing."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


def _remove_handlers(root_logger: logging.Logger) -> None:
    """Drop handlers installed by an earlier configure_logging call."""
    for handler in root_logger.handlers[:]:
        if handler.get_name() == _HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()


def _structlog_handler(
    handler: logging.Handler,
    level: str,
    renderer: structlog.typing.Processor,
) -> logging.Handler:
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(getattr(logging, level.upper()))
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_SHARED_PROCESSORS,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure dual-output structured logging.

    Calling this again replaces the handlers from the previous call, so a
    process that runs several commands does not log each record twice.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, add no console handler at all

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    _remove_handlers(root_logger)

    if log_file is not None:
        root_logger.addHandler(
            _structlog_handler(
                logging.FileHandler(log_file, encoding="utf-8"),
                file_level,
                structlog.processors.JSONRenderer(),
            )
        )

    if not quiet:
        root_logger.addHandler(
            _structlog_handler(
                logging.StreamHandler(),
                console_level,
                structlog.dev.ConsoleRenderer(colors=False),
            )
        )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("pathalgebra")
    logger.debug("Logging initialized", log_file=str(log_file) if log_file else None)

    return logger


class OperationLogger:
    """Logger for tracking boolean operations and their statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = OperationStats()

    def log_operation_start(self, operation: str, input_paths: int) -> None:
        """Log start of an operation."""
        self._logger.debug("Operation started", operation=operation, inputs=input_paths)
        if self._stats.start_time is None:
            self._stats.start_time = time.perf_counter()
        self._stats.input_paths += input_paths

    def log_operation_complete(
        self,
        operation: str,
        output_paths: int,
        duration_ms: float,
    ) -> None:
        """Log a completed operation."""
        self._logger.info(
            "Operation complete",
            operation=operation,
            outputs=output_paths,
            duration_ms=round(duration_ms, 2),
        )
        self._stats.operation_count += 1
        self._stats.output_paths += output_paths
        self._stats.end_time = time.perf_counter()

    def log_operation_error(
        self,
        operation: str,
        error: Exception,
        traceback: str | None = None,
    ) -> None:
        """Log a failed operation."""
        self._logger.error(
            "Operation failed",
            operation=operation,
            error=str(error),
            error_type=type(error).__name__,
            traceback=traceback,
        )
        self._stats.error_count += 1
        self._stats.errors.append((operation, str(error)))

    def log_graph_summary(
        self,
        operation: str,
        points: int,
        edges: int,
        exterior: int,
    ) -> None:
        """Log the size of the graph an operation produced."""
        self._logger.debug(
            "Graph summary",
            operation=operation,
            points=points,
            edges=edges,
            exterior=exterior,
        )

    @property
    def stats(self) -> OperationStats:
        """Get current operation statistics."""
        return self._stats
