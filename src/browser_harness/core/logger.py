# src/browser_harness/core/logger.py
"""
Structured Logging for the Browser Harness

This module provides logging with:
- Structured key/value events via structlog
- Correlation IDs tying together every event of one lifecycle
- Performance timing of provisioning steps
- Console and rotating file output

Key Design Patterns:
- Singleton Pattern: Single logger configuration per process
- Context Manager: Automatic correlation context cleanup
"""

import logging
import logging.handlers
import sys
import time
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from browser_harness.config.settings import Settings

FRAMEWORK_NAME = "browser-harness"

correlation_id_var: ContextVar[str] = ContextVar('correlation_id', default='')
test_id_var: ContextVar[str] = ContextVar('test_id', default='')


class PerformanceTimer:
    """
    Context manager for measuring operation duration.

    Example:
        >>> with PerformanceTimer("start_server") as timer:
        ...     handle = server.start(directory, "index.html")
        ...     timer.add_metric("port", handle.port)
    """

    def __init__(self, operation_name: str, logger: Optional[structlog.stdlib.BoundLogger] = None):
        """
        Initialize performance timer.

        Args:
            operation_name: Name of the operation being timed
            logger: Logger instance to use (defaults to the harness logger)
        """
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None
        self.metrics: Dict[str, Any] = {}

    def __enter__(self) -> "PerformanceTimer":
        self.start_time = time.perf_counter()
        self.logger.debug(
            "Operation started",
            operation=self.operation_name,
            event_type="performance_start"
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time if self.start_time else 0

        log_data = {
            "operation": self.operation_name,
            "duration_seconds": round(duration, 3),
            "event_type": "performance_end",
            **self.metrics
        }

        if exc_type is None:
            self.logger.info("Operation completed", **log_data)
        else:
            log_data["exception_type"] = exc_type.__name__
            log_data["exception_message"] = str(exc_val) if exc_val else None
            self.logger.warning("Operation failed", **log_data)

    def add_metric(self, key: str, value: Any) -> None:
        """Add a custom metric to be logged with the timing."""
        self.metrics[key] = value

    @property
    def duration(self) -> Optional[float]:
        """Get the current or final duration of the operation."""
        if self.start_time is None:
            return None
        end_time = self.end_time or time.perf_counter()
        return end_time - self.start_time


class LoggingManager:
    """
    Central logging management.

    Configures structlog on top of the standard library so that harness
    events and third-party library logs (selenium, urllib3) share handlers.
    """

    def __init__(self):
        self._configured = False
        self._loggers: Dict[str, structlog.stdlib.BoundLogger] = {}

    def configure_logging(
            self,
            log_level: str = "INFO",
            enable_console: bool = True,
            enable_file: bool = False,
            log_file_path: Optional[Path] = None,
            enable_json_format: bool = False,
            enable_correlation_id: bool = True,
            max_file_size_mb: int = 10,
            backup_count: int = 3,
            force: bool = False
    ) -> None:
        """
        Configure the logging system.

        Args:
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            enable_console: Enable console output
            enable_file: Enable file output
            log_file_path: Path to log file (default: logs/browser-harness.log)
            enable_json_format: Render events as JSON instead of console text
            enable_correlation_id: Enable correlation ID tracking
            max_file_size_mb: Maximum log file size in MB
            backup_count: Number of backup log files to keep
            force: Reconfigure even if logging was already configured
        """
        if self._configured and not force:
            return

        processors = []

        if enable_correlation_id:
            processors.append(self._add_correlation_context)

        processors.extend([
            self._add_timestamp,
            self._add_framework_context,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
        ])

        if enable_json_format:
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        structlog.configure(
            processors=processors,
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=False,
        )

        harness_logger = logging.getLogger(FRAMEWORK_NAME)
        harness_logger.setLevel(getattr(logging, log_level.upper()))
        harness_logger.propagate = False
        for handler in list(harness_logger.handlers):
            harness_logger.removeHandler(handler)
            handler.close()

        if enable_console:
            self._setup_console_handler(harness_logger)

        if enable_file:
            log_path = log_file_path or Path("logs/browser-harness.log")
            self._setup_file_handler(harness_logger, log_path, max_file_size_mb, backup_count)

        self._loggers.clear()
        self._configured = True

        self.get_logger("logging_manager").debug(
            "Logging system configured",
            log_level=log_level,
            console_enabled=enable_console,
            file_enabled=enable_file,
            json_format=enable_json_format,
            correlation_tracking=enable_correlation_id
        )

    def _setup_console_handler(self, target: logging.Logger) -> None:
        """Set up console logging handler."""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter("%(message)s"))
        target.addHandler(console_handler)

    def _setup_file_handler(
            self,
            target: logging.Logger,
            log_path: Path,
            max_size_mb: int,
            backup_count: int
    ) -> None:
        """Set up rotating file logging handler."""
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(logging.Formatter("%(message)s"))

        target.addHandler(file_handler)

    def _add_correlation_context(self, logger, method_name, event_dict):
        """Add correlation context to log entries."""
        correlation_id = correlation_id_var.get()
        if correlation_id:
            event_dict['correlation_id'] = correlation_id

        test_id = test_id_var.get()
        if test_id:
            event_dict['test_id'] = test_id

        return event_dict

    def _add_timestamp(self, logger, method_name, event_dict):
        event_dict['timestamp'] = datetime.now().isoformat()
        return event_dict

    def _add_framework_context(self, logger, method_name, event_dict):
        event_dict['framework'] = FRAMEWORK_NAME
        return event_dict

    def get_logger(self, name: str = "harness") -> structlog.stdlib.BoundLogger:
        """
        Get a configured logger instance.

        Loggers are children of the "browser-harness" stdlib logger so they
        share its handlers and level.

        Args:
            name: Logger name for identification

        Returns:
            structlog.stdlib.BoundLogger: Configured logger instance
        """
        if not self._configured:
            self.configure_logging()

        if name not in self._loggers:
            self._loggers[name] = structlog.get_logger(f"{FRAMEWORK_NAME}.{name}")

        return self._loggers[name]


_logging_manager = LoggingManager()


def setup_logging(
        log_level: str = "INFO",
        enable_console: bool = True,
        enable_file: bool = False,
        log_file_path: Optional[Path] = None,
        enable_json_format: bool = False,
        enable_correlation_id: bool = True,
        max_file_size_mb: int = 10,
        backup_count: int = 3,
        force: bool = False
) -> None:
    """
    Set up logging for the harness.

    Example:
        >>> setup_logging(
        ...     log_level="DEBUG",
        ...     enable_file=True,
        ...     log_file_path=Path("logs/ui_tests.log")
        ... )
    """
    _logging_manager.configure_logging(
        log_level=log_level,
        enable_console=enable_console,
        enable_file=enable_file,
        log_file_path=log_file_path,
        enable_json_format=enable_json_format,
        enable_correlation_id=enable_correlation_id,
        max_file_size_mb=max_file_size_mb,
        backup_count=backup_count,
        force=force
    )


def setup_logging_from_settings(settings: "Settings", force: bool = False) -> None:
    """Configure logging from the logging section of the harness settings."""
    cfg = settings.logging
    setup_logging(
        log_level=cfg.level,
        enable_console=cfg.console_enabled,
        enable_file=cfg.file_enabled,
        log_file_path=cfg.file_path,
        enable_json_format=cfg.format_type == "json",
        enable_correlation_id=cfg.correlation_id_enabled,
        max_file_size_mb=cfg.max_file_size_mb,
        backup_count=cfg.backup_count,
        force=force
    )


def get_logger(name: str = "harness") -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Example:
        >>> logger = get_logger("locator")
        >>> logger.info("Found system driver", driver_path="/usr/bin/chromedriver")
    """
    return _logging_manager.get_logger(name)


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Set correlation ID for tracking related operations.

    Args:
        correlation_id: Explicit correlation ID, or None to generate new one

    Returns:
        str: The correlation ID that was set
    """
    if correlation_id is None:
        correlation_id = str(uuid4())
    correlation_id_var.set(correlation_id)
    return correlation_id


def set_test_id(test_id: str) -> None:
    """Set test ID for the current test execution."""
    test_id_var.set(test_id)


def get_performance_timer(operation_name: str) -> PerformanceTimer:
    """
    Create a performance timer for measuring operation duration.

    Example:
        >>> with get_performance_timer("create_session") as timer:
        ...     session = factory.create(config)
        ...     timer.add_metric("browser_kind", config.browser_kind.value)
    """
    return PerformanceTimer(operation_name)


class LoggingContext:
    """
    Context manager scoping a correlation ID (and optionally a test ID).

    Example:
        >>> with LoggingContext(test_id="test_search_form"):
        ...     get_logger().info("Provisioning")  # Includes correlation_id and test_id
    """

    def __init__(
            self,
            correlation_id: Optional[str] = None,
            test_id: Optional[str] = None
    ):
        self.correlation_id = correlation_id
        self.test_id = test_id
        self._previous_correlation_id = ''
        self._previous_test_id = ''

    def __enter__(self) -> "LoggingContext":
        self._previous_correlation_id = correlation_id_var.get()
        self._previous_test_id = test_id_var.get()

        self.correlation_id = set_correlation_id(self.correlation_id)
        if self.test_id is not None:
            set_test_id(self.test_id)

        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        correlation_id_var.set(self._previous_correlation_id)
        test_id_var.set(self._previous_test_id)


def log_phase(phase: str, **kwargs) -> None:
    """
    Log the start of a provisioning phase.

    Example:
        >>> log_phase("browser and driver detection")
    """
    get_logger("phases").info(
        f"=== {phase.upper()} ===",
        phase=phase,
        event_type="phase",
        **kwargs
    )
