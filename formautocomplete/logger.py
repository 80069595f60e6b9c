"""
Structured logging for autocomplete resolvers.

Provides centralized logging with console and file outputs, plus
metrics for monitoring suggestion lookups.
"""

import copy
import json
import logging
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for suggestion lookups.
    """

    def __init__(
        self,
        name: str = "formautocomplete",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (default: logs/)
            enable_file: Write logs to file
            enable_console: Output logs to console
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.metrics = self._empty_metrics()
        # Resolvers share one logger across request threads.
        self._metrics_lock = threading.Lock()
        self.configure(level=level, log_dir=log_dir, enable_file=enable_file, enable_console=enable_console)

    @staticmethod
    def _empty_metrics() -> dict:
        return {
            "suggestion_requests": 0,
            "suggestions_returned": 0,
            "failures": 0,
            "requests_by_strategy": {},
            "errors_by_type": {},
        }

    def configure(
        self,
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = False,
        enable_console: bool = True,
    ):
        """Replace the handlers in place; modules holding this instance keep working."""
        self.logger.setLevel(getattr(logging, level.upper()))
        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()
        self.log_file: Optional[Path] = None

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        if enable_file:
            if log_dir is None:
                log_dir = Path("logs")
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            self.log_file = log_dir / f"{self.name}_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(self.log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

        if not self.logger.handlers:
            self.logger.addHandler(logging.NullHandler())

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if not self.logger.isEnabledFor(level):
            return
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_request(self, strategy: str):
        """Record a suggestion lookup and the fetch strategy serving it."""
        with self._metrics_lock:
            self.metrics["suggestion_requests"] += 1
            by_strategy = self.metrics["requests_by_strategy"]
            by_strategy[strategy] = by_strategy.get(strategy, 0) + 1

    def record_suggestions(self, count: int):
        """Add to the number of suggestions handed back to callers."""
        with self._metrics_lock:
            self.metrics["suggestions_returned"] += count

    def record_failure(self, error_type: str):
        """Record a failed lookup."""
        with self._metrics_lock:
            self.metrics["failures"] += 1
            errors = self.metrics["errors_by_type"]
            errors[error_type] = errors.get(error_type, 0) + 1

    def get_metrics(self) -> dict:
        """Return current metrics."""
        with self._metrics_lock:
            metrics_copy = copy.deepcopy(self.metrics)
        requests = metrics_copy["suggestion_requests"]
        metrics_copy["average_suggestions"] = (
            round(metrics_copy["suggestions_returned"] / requests, 2) if requests else 0
        )
        return metrics_copy

    def reset_metrics(self):
        with self._metrics_lock:
            self.metrics = self._empty_metrics()

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        self.info("=== Suggestion Metrics ===")
        self.info(f"Requests: {metrics['suggestion_requests']} ({metrics['failures']} failed)")
        self.info(f"Suggestions returned: {metrics['suggestions_returned']} (avg {metrics['average_suggestions']})")

        if metrics["requests_by_strategy"]:
            self.info("Fetch strategies:")
            for strategy, count in metrics["requests_by_strategy"].items():
                self.info(f"  {strategy}: {count}")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "formautocomplete",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
