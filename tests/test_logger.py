"""
Tests for logger functionality.
"""

import threading

import pytest

from formautocomplete import logger as logger_module
from formautocomplete.logger import StructuredLogger, get_logger, reset_logger


@pytest.fixture
def restore_global_logger():
    """Keep the shared instance used by other modules intact."""
    saved = logger_module._global_logger
    yield
    logger_module._global_logger = saved


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["suggestion_requests"] == 0
        assert logger.log_file is None

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )

        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

        content = logger.log_file.read_text(encoding="utf-8")
        assert "Info message" in content
        assert "Critical message" in content

    def test_log_with_context(self, tmp_path):
        """Logging with context should include extra data."""
        logger = StructuredLogger(
            name="test-context",
            log_dir=tmp_path,
            enable_file=True,
            enable_console=False,
        )

        logger.info("Lookup", term="An", limit=5, entity=object)

        content = logger.log_file.read_text(encoding="utf-8")
        assert 'Context: {"term": "An", "limit": 5' in content

    def test_file_name_uses_logger_name(self, tmp_path):
        logger = StructuredLogger(name="suggest", log_dir=tmp_path, enable_file=True, enable_console=False)
        assert logger.log_file.parent == tmp_path
        assert logger.log_file.name.startswith("suggest_")

    def test_configure_replaces_handlers(self, tmp_path):
        logger = StructuredLogger(name="test-reconfigure", enable_console=True)
        assert len(logger.logger.handlers) == 1

        logger.configure(level="DEBUG", log_dir=tmp_path, enable_file=True, enable_console=True)
        assert len(logger.logger.handlers) == 2
        assert logger.logger.level == 10

        logger.configure(enable_console=False)
        assert len(logger.logger.handlers) == 1  # NullHandler

    def test_metrics_tracking(self):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(name="test", enable_console=False)

        logger.record_request("default")
        logger.record_suggestions(3)
        logger.record_request("named")
        logger.record_suggestions(1)
        logger.record_request("named")
        logger.record_failure("FieldResolutionError")

        metrics = logger.get_metrics()

        assert metrics["suggestion_requests"] == 3
        assert metrics["suggestions_returned"] == 4
        assert metrics["failures"] == 1
        assert metrics["requests_by_strategy"] == {"default": 1, "named": 2}
        assert metrics["errors_by_type"]["FieldResolutionError"] == 1
        assert metrics["average_suggestions"] == 1.33

    def test_get_metrics_returns_copy(self):
        logger = StructuredLogger(name="test", enable_console=False)
        logger.record_request("default")

        metrics = logger.get_metrics()
        metrics["requests_by_strategy"]["default"] = 99

        assert logger.metrics["requests_by_strategy"]["default"] == 1

    def test_average_without_requests(self):
        logger = StructuredLogger(name="test", enable_console=False)
        assert logger.get_metrics()["average_suggestions"] == 0

    def test_metrics_from_concurrent_threads(self):
        """Counters stay exact when many threads record at once."""
        logger = StructuredLogger(name="test", enable_console=False)
        barrier = threading.Barrier(8)

        def work():
            barrier.wait()
            for _ in range(500):
                logger.record_request("default")
                logger.record_suggestions(2)
                logger.record_failure("ConfigurationError")

        threads = [threading.Thread(target=work) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        metrics = logger.get_metrics()
        assert metrics["suggestion_requests"] == 4000
        assert metrics["requests_by_strategy"] == {"default": 4000}
        assert metrics["suggestions_returned"] == 8000
        assert metrics["failures"] == 4000
        assert metrics["errors_by_type"] == {"ConfigurationError": 4000}
        assert metrics["average_suggestions"] == 2

    def test_reset_metrics(self):
        logger = StructuredLogger(name="test", enable_console=False)
        logger.record_failure("ConfigurationError")
        logger.reset_metrics()
        assert logger.metrics["failures"] == 0
        assert logger.metrics["errors_by_type"] == {}

    def test_metrics_summary(self, tmp_path):
        """Metrics summary should log without errors."""
        logger = StructuredLogger(name="test-summary", log_dir=tmp_path, enable_file=True, enable_console=False)

        logger.record_request("callable")
        logger.record_suggestions(2)
        logger.record_failure("ConnectionError")

        logger.log_metrics_summary()

        content = logger.log_file.read_text(encoding="utf-8")
        assert "Suggestion Metrics" in content
        assert "callable: 1" in content
        assert "ConnectionError: 1" in content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, restore_global_logger):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, restore_global_logger):
        """reset_logger should create new instance."""
        reset_logger()
        logger1 = get_logger(enable_console=False)

        reset_logger()
        logger2 = get_logger(enable_console=False)

        assert logger1 is not logger2
