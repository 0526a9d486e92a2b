"""
Tests for adprofit.observability module.
"""
import json
import logging
import time as time_module

from adprofit.observability import (
    HumanReadableFormatter,
    StructuredFormatter,
    Timer,
    generate_run_id,
    get_logger,
    get_run_id,
    run_context,
    setup_logging,
)


def make_record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("adprofit.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRunContext:
    """Tests for run ID management."""

    def test_generate_not_empty(self):
        assert len(generate_run_id()) == 8

    def test_scoped(self):
        """Run ID is set inside the block and restored after."""
        assert get_run_id() is None
        with run_context("abc") as run_id:
            assert run_id == "abc"
            assert get_run_id() == "abc"
        assert get_run_id() is None

    def test_generated_when_missing(self):
        with run_context() as run_id:
            assert run_id and get_run_id() == run_id


class TestFormatters:
    """Tests for log formatters."""

    def test_structured_includes_run_id_and_extras(self):
        with run_context("run-1"):
            line = StructuredFormatter().format(make_record(orders=3))
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["run_id"] == "run-1"
        assert data["orders"] == 3

    def test_human_readable(self):
        line = HumanReadableFormatter().format(make_record(degradation="missing_rate"))
        assert "INFO" in line
        assert "hello" in line
        assert "missing_rate" in line


class TestTimer:
    """Tests for Timer context manager."""

    def test_measures_elapsed_time(self):
        with Timer("stage") as timer:
            time_module.sleep(0.02)
        assert timer.elapsed_ms >= 15
        assert timer.name == "stage"

    def test_logs_duration(self, caplog):
        logger = get_logger("adprofit.test.timer")
        with caplog.at_level(logging.DEBUG, logger="adprofit.test.timer"):
            with Timer("stage", logger):
                pass
        assert "stage completed" in caplog.text


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_quiets_http_libs(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", json_format=True)
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
