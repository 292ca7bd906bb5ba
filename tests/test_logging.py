"""
Tests for the structured logging module.
"""

import json
import logging

from batch_runtime.errors import InvalidTransitionError
from batch_runtime.logging import (
    JSONFormatter,
    LogContext,
    StructuredLogger,
    Timer,
    configure_logging,
    generate_trace_id,
    get_logger,
    timed,
)


class TestLogContext:
    """Test LogContext dataclass."""

    def test_to_dict_drops_empty_fields(self):
        """Test converting to dict."""
        ctx = LogContext(trace_id="t1", job_id="job-1", extra={"custom": "value"})

        d = ctx.to_dict()

        assert d == {"trace_id": "t1", "job_id": "job-1", "custom": "value"}

    def test_with_update(self):
        """Test creating updated context."""
        ctx = LogContext(trace_id="t1", job_id="job-1")
        updated = ctx.with_update(action="start", extra={"new": "value"})

        assert updated.trace_id == "t1"
        assert updated.job_id == "job-1"
        assert updated.action == "start"
        assert updated.extra == {"new": "value"}
        assert ctx.action is None


class TestStructuredLogger:
    """Test StructuredLogger output."""

    def test_trace_context_restored(self):
        logger = StructuredLogger("batch_runtime.test.trace")

        with logger.trace_context(job_id="job-1") as trace_id:
            assert trace_id.startswith("trace_")
            assert logger.context.job_id == "job-1"

        assert logger.context.job_id is None
        assert logger.context.trace_id is None

    def test_json_output(self, caplog):
        logger = StructuredLogger("batch_runtime.test.json", json_output=True)
        caplog.set_level(logging.INFO, logger="batch_runtime.test.json")

        with logger.trace_context(trace_id="trace_abc", operation="apply_action"):
            logger.log_transition("job-1", "start", "pending", "running")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["trace_id"] == "trace_abc"
        assert payload["operation"] == "apply_action"
        assert payload["event_type"] == "transition"
        assert payload["previous_status"] == "pending"
        assert payload["status"] == "running"

    def test_deleted_transition(self, caplog):
        logger = StructuredLogger("batch_runtime.test.delete")
        caplog.set_level(logging.INFO, logger="batch_runtime.test.delete")

        logger.log_transition("job-1", "delete", "failed", None)

        assert "failed -> removed" in caplog.records[-1].getMessage()

    def test_noop_is_debug(self, caplog):
        logger = StructuredLogger("batch_runtime.test.noop", level="DEBUG")
        caplog.set_level(logging.DEBUG, logger="batch_runtime.test.noop")

        logger.log_noop("job-1", "pause", "pending", "action not valid from this status")

        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert "pause ignored" in record.getMessage()

    def test_level_filtering(self, caplog):
        logger = StructuredLogger("batch_runtime.test.level", level="WARNING")
        caplog.set_level(logging.DEBUG, logger="batch_runtime.test.level")
        logger.logger.setLevel(logging.WARNING)

        logger.info("hidden")
        logger.warning("shown")

        messages = [r.getMessage() for r in caplog.records]
        assert any("shown" in m for m in messages)
        assert not any("hidden" in m for m in messages)

    def test_log_error_includes_code(self, caplog):
        logger = StructuredLogger("batch_runtime.test.error", json_output=True)
        caplog.set_level(logging.ERROR, logger="batch_runtime.test.error")

        logger.log_error(InvalidTransitionError("job-1", "pause", "pending"), "apply failed")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["error_type"] == "InvalidTransitionError"
        assert payload["error_code"] == "ERR_3001"
        assert payload["error_context"]["status"] == "pending"


class TestFormatters:
    """Test log formatters."""

    def test_json_formatter_merges_payload(self):
        record = logging.LogRecord(
            "batch_runtime", logging.INFO, __file__, 1, json.dumps({"message": "hi", "job_id": "j"}),
            None, None,
        )

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["message"] == "hi"
        assert data["job_id"] == "j"

    def test_json_formatter_plain_message(self):
        record = logging.LogRecord("batch_runtime", logging.INFO, __file__, 1, "plain", None, None)

        assert json.loads(JSONFormatter().format(record))["message"] == "plain"


class TestUtilities:
    """Test logging utilities."""

    def test_trace_ids_unique(self):
        assert generate_trace_id() != generate_trace_id()

    def test_timer(self):
        timer = Timer()
        elapsed = timer.stop()

        assert elapsed >= 0
        assert timer.end_time is not None

    def test_timed(self):
        with timed() as timer:
            pass

        assert timer.end_time is not None

    def test_global_logger(self):
        configured = configure_logging(level="DEBUG")

        assert get_logger() is configured
