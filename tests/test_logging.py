"""Tests for the structured logging system (inventory_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.exceptions import SequenceConflictError, VersionConflictError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite's setup."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("item_created", extra={"custom_id": "LAP-001", "sequence_number": 1})

        record = _parse_log(stream)
        assert record["custom_id"] == "LAP-001"
        assert record["sequence_number"] == 1

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(correlation_id="abc-123", inventory_id="inv-456")
        get_logger("test").info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["inventory_id"] == "inv-456"

    def test_plain_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "traceback" in record

    def test_kernel_exception_code_extracted(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise VersionConflictError("item-1", expected_version=3, actual_version=4)
        except VersionConflictError:
            get_logger("test").info("version_conflict", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "VERSION_CONFLICT"
        assert record["exc_type"] == "VersionConflictError"
        assert record["exc_item_id"] == "item-1"
        assert record["exc_expected_version"] == 3
        assert record["exc_actual_version"] == 4
        assert record["exc_retryable"] is False

    def test_retryable_flag(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise SequenceConflictError("inv-1", "LAP-002")
        except SequenceConflictError:
            get_logger("test").info("sequence_conflict", exc_info=True)

        assert _parse_log(stream)["exc_retryable"] is True

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "item_id" not in record

    def test_uuid_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        uid = uuid4()
        get_logger("test").info("with_uuid", extra={"item_id": uid})

        assert _parse_log(stream)["item_id"] == str(uid)

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # Default level is INFO, so the debug record is dropped
        assert len(logs) == 2
        for record in logs:
            assert {"ts", "level", "logger", "message"} <= set(record)


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", item_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "item_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_absent(self):
        assert "item_id" not in LogContext.get_all()
        with LogContext.bind(item_id="temp"):
            assert LogContext.get_all()["item_id"] == "temp"
        assert "item_id" not in LogContext.get_all()

    def test_bind_skips_none_and_stringifies(self):
        uid = uuid4()
        with LogContext.bind(inventory_id=uid, actor_id=None):
            ctx = LogContext.get_all()
        assert ctx == {"inventory_id": str(uid)}

    def test_additive_set(self):
        LogContext.set(correlation_id="a")
        LogContext.set(actor_id="b")
        ctx = LogContext.get_all()
        assert ctx["correlation_id"] == "a"
        assert ctx["actor_id"] == "b"

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="event_id"):
            LogContext.set(event_id="e")


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op

        # pytest may attach its own capture handlers; count only ours.
        structured = [
            h for h in logging.getLogger("inventory_kernel").handlers
            if isinstance(h.formatter, StructuredFormatter)
        ]
        assert structured == [h1]
        assert h2 not in logging.getLogger("inventory_kernel").handlers

    def test_level_by_name(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler, level="warning")
        assert logging.getLogger("inventory_kernel").level == logging.WARNING

    def test_get_logger_returns_child(self):
        logger = get_logger("services.item_lifecycle")
        assert logger.name == "inventory_kernel.services.item_lifecycle"

    def test_logger_hierarchy(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "inventory_kernel.deep.nested.module"
