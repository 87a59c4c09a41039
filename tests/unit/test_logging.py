"""Unit tests for structured logging."""

import json
import logging

import pytest

from node_bootstrapper.observability.logging import (
    CorrelationIDFilter,
    OperatorLogger,
    StructuredFormatter,
    get_correlation_id,
    set_correlation_id,
    setup_structured_logging,
)


def make_record(**extra):
    record = logging.LogRecord(
        name="test", level=logging.INFO, pathname=__file__, lineno=1,
        msg="hello %s", args=("world",), exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    def test_json_fields(self):
        record = make_record(
            correlation_id="abc12345", resource_type="hostedcontrolplane", namespace="ns"
        )

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "hello world"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "abc12345"
        assert data["resource_type"] == "hostedcontrolplane"
        assert data["namespace"] == "ns"
        assert "duration" not in data


class TestCorrelationIDs:
    def test_filter_sets_id(self):
        set_correlation_id("")
        record = make_record()

        assert CorrelationIDFilter().filter(record) is True
        assert len(record.correlation_id) == 8
        assert get_correlation_id() == record.correlation_id

    def test_filter_keeps_existing_id(self):
        set_correlation_id("abc12345")
        record = make_record()

        CorrelationIDFilter().filter(record)

        assert record.correlation_id == "abc12345"

    def test_reconciliation_start_sets_id(self):
        logger = OperatorLogger("test")
        corr_id = logger.log_reconciliation_start("hostedcontrolplane", "hcp", "ns")
        assert get_correlation_id() == corr_id


class TestOperatorLogger:
    def test_expected_errors_logged_at_info(self, caplog):
        logger = OperatorLogger("test.expected")
        with caplog.at_level(logging.INFO, logger="test.expected"):
            logger.log_reconciliation_error(
                "hostedcontrolplane", "hcp", "ns", RuntimeError("wait"), 0.1,
                expected=True,
            )

        assert [r.levelno for r in caplog.records] == [logging.INFO]
        assert caplog.records[0].error_type == "RuntimeError"

    def test_failures_logged_at_error(self, caplog):
        logger = OperatorLogger("test.failure")
        with caplog.at_level(logging.INFO, logger="test.failure"):
            logger.log_reconciliation_error(
                "hostedcontrolplane", "hcp", "ns", RuntimeError("boom"), 0.1
            )

        assert [r.levelno for r in caplog.records] == [logging.ERROR]


class TestSetup:
    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_setup(self):
        setup_structured_logging("debug", enable_json_formatting=True)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        assert logging.getLogger("kopf").level == logging.WARNING

    def test_plain_setup_without_correlation(self):
        setup_structured_logging(
            "INFO", enable_json_formatting=False, correlation_id_enabled=False
        )

        handler = logging.getLogger().handlers[0]
        assert not isinstance(handler.formatter, StructuredFormatter)
        assert handler.filters == []
