"""
Unit tests for the logging utilities.

Tests the ContextAwareLogger, AzureQueueHandler and the configuration
functions. Only the Azure Storage clients are mocked; they are the one
external service the logger talks to.
"""

import logging
import os
import sys
from io import StringIO
from unittest.mock import MagicMock, patch

import pytest

from fuel_delivery_core.utils.json_utils import loads
from fuel_delivery_core.utils.logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    configure_logging,
    get_logger,
)

CONNECTION_STRING = "DefaultEndpointsProtocol=http;AccountName=devstoreaccount1;AccountKey=a2V5;"


@pytest.fixture(autouse=True)
def disable_queue_logging():
    """No test reaches a real queue unless it patches the clients."""
    with patch.dict(os.environ, {"AzureWebJobsStorage": "", "ENABLE_LOGS_QUEUE": "false"}):
        yield


def make_record(msg="Test log message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="/test/module.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    record.funcName = "test_function"
    record.module = "test_module"
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextAwareLogger:
    @pytest.fixture
    def captured(self):
        base_logger = logging.getLogger("test.context_aware")
        base_logger.setLevel(logging.DEBUG)
        base_logger.propagate = False
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        base_logger.addHandler(handler)
        yield ContextAwareLogger(base_logger), stream
        base_logger.removeHandler(handler)

    def test_plain_message(self, captured):
        logger, stream = captured

        logger.info("Order scheduled")

        assert stream.getvalue().strip() == "INFO Order scheduled"

    def test_extra_is_appended_to_message(self, captured):
        logger, stream = captured

        logger.warning("Truck busy", extra={"truck_id": "t-1", "conflicts": 2})

        assert stream.getvalue().strip() == "WARNING Truck busy | truck_id=t-1 | conflicts=2"

    def test_reserved_record_names_do_not_break_logging(self, captured):
        logger, stream = captured

        logger.error("Clash", extra={"module": "x", "args": [1], "order_id": "o-1"})

        assert "module=x" in stream.getvalue()
        assert "order_id=o-1" in stream.getvalue()

    @pytest.mark.parametrize("level", ["debug", "info", "warning", "error"])
    def test_levels(self, captured, level):
        logger, stream = captured

        getattr(logger, level)("message")

        assert stream.getvalue().startswith(level.upper())


class TestAzureQueueHandler:
    def test_without_connection_string(self):
        handler = AzureQueueHandler()

        assert handler.queue_name == "logs-queue"
        assert not handler.connection_string
        assert handler.log_buffer == []

    def test_creates_missing_queue(self):
        with patch("fuel_delivery_core.utils.logger.QueueServiceClient") as service_client:
            service = service_client.from_connection_string.return_value
            service.list_queues.return_value = []

            AzureQueueHandler(queue_name="fuel-logs", connection_string=CONNECTION_STRING)

        service.create_queue.assert_called_once_with("fuel-logs")

    def test_queue_setup_failure_is_not_fatal(self):
        with patch("fuel_delivery_core.utils.logger.QueueServiceClient") as service_client:
            service_client.from_connection_string.side_effect = ValueError("bad account key")

            handler = AzureQueueHandler(connection_string=CONNECTION_STRING)

        assert handler.connection_string == CONNECTION_STRING

    def test_build_entry(self):
        handler = AzureQueueHandler()

        entry = handler.build_entry(make_record(tenant_id="tenant-1", order_id="o-9", truck_id="t-3"))

        assert entry["level"] == "INFO"
        assert entry["message"] == "Test log message"
        assert entry["function"] == "test_function"
        assert entry["line"] == 42
        assert entry["tenant_id"] == "tenant-1"
        assert entry["order_id"] == "o-9"
        assert entry["context"] == {"truck_id": "t-3"}

    def test_build_entry_with_exception(self):
        handler = AzureQueueHandler()
        try:
            raise RuntimeError("pump failure")
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        entry = handler.build_entry(record)

        assert entry["exception"]["type"] == "RuntimeError"
        assert entry["exception"]["message"] == "pump failure"
        assert entry["exception"]["traceback"]

    def test_batches_until_full(self):
        with patch("fuel_delivery_core.utils.logger.QueueServiceClient"), patch(
            "fuel_delivery_core.utils.logger.QueueClient"
        ) as queue_client:
            handler = AzureQueueHandler(connection_string=CONNECTION_STRING, batch_size=3)
            client = queue_client.from_connection_string.return_value

            handler.emit(make_record("one"))
            handler.emit(make_record("two"))
            assert client.send_message.call_count == 0

            handler.emit(make_record("three"))

        assert client.send_message.call_count == 3
        assert handler.log_buffer == []
        sent = [loads(call.args[0])["message"] for call in client.send_message.call_args_list]
        assert sent == ["one", "two", "three"]

    def test_close_flushes(self):
        with patch("fuel_delivery_core.utils.logger.QueueServiceClient"), patch(
            "fuel_delivery_core.utils.logger.QueueClient"
        ) as queue_client:
            handler = AzureQueueHandler(connection_string=CONNECTION_STRING, batch_size=10)
            handler.emit(make_record("pending"))
            handler.close()

        assert queue_client.from_connection_string.return_value.send_message.call_count == 1

    def test_flush_without_connection_keeps_buffer(self):
        handler = AzureQueueHandler(batch_size=10)
        handler.emit(make_record())

        handler.flush()

        assert len(handler.log_buffer) == 1

    def test_emit_error_is_handled(self):
        handler = AzureQueueHandler()
        handler.handleError = MagicMock()
        record = make_record()
        record.created = "not-a-timestamp"

        handler.emit(record)

        handler.handleError.assert_called_once_with(record)


class TestConfigureLogging:
    def test_configure_console_only(self):
        logger = configure_logging("orders", log_level="DEBUG", enable_queue=False)

        assert isinstance(logger, ContextAwareLogger)
        assert logger.logger.name == "fuel_delivery.orders"
        assert logger.logger.level == logging.DEBUG
        assert len(logger.logger.handlers) == 1
        assert get_logger() is logger

    def test_reconfigure_replaces_handlers(self):
        configure_logging("orders", enable_queue=False)
        logger = configure_logging("orders", enable_queue=False)

        assert len(logger.logger.handlers) == 1

    def test_configure_with_queue(self):
        with patch("fuel_delivery_core.utils.logger.QueueServiceClient"):
            logger = configure_logging(
                "orders", enable_queue=True, connection_string=CONNECTION_STRING, queue_batch_size=5
            )

        queue_handlers = [h for h in logger.logger.handlers if isinstance(h, AzureQueueHandler)]
        assert len(queue_handlers) == 1
        assert queue_handlers[0].batch_size == 5
        assert queue_handlers[0].queue_name == "logs-queue"

    def test_get_logger_fallback(self):
        logger = get_logger("WARNING")

        assert logger.logger.name == "fuel_delivery"
        assert logger.logger.level == logging.WARNING
