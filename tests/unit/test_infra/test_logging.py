"""Tests for the structured logging infrastructure."""
from __future__ import annotations

import json
import logging
import sys
from logging.handlers import QueueHandler

import pytest

from keyset_service.core.settings import LoggingSettings
from keyset_service.infra.logging import (
    ContextInjectingFilter,
    JSONFormatter,
    LazyString,
    clear_log_context,
    configure_logging,
    get_lazy_logger,
    get_log_context,
    lazy,
    log_context,
    set_log_context,
    setup_logging,
    shutdown,
)
from keyset_service.infra.logging import config as logging_config


@pytest.fixture(autouse=True)
def _isolate_logging():
    root = logging.getLogger()
    level = root.level
    filters = list(root.filters)
    clear_log_context()
    yield
    shutdown()
    clear_log_context()
    root.setLevel(level)
    root.filters[:] = filters


def make_record(msg="hello %s", args=("world",), **extra) -> logging.LogRecord:
    record = logging.LogRecord("keyset_service.test", logging.INFO, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestJSONFormatter:
    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "keyset_service.test"
        assert data["message"] == "hello world"
        assert data["timestamp"].endswith("Z")

    def test_extra_and_static_fields(self):
        formatter = JSONFormatter(static={"service": "keyset-service"})

        data = json.loads(formatter.format(make_record(table="users", keyset={"id": 3})))

        assert data["service"] == "keyset-service"
        assert data["table"] == "users"
        assert data["keyset"] == {"id": 3}
        assert "pathname" not in data
        assert "args" not in data

    def test_custom_keys(self):
        formatter = JSONFormatter(fmt_keys={"lvl": "levelname", "msg": "message"})

        data = json.loads(formatter.format(make_record()))

        assert data["lvl"] == "INFO"
        assert data["msg"] == "hello world"
        assert "logger" not in data

    def test_exception_single_line(self):
        try:
            1 / 0
        except ZeroDivisionError:
            record = logging.LogRecord(
                "keyset_service.test", logging.ERROR, __file__, 10, "failed", (), sys.exc_info()
            )

        output = JSONFormatter().format(record)

        assert "\n" not in output
        assert "ZeroDivisionError" in json.loads(output)["exception"]

    def test_sql_expression_extra(self, users):
        data = json.loads(JSONFormatter().format(make_record(predicate=users.c.id > 5)))

        assert data["predicate"] == "users.id > :id_1"

    def test_non_serializable_extra(self):
        data = json.loads(JSONFormatter().format(make_record(obj=object())))

        assert data["obj"].startswith("<object object")


@pytest.mark.unit
class TestLogContext:
    def test_set_get_clear(self):
        set_log_context(request_id="abc")
        set_log_context(table="users")

        assert get_log_context() == {"request_id": "abc", "table": "users"}

        clear_log_context()

        assert get_log_context() == {}

    def test_get_returns_copy(self):
        set_log_context(request_id="abc")

        get_log_context()["request_id"] = "changed"

        assert get_log_context() == {"request_id": "abc"}

    def test_log_context_block(self):
        set_log_context(request_id="abc")

        with log_context(table="users", request_id="inner"):
            assert get_log_context() == {"request_id": "inner", "table": "users"}

        assert get_log_context() == {"request_id": "abc"}

    def test_filter_injects_context(self):
        set_log_context(request_id="abc", table="users")
        record = make_record(table="items")

        assert ContextInjectingFilter().filter(record) is True
        assert record.request_id == "abc"
        assert record.table == "items"


@pytest.mark.unit
class TestLazyLogger:
    def test_callable_message_evaluated_when_enabled(self, caplog):
        caplog.set_level(logging.DEBUG, logger="keyset_service.test.lazy")
        logger = get_lazy_logger("keyset_service.test.lazy")

        logger.debug(lambda: "computed")
        logger.info("value %s", lambda: 42)

        assert [record.getMessage() for record in caplog.records] == ["computed", "value 42"]

    def test_callable_skipped_when_disabled(self, caplog):
        caplog.set_level(logging.INFO, logger="keyset_service.test.lazy")
        logger = get_lazy_logger("keyset_service.test.lazy")
        calls = []

        logger.debug(lambda: calls.append(1))

        assert calls == []
        assert caplog.records == []

    def test_bound_context(self, caplog):
        caplog.set_level(logging.INFO, logger="keyset_service.test.lazy")
        logger = get_lazy_logger("keyset_service.test.lazy", table="users")

        logger.warning("paginating")

        assert caplog.records[0].table == "users"

    def test_lazy_string(self):
        calls = []
        value = lazy(lambda: calls.append(1) or "rendered")

        assert isinstance(value, LazyString)
        assert calls == []
        assert str(value) == "rendered"
        assert calls == [1]


@pytest.mark.unit
class TestConfigureLogging:
    def read_records(self, path):
        return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]

    def test_json_file_output_with_context(self, tmp_path):
        path = tmp_path / "logs" / "app.log"
        configure_logging(
            log_level="DEBUG",
            file_path=path,
            console_enabled=False,
            capture_warnings=False,
            service_name="pagination-tests",
        )
        set_log_context(request_id="req-1")

        logging.getLogger("keyset_service.test.config").info("hello", extra={"table": "users"})
        shutdown()

        (record,) = self.read_records(path)
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["service"] == "pagination-tests"
        assert record["request_id"] == "req-1"
        assert record["table"] == "users"

    def test_level_filters_records(self, tmp_path):
        path = tmp_path / "app.log"
        configure_logging(
            log_level="WARNING",
            file_path=path,
            console_enabled=False,
            capture_warnings=False,
        )

        logger = logging.getLogger("keyset_service.test.config")
        logger.info("dropped")
        logger.warning("kept")
        shutdown()

        assert [record["message"] for record in self.read_records(path)] == ["kept"]

    def test_text_format(self, tmp_path):
        path = tmp_path / "app.log"
        configure_logging(file_path=path, json_logs=False, console_enabled=False, capture_warnings=False)

        logging.getLogger("keyset_service.test.config").error("plain")
        shutdown()

        line = path.read_text(encoding="utf-8").strip()
        assert line.endswith(" - ERROR - keyset_service.test.config - plain")

    def test_reconfigure_replaces_handler(self, tmp_path):
        configure_logging(file_path=tmp_path / "a.log", console_enabled=False, capture_warnings=False)
        configure_logging(file_path=tmp_path / "b.log", console_enabled=False, capture_warnings=False)

        queue_handlers = [
            handler
            for handler in logging.getLogger().handlers
            if isinstance(handler, QueueHandler)
        ]
        assert len(queue_handlers) == 1

    def test_shutdown_detaches_handler(self, tmp_path):
        configure_logging(file_path=tmp_path / "a.log", console_enabled=False, capture_warnings=False)

        shutdown()

        assert logging_config._queue_handler is None
        assert logging_config._listener is None

    def test_setup_logging_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setattr(logging_config, "_LOGGING_INITIALIZED", False)
        path = tmp_path / "app.log"
        settings = LoggingSettings(log_file=str(path), console_enabled=False)

        setup_logging(settings, capture_warnings=False)
        setup_logging(LoggingSettings(level="ERROR"))
        logging.getLogger("keyset_service.test.config").info("from settings")
        shutdown()

        assert [record["message"] for record in self.read_records(path)] == ["from settings"]
