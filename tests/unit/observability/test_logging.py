"""Tests for structured logging."""

import json
import logging
import sys

from basechat_cache.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    tenant_id_var,
)


def _record(message: str = "Revalidated tag tenant:acme", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="basechat_cache.cache.tag_index",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "basechat_cache.cache.tag_index"
        assert data["message"] == "Revalidated tag tenant:acme"
        assert "timestamp" in data

    def test_tenant_context(self) -> None:
        """LogContext values are included while active."""
        with LogContext(tenant_id="acme", request_id="req-1"):
            data = json.loads(JsonFormatter().format(_record()))

        assert data["tenant_id"] == "acme"
        assert data["request_id"] == "req-1"
        assert tenant_id_var.get() == ""

    def test_extra_fields(self) -> None:
        data = json.loads(JsonFormatter().format(_record(tag="tenant:acme", deleted=3)))

        assert data["tag"] == "tenant:acme"
        assert data["deleted"] == 3

    def test_unserializable_extra_is_stringified(self) -> None:
        data = json.loads(JsonFormatter().format(_record(client=object())))

        assert data["client"].startswith("<object")

    def test_exception_info(self) -> None:
        try:
            raise ConnectionError("refused")
        except ConnectionError:
            record = _record()
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert data["exception"]["type"] == "ConnectionError"
        assert data["exception"]["message"] == "refused"


class TestConsoleFormatter:
    def test_format(self) -> None:
        with LogContext(tenant_id="acme"):
            line = ConsoleFormatter(use_colors=False).format(_record())

        assert "| INFO     |" in line
        assert "Revalidated tag tenant:acme" in line
        assert "tenant=acme" in line


class TestConfigureLogging:
    def test_installs_single_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=True, level="DEBUG")
            configure_logging(json_format=False, level="WARNING")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
