"""Tests for structured logging."""

import json
import logging
import sys
from collections.abc import Iterator

import pytest

from velostore.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    LogContext,
    configure_logging,
    identity_var,
    request_id_var,
)


def make_record(message: str = "Cart created", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="velostore.cart.store",
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
    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "velostore.cart.store"
        assert data["message"] == "Cart created"
        assert "request_id" not in data

    def test_includes_context(self) -> None:
        with LogContext(request_id="req-1", identity="guest:abc"):
            data = json.loads(JsonFormatter().format(make_record()))

        assert data["request_id"] == "req-1"
        assert data["identity"] == "guest:abc"

    def test_extra_fields(self) -> None:
        data = json.loads(JsonFormatter().format(make_record(product_id=7, tags={1, 2})))

        assert data["product_id"] == 7
        assert isinstance(data["tags"], str)

    def test_exception_details(self) -> None:
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert data["exception"]["type"] == "ValueError"
        assert data["exception"]["message"] == "boom"


class TestConsoleFormatter:
    def test_context_suffix(self) -> None:
        formatter = ConsoleFormatter(use_colors=False)
        with LogContext(request_id="0123456789", identity="user:42"):
            line = formatter.format(make_record())

        assert "| INFO     | velostore.cart.store | Cart created" in line
        assert line.endswith("| req=01234567 id=user:42")


class TestLogContext:
    def test_restores_previous_values(self) -> None:
        token = identity_var.set("guest:outer")
        try:
            with LogContext(identity="user:1"):
                assert identity_var.get() == "user:1"
            assert identity_var.get() == "guest:outer"
        finally:
            identity_var.reset(token)

    def test_unknown_keys_are_ignored(self) -> None:
        with LogContext(tenant="acme"):
            assert request_id_var.get() == ""


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def restore_root(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_handler(self) -> None:
        configure_logging(json_format=True, level="debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_console_handler(self) -> None:
        configure_logging(json_format=False, level="WARNING")

        assert isinstance(logging.getLogger().handlers[0].formatter, ConsoleFormatter)
