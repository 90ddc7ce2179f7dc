# tests/utils/test_logging.py
"""
Tests for sync id context management and logging helpers.
"""

import io
import json
import logging

import pytest

from countervalues.utils.context import (
    clear_sync_id,
    get_sync_id,
    set_sync_id,
    sync_context,
)
from countervalues.utils.logging import (
    NO_SYNC_ID,
    JsonFormatter,
    SyncIdFilter,
    _get_log_level,
    setup_logging,
)


def _record(message: str = "hello") -> logging.LogRecord:
    return logging.LogRecord(
        name="countervalues.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )


class TestSyncIdContext:
    """Tests for sync id context functions."""

    def test_get_returns_none_when_not_set(self):
        clear_sync_id()
        assert get_sync_id() is None

    def test_set_and_get(self):
        set_sync_id("pass-123")
        assert get_sync_id() == "pass-123"
        clear_sync_id()

    def test_context_generates_and_restores(self):
        clear_sync_id()

        with sync_context() as sync_id:
            assert sync_id
            assert get_sync_id() == sync_id

        assert get_sync_id() is None

    def test_context_with_explicit_id(self):
        with sync_context("abc") as sync_id:
            assert sync_id == "abc"


class TestSyncIdFilter:
    """Tests for SyncIdFilter."""

    def test_placeholder_outside_pass(self):
        clear_sync_id()
        record = _record()

        SyncIdFilter().filter(record)

        assert record.sync_id == NO_SYNC_ID

    def test_sync_id_inside_pass(self):
        record = _record()

        with sync_context("abc"):
            SyncIdFilter().filter(record)

        assert record.sync_id == "abc"


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_fields(self):
        record = _record("Failed to fetch daily history")
        record.sync_id = "abc"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "countervalues.test"
        assert entry["sync_id"] == "abc"
        assert entry["message"] == "Failed to fetch daily history"
        assert "extra" not in entry

    def test_extra_fields(self):
        record = _record()
        record.pair = "BTC-USD"

        entry = json.loads(JsonFormatter().format(record))

        assert entry["extra"] == {"pair": "BTC-USD"}


class TestLogLevel:
    """Tests for _get_log_level."""

    def test_case_insensitive(self):
        assert _get_log_level(" debug ") == logging.DEBUG

    def test_invalid(self):
        with pytest.raises(ValueError):
            _get_log_level("LOUD")

    def test_numeric_level(self):
        assert _get_log_level(logging.ERROR) == logging.ERROR


class TestSetupLogging:
    """Tests for setup_logging."""

    @pytest.fixture
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_json_lines_carry_sync_id(self, restore_root):
        stream = io.StringIO()
        setup_logging(level="INFO", log_format="json", stream=stream)

        with sync_context("abc"):
            logging.getLogger("countervalues.test").info("hello")

        entry = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert entry["message"] == "hello"
        assert entry["sync_id"] == "abc"

    def test_noisy_loggers_quieted(self, restore_root):
        setup_logging(level="DEBUG", stream=io.StringIO())

        assert logging.getLogger("httpx").level == logging.WARNING
