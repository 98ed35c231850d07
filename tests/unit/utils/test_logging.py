"""Unit tests for logging infrastructure."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from floorscan.utils.logging import (
    ContextFormatter,
    ScanIdFilter,
    configure_logging,
    get_scan_id,
    reset_scan_id,
    set_scan_id,
)


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(message: str = "hello", **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("floorscan.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestScanIdFilter:
    """Test scan id injection."""

    def test_placeholder_without_scan(self) -> None:
        record = _record()

        assert ScanIdFilter().filter(record)
        assert record.scan_id == "-"  # pyright: ignore[reportAttributeAccessIssue]

    def test_uses_current_scan_id(self) -> None:
        token = set_scan_id("abc12345")
        try:
            record = _record()
            _ = ScanIdFilter().filter(record)
            assert record.scan_id == "abc12345"  # pyright: ignore[reportAttributeAccessIssue]
        finally:
            reset_scan_id(token)

        assert get_scan_id() is None


class TestContextFormatter:
    """Test structured context rendering."""

    def test_appends_extra_fields_sorted(self) -> None:
        formatter = ContextFormatter("%(message)s")

        assert formatter.format(_record("Batch done", workers=4, batch=1)) == "Batch done | batch=1 workers=4"

    def test_plain_message_without_extra(self) -> None:
        assert ContextFormatter("%(message)s").format(_record("plain")) == "plain"


class TestConfigureLogging:
    """Test handler setup."""

    def test_sets_level_and_console_handler(self) -> None:
        configure_logging(log_level="debug")

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_writes_to_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "scan.log"
        configure_logging(log_level="INFO", log_file=log_file, enable_console=False)

        token = set_scan_id("feedbeef")
        try:
            logging.getLogger("floorscan.test").info("Scan complete", extra={"entries": 3})
        finally:
            reset_scan_id(token)
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text()
        assert "[feedbeef] - Scan complete | entries=3" in content
