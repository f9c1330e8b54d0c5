from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from backend.app.core import config
from backend.app.core.logging import JsonFormatter, configure_logging


@pytest.fixture(autouse=True)
def reset_settings_cache() -> None:
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


def test_configure_logging_creates_handlers(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path: Path,
) -> None:
    log_file = tmp_path / "app.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.chdir(tmp_path)

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    try:
        configure_logging()
        handlers = [
            handler
            for handler in root_logger.handlers
            if isinstance(handler, RotatingFileHandler)
        ]
        assert handlers
        assert Path(handlers[0].baseFilename) == log_file
        assert root_logger.level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

        handler_count = len(root_logger.handlers)
        configure_logging()
        assert len(root_logger.handlers) == handler_count
    finally:
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
        for handler in original_handlers:
            root_logger.addHandler(handler)
        root_logger.setLevel(original_level)


def test_json_formatter_outputs_keys() -> None:
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname=__file__,
        lineno=42,
        msg="hello",
        args=(),
        exc_info=None,
    )
    record.request_id = "req-1"
    output = formatter.format(record)
    payload = json.loads(output)
    assert payload["message"] == "hello"
    assert payload["request_id"] == "req-1"
    assert payload["level"] == "INFO"


def test_json_formatter_merges_extra_fields() -> None:
    formatter = JsonFormatter()
    record = logging.LogRecord(
        name="backend.app.ai.insights",
        level=logging.WARNING,
        pathname=__file__,
        lineno=7,
        msg="AI insight request failed, using fallback: %s",
        args=("timeout",),
        exc_info=None,
    )
    record.user = "abc123"
    record.extra_fields = {"user_id": 5, "model": "gpt-4o-mini"}
    payload = json.loads(formatter.format(record))
    assert payload["message"] == "AI insight request failed, using fallback: timeout"
    assert payload["user"] == "abc123"
    assert payload["user_id"] == 5
    assert payload["model"] == "gpt-4o-mini"
