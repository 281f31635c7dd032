import io
import json
import logging

import structlog

from configuration.logging_config import configure_logging, filter_sensitive_data, resolve_log_level


def test_resolve_log_level_accepts_names_and_ints() -> None:
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level(" WARNING ") == logging.WARNING
    assert resolve_log_level(logging.ERROR) == logging.ERROR
    assert resolve_log_level("nonsense") == logging.INFO
    assert resolve_log_level(None) == logging.INFO


def test_filter_sensitive_data_masks_known_keys() -> None:
    event = {"event": "x", "token": "abc", "source_text": "class A {}", "path": "a.java"}
    out = filter_sensitive_data(None, "info", dict(event))
    assert out["token"] == "[FILTERED]"
    assert out["source_text"] == "[FILTERED]"
    assert out["path"] == "a.java"


def test_configure_logging_emits_json_lines() -> None:
    stream = io.StringIO()
    configure_logging("INFO", stream=stream, force_reconfigure=True)
    log = structlog.get_logger("tests.logging")

    log.info("analyze.start", project_root="/tmp/p", token="secret-value")
    log.debug("hidden.event")

    lines = [line for line in stream.getvalue().splitlines() if line.strip()]
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "analyze.start"
    assert record["level"] == "info"
    assert record["logger"] == "tests.logging"
    assert record["token"] == "[FILTERED]"
    assert "timestamp" in record


def test_configure_logging_is_idempotent_without_force() -> None:
    first = io.StringIO()
    second = io.StringIO()
    configure_logging("INFO", stream=first, force_reconfigure=True)
    configure_logging("INFO", stream=second)

    structlog.get_logger("tests.logging").warning("still.first")

    assert "still.first" in first.getvalue()
    assert second.getvalue() == ""
