"""Unit tests for JSON formatter."""

import json
import logging
import sys

import pytest

from fileserver.bootstrap.logging_setup import JsonFormatter


@pytest.fixture(name="json_formatter")
def json_formatter_fixture():
    """Create a JSON formatter instance."""
    return JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")


def _record(msg="Request handled", level=logging.INFO, exc_info=None, **extra):
    record = logging.LogRecord(
        name="fileserver.access",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_basic_fields(json_formatter):
    output = json_formatter.format(_record(correlation_id="cid", component="access"))
    log_data = json.loads(output)

    assert log_data["level"] == "INFO"
    assert log_data["correlation_id"] == "cid"
    assert log_data["component"] == "access"
    assert log_data["message"] == "Request handled"
    assert "timestamp" in log_data


def test_json_formatter_defaults_missing_context(json_formatter):
    log_data = json.loads(json_formatter.format(_record()))

    assert log_data["correlation_id"] == "-"
    assert log_data["component"] == "unknown"
    assert "event" not in log_data


def test_json_formatter_includes_access_fields(json_formatter):
    record = _record(
        event="request_complete",
        method="GET",
        route="/docs/a.txt",
        status_code=200,
        duration_ms=1.25,
    )

    log_data = json.loads(json_formatter.format(record))

    assert log_data["event"] == "request_complete"
    assert log_data["method"] == "GET"
    assert log_data["route"] == "/docs/a.txt"
    assert log_data["status_code"] == 200
    assert log_data["duration_ms"] == 1.25


def test_json_formatter_redacts_sensitive_strings(json_formatter):
    log_data = json.loads(json_formatter.format(_record(route="/token=abc")))

    assert log_data["route"] == "[REDACTED]"


def test_json_formatter_keeps_request_bodies_verbatim(json_formatter):
    log_data = json.loads(json_formatter.format(_record(body="password=hunter2")))

    assert log_data["body"] == "password=hunter2"


def test_json_formatter_ignores_unknown_attributes(json_formatter):
    log_data = json.loads(json_formatter.format(_record(unrelated="value")))

    assert "unrelated" not in log_data


def test_json_formatter_stable_key_ordering(json_formatter):
    record = _record(event="e", client="127.0.0.1:1", correlation_id="c")

    output1 = json_formatter.format(record)
    output2 = json_formatter.format(record)

    assert output1 == output2
    keys = list(json.loads(output1).keys())
    assert keys == sorted(keys)


def test_json_formatter_with_exception(json_formatter):
    try:
        raise ValueError("Test error")
    except ValueError:
        record = _record(level=logging.ERROR, exc_info=sys.exc_info())

    log_data = json.loads(json_formatter.format(record))

    assert "ValueError: Test error" in log_data["exception"]
