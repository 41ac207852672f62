import json
import logging

from listing_store.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record():
    return logging.LogRecord("listing_store", logging.INFO, __file__, 10, "hello %s", ("tester",), None)


def test_json_formatter_basic_fields():
    rec = make_record()
    rec.operation = "update"
    rec.request_id = "req-1"

    data = json.loads(JsonFormatter(env="testing", service="svc").format(rec))

    assert data["message"] == "hello tester"
    assert data["level"] == "INFO"
    assert data["service"] == "svc"
    assert data["env"] == "testing"
    assert data["request_id"] == "req-1"
    assert data["operation"] == "update"
    assert "timestamp" in data
    assert "version" in data


def test_json_formatter_skips_standard_attributes():
    data = json.loads(JsonFormatter().format(make_record()))

    assert "args" not in data
    assert "msg" not in data
    assert data["service"] == "listing-store"


def test_json_formatter_non_serializable_extra():
    class Opaque:
        def __repr__(self):
            return "<Opaque>"

    rec = make_record()
    rec.obj = Opaque()

    data = json.loads(JsonFormatter(env="dev").format(rec))
    assert data["obj"] == "<Opaque>"


def test_json_formatter_includes_traceback():
    try:
        raise ValueError("boom")
    except ValueError:
        import sys
        rec = logging.LogRecord("listing_store", logging.ERROR, __file__, 10, "failed", (), sys.exc_info())

    data = json.loads(JsonFormatter().format(rec))
    assert "ValueError: boom" in data["exc_info"]


def test_color_formatter_line():
    rec = make_record()
    rec.request_id = "req-9"

    line = ColorFormatter().format(rec)

    assert "hello tester" in line
    assert "req-9" in line
    assert ColorFormatter.COLOR_CODES["INFO"] in line
