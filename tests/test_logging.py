import json
import logging
import sys

from ceksenet.core.logging import JsonFormatter, setup_logging


def _record(msg, *args, exc_info=None):
    return logging.LogRecord("ceksenet.test", logging.WARNING, __file__, 1, msg, args, exc_info)


def test_json_formatter_renders_message_and_level():
    line = JsonFormatter().format(_record("Evrak %s silindi", "CEK-1"))

    entry = json.loads(line)
    assert entry["message"] == "Evrak CEK-1 silindi"
    assert entry["level"] == "WARNING"
    assert entry["logger"] == "ceksenet.test"
    assert "exception" not in entry


def test_json_formatter_includes_traceback():
    try:
        raise RuntimeError("patladı")
    except RuntimeError:
        record = _record("hata", exc_info=sys.exc_info())

    entry = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: patladı" in entry["exception"]


def test_setup_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("debug", "json")
        setup_logging("debug", "json")

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
