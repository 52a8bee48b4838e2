"""Structured logging — JSON line shape and repeatable setup."""

import json
import logging

from app.infrastructure.observability import JSONFormatter, setup_logging


def _record(**extra):
    record = logging.LogRecord(
        "app.test", logging.WARNING, __file__, 1, "payment rejected", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_json_line_carries_club_context():
    line = json.loads(JSONFormatter().format(
        _record(user_id="u1", error_code="INVALID_PAYMENT", unrelated="x"),
    ))
    assert line["level"] == "WARNING"
    assert line["message"] == "payment rejected"
    assert line["user_id"] == "u1"
    assert line["error_code"] == "INVALID_PAYMENT"
    assert "unrelated" not in line
    assert "path" not in line


def test_setup_logging_does_not_stack_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    try:
        setup_logging("DEBUG", "json")
        setup_logging("INFO", "text")
        ours = [h for h in root.handlers if h.get_name() == "ladtc"]
        assert len(ours) == 1
        assert not isinstance(ours[0].formatter, JSONFormatter)
        assert root.level == logging.INFO
    finally:
        for handler in [h for h in root.handlers if h not in before]:
            root.removeHandler(handler)
        root.setLevel(level)
