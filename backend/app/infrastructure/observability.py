"""Structured Logging — one JSON line per event for the club API.

Invariants:
    - Every line carries timestamp, level, logger and message
    - Club context passed through `extra=` (actor, path, error code, audit target,
      mail recipient) is copied onto the line when present
    - setup_logging is idempotent: calling it again replaces the handler it
      installed instead of stacking a second one

Design Decisions:
    - Called once from the lifespan with Settings.log_level / Settings.log_format
    - Values that are not JSON-native (datetimes, enums) are rendered with str()
"""

import logging
import json
from datetime import datetime, timezone

CONTEXT_FIELDS = (
    "user_id", "path", "error_code", "action", "target_kind", "target_id",
    "recipient", "queue_size",
)

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_HANDLER_NAME = "ladtc"


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update({
            key: record.__dict__[key]
            for key in CONTEXT_FIELDS
            if record.__dict__.get(key) is not None
        })
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install the club handler on the root logger."""
    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == _HANDLER_NAME]:
        root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT),
    )
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
