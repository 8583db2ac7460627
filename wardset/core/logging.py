"""
Structured logging setup.

In production (LOG_JSON=true) all log records are emitted as single-line
JSON objects compatible with Datadog, Loki, and CloudWatch Logs Insights.

In development (LOG_JSON=false) logs are human-readable text.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries; anything else came in via `extra={}`.
_RESERVED_ATTRS = frozenset({
    "args", "asctime", "created", "exc_info", "exc_text",
    "filename", "funcName", "levelname", "levelno", "lineno",
    "message", "module", "msecs", "msg", "name", "pathname",
    "process", "processName", "relativeCreated", "stack_info",
    "taskName", "thread", "threadName",
})


class JsonFormatter(logging.Formatter):
    """Emit each log record as a JSON line tagged with the service name.

    Clustering summaries carry their run statistics (`n_items`,
    `num_clusters`, `elapsed_ms`, ...) as `extra={}` fields, which land as
    top-level keys next to `msg`.
    """

    def __init__(self, service: str = "wardset-api") -> None:
        super().__init__()
        self.service = service

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            log_obj["exc"] = self.formatException(record.exc_info)
        if record.stack_info:
            log_obj["stack"] = self.formatStack(record.stack_info)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_obj[key] = value
        return json.dumps(log_obj, default=str)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = True,
    service: str = "wardset-api",
) -> None:
    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JsonFormatter(service))
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)

    # Quieten per-request access lines; request outcomes are logged by the service.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
