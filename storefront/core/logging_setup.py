from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from storefront.core.config import LOG_LEVEL
from storefront.core.request_context import get_request_id, get_tenant_id, get_user_id

# Credentials that must never reach the log stream: bearer tokens and key=value secrets.
_REDACTIONS = (
    re.compile(r"(bearer\s+)([A-Za-z0-9\-_.=]+)", re.IGNORECASE),
    re.compile(r"((?:access_token|token|password|secret)[\"']?\s*[:=]\s*[\"']?)([^\s\"',}]+)", re.IGNORECASE),
)

# Attributes passed through ``extra=`` that are copied into the JSON line.
_PASSTHROUGH = ("endpoint", "method", "status_code", "duration_ms", "order_id", "event")


def redact(text: str) -> str:
    for pattern in _REDACTIONS:
        text = pattern.sub(r"\1***", text)
    return text


class JsonFormatter(logging.Formatter):
    """One JSON object per line, tagged with the current request, tenant and user."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
            "request_id": getattr(record, "request_id", None) or get_request_id(),
            "tenant_id": getattr(record, "tenant_id", None) or get_tenant_id(),
            "user_id": getattr(record, "user_id", None) or get_user_id(),
        }
        line.update(
            {name: getattr(record, name) for name in _PASSTHROUGH if getattr(record, name, None) is not None}
        )
        if record.exc_info:
            line["exc_info"] = redact(self.formatException(record.exc_info))
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: str | None = None) -> None:
    """Route every logger, uvicorn's included, through a single JSON stream handler."""
    level_name = (level or LOG_LEVEL).upper()
    stream = logging.StreamHandler()
    stream.setFormatter(JsonFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(stream)
    root.setLevel(level_name)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers = []
        uvicorn_logger.propagate = True
        uvicorn_logger.setLevel(level_name)
