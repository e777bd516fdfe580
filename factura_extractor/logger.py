from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

_EXTRA_KEYS: tuple[str, ...] = (
    "document_id",
    "stage",
    "latency_ms",
    "outcome",
    "confidence",
    "page",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in _EXTRA_KEYS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if root.handlers:
        for handler in root.handlers:
            handler.setFormatter(JsonFormatter())
        return
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.addHandler(handler)


def log_document_event(
    logger: logging.Logger,
    level: int,
    message: str,
    *,
    document_id: str,
    stage: str | None = None,
    latency_ms: int | None = None,
    outcome: str | None = None,
    confidence: int | None = None,
    page: int | None = None,
) -> None:
    extra: dict[str, Any] = {"document_id": document_id}
    if stage is not None:
        extra["stage"] = stage
    if latency_ms is not None:
        extra["latency_ms"] = latency_ms
    if outcome is not None:
        extra["outcome"] = outcome
    if confidence is not None:
        extra["confidence"] = confidence
    if page is not None:
        extra["page"] = page
    logger.log(level, message, extra=extra)
