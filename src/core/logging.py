from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict

# Campi passati via extra={...} che finiscono nel record JSON
EXTRA_WHITELIST = (
    "count",
    "duplicates",
    "updated",
    "pending",
    "block_time",
    "fetch_stats",
    "source",
)

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Una riga JSON per record; gli extra ammessi sono quelli in EXTRA_WHITELIST."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "ts": ts.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update({k: getattr(record, k) for k in EXTRA_WHITELIST if hasattr(record, k)})
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _level_from_env() -> int:
    level = logging.getLevelName(os.getenv("EAGLE_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _formatter_from_env() -> logging.Formatter:
    # EAGLE_LOG_FORMAT=text per l'uso interattivo degli script
    if os.getenv("EAGLE_LOG_FORMAT", "json").strip().lower() == "text":
        return logging.Formatter(TEXT_FORMAT)
    return JsonFormatter()


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_formatter_from_env())
    logger.addHandler(handler)
    logger.setLevel(_level_from_env())
    logger.propagate = False
    return logger
