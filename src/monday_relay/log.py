"""
Logging setup and one-line JSON event records.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

logger = logging.getLogger("monday_relay")


def configure_logging() -> None:
    level_name = (os.getenv("LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logger.setLevel(level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level)
    if root.level and root.level > level:
        root.setLevel(level)


def request_id(context: Any) -> str | None:
    return getattr(context, "aws_request_id", None)


def log_event(msg: str, *, level: int = logging.INFO, **fields: Any) -> None:
    try:
        rec = {"msg": msg, **fields}
        logger.log(level, json.dumps(rec, ensure_ascii=False, default=str))
    except (TypeError, ValueError):
        # Fallback to plain log
        logger.log(level, "%s | %s", msg, fields)
