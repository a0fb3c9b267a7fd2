"""Small structured logging helper.

Log lines are single JSON objects so any collector can parse them; the
correlation ID of the current request is attached automatically.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from projection_lab.core.request_context import get_request_id


def configure_logging(level: str = "INFO") -> None:
    """Install a plain message formatter on the root logger and apply ``level``.

    Messages are already JSON, so the formatter adds nothing around them. The
    level is applied even when the root logger already has handlers.
    """

    logging.basicConfig(format="%(message)s")
    logging.getLogger().setLevel(level.upper())


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a single JSON log line with the request correlation ID (if any)."""

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))
