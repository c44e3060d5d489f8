"""
Structured logging helpers for scrape runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def error_fields(exc: BaseException) -> dict[str, Any]:
    """
    Standard log fields describing an exception.
    """

    return {
        "error": str(exc),
        "error_kind": getattr(exc, "kind", type(exc).__name__),
    }
