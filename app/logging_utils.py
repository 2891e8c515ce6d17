"""
Structured logging helpers for source fetch runs.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.execution_ledger import ExecutionStep


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def log_step(logger: logging.Logger, step: ExecutionStep, **fields: Any) -> None:
    """
    Emit a ledger step transition, at WARNING level for errors.
    """

    level = logging.WARNING if step.status.value == "error" else logging.INFO
    log_event(
        logger,
        level,
        f"source_fetch.{step.action}",
        step=step.step,
        status=step.status.value,
        message=step.message,
        **fields,
    )
