"""
signalbt -- Shared utilities.

Provides:
  - Run ID generation for tracing a backtest through the logs
  - One-line run event logging (run ID, run name, key-value fields)
"""

import logging
import uuid
from typing import Any


def generate_run_id() -> str:
    """Return an 8-character hex ID identifying one backtest run."""
    return uuid.uuid4().hex[:8]


def _format_field(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    if isinstance(value, BaseException):
        return f"{type(value).__name__}({value})"
    return str(value)


def log_run_event(
    logger: logging.Logger,
    level: int,
    run_id: str,
    run_name: str,
    message: str,
    **fields: Any,
) -> None:
    """Log *message* for one run, followed by its non-None *fields*.

    Example output::

        [abc12345] zero_cross[close]: Run finished | bars=250 trades=3 net_pnl=12.5
    """
    if not logger.isEnabledFor(level):
        return
    kv = " ".join(f"{k}={_format_field(v)}" for k, v in fields.items() if v is not None)
    if kv:
        logger.log(level, "[%s] %s: %s | %s", run_id, run_name, message, kv)
    else:
        logger.log(level, "[%s] %s: %s", run_id, run_name, message)
