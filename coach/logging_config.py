from __future__ import annotations

import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional
from uuid import uuid4

from coach.config import get_settings

# Correlates every log line of one plan generation or one sync run
_run_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)

CONTEXT_PREFIX = "ctx_"


def get_run_id() -> Optional[str]:
    return _run_id_var.get()


def new_run_id() -> str:
    return uuid4().hex[:12]


@contextmanager
def run_context(run_id: Optional[str] = None) -> Iterator[str]:
    """Tag log records emitted inside the block with a run id."""
    value = run_id or new_run_id()
    token = _run_id_var.set(value)
    try:
        yield value
    finally:
        _run_id_var.reset(token)


class JSONFormatter(logging.Formatter):
    """One JSON object per record; ``ctx_*`` extras land under ``context`` without the prefix."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        run_id = get_run_id()
        if run_id:
            log_entry["run_id"] = run_id
        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }
        context = {
            key[len(CONTEXT_PREFIX):]: value
            for key, value in record.__dict__.items()
            if key.startswith(CONTEXT_PREFIX)
        }
        if context:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str, separators=(",", ":"))


def setup_logging(level: Optional[str] = None) -> None:
    """Send JSON logs to stdout at ``level`` (LOG_LEVEL / env profile when omitted).

    Leaves an already configured root logger alone.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    level = level or get_settings().log_level
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Per-request lines from the Strava client
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
