"""Structured event log for quick and deep assessments.

Every event goes to the console and, unless ``ENABLE_FILE_LOGS`` is off, to
two rotating files: one JSON object per line (``LOG_FILE``) and a readable
twin (``*-human.log``). Fallback routing is logged at WARNING so degraded
sessions stand out.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import os
import sys
import time
import uuid
from typing import Any, Dict

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ENABLE_FILE_LOGS = os.getenv("ENABLE_FILE_LOGS", "1") in ("1", "true", "True")
LOG_FILE = os.getenv("LOG_FILE", "logs/assessment.log")
LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", "5242880"))
LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "5"))

HUMAN_FORMAT = "[%(asctime)s] %(levelname)s %(name)s :: %(message)s"
HUMAN_DATEFMT = "%Y-%m-%d %H:%M:%S"
SUMMARY_KEYS = ("node", "question_id", "decision", "source", "confidence", "action", "reason", "ms", "outcome")

_logger = logging.getLogger("assessment.events")
_logger.setLevel(LOG_LEVEL)
_logger.propagate = False


class _Channel(logging.Filter):
    """Route a record to the JSON sink or the human sinks."""

    def __init__(self, json_lines: bool) -> None:
        super().__init__()
        self.json_lines = json_lines

    def filter(self, record: logging.LogRecord) -> bool:
        return getattr(record, "is_json", False) is self.json_lines


def _rotating(path: str, formatter: logging.Formatter, json_lines: bool) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT)
    handler.setLevel(LOG_LEVEL)
    handler.setFormatter(formatter)
    handler.addFilter(_Channel(json_lines))
    return handler


def human_log_path(path: str) -> str:
    stem = path[: -len(".log")] if path.endswith(".log") else path
    return f"{stem}-human.log"


def _ensure_handlers() -> None:
    if _logger.handlers:
        return
    readable = logging.Formatter(HUMAN_FORMAT, datefmt=HUMAN_DATEFMT)

    console = logging.StreamHandler(stream=sys.stdout)
    console.setLevel(LOG_LEVEL)
    console.setFormatter(readable)
    console.addFilter(_Channel(False))
    _logger.addHandler(console)

    if not ENABLE_FILE_LOGS:
        return
    directory = os.path.dirname(LOG_FILE)
    if directory:
        os.makedirs(directory, exist_ok=True)
    _logger.addHandler(_rotating(LOG_FILE, logging.Formatter("%(message)s"), True))
    _logger.addHandler(_rotating(human_log_path(LOG_FILE), readable, False))


def session_mode(session_id: str) -> str:
    return "deep" if session_id.startswith("deep-") else "quick"


def describe(event: Dict[str, Any]) -> str:
    """One-line summary: mode, session, kind and the fields worth scanning."""

    parts = [f"[{event['mode']}]", f"session={event['session_id']}", f"kind={event['kind']}"]
    parts += [f"{key}={event[key]}" for key in SUMMARY_KEYS if event.get(key) is not None]
    return " ".join(parts)


def log_event(kind: str, session_id: str, **fields: Any) -> None:
    """Record one orchestration event on every configured sink."""

    _ensure_handlers()
    event: Dict[str, Any] = {
        "ts": time.time(),
        "trace": uuid.uuid4().hex,
        "kind": kind,
        "session_id": session_id,
        "mode": session_mode(session_id),
        **fields,
    }
    source = str(fields.get("source") or "")
    level = logging.WARNING if source.startswith("fallback") else logging.INFO
    _logger.log(level, describe(event), extra={"is_json": False})
    if ENABLE_FILE_LOGS:
        _logger.log(level, json.dumps(event, ensure_ascii=False, default=str), extra={"is_json": True})


__all__ = ["describe", "human_log_path", "log_event", "session_mode"]
