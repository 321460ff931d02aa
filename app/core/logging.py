"""Logging configuration for the grading service.

Two output formats share the same records:

  _ContainerFormatter — human-readable, single-line, for local dev.

  _JsonFormatter — one JSON object per line, for production log
    aggregation.  Context fields (request id, submission under grading)
    become top-level keys so they can be filtered without regexes:

      {"level": "WARNING", "submission_id": "...", "message": "..."}

    Set LOG_JSON=true in production to switch to JSON output.

Grading code runs inside ``bind_submission(...)`` so that every line it
emits, from any module, carries the submission, exercise and submitter
ids.  The values live in ContextVars, which stay correct when several
submissions are graded concurrently on one event loop.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

submission_id_var: ContextVar[str | None] = ContextVar("submission_id", default=None)
exercise_id_var: ContextVar[str | None] = ContextVar("exercise_id", default=None)
submitter_id_var: ContextVar[str | None] = ContextVar("submitter_id", default=None)


@contextmanager
def bind_submission(
    submission_id: object, exercise_id: object, submitter_id: object
) -> Iterator[None]:
    """Attach the submission being processed to every log record in scope."""
    tokens = (
        submission_id_var.set(str(submission_id)),
        exercise_id_var.set(str(exercise_id)),
        submitter_id_var.set(str(submitter_id)),
    )
    try:
        yield
    finally:
        submitter_id_var.reset(tokens[2])
        exercise_id_var.reset(tokens[1])
        submission_id_var.reset(tokens[0])


class _GradingContextFilter(logging.Filter):
    """Copy the bound submission ids onto each LogRecord.

    Installed on the handler (not the root logger) because logger-level
    filters are skipped for records propagated from child loggers.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for name, var in (
            ("submission_id", submission_id_var),
            ("exercise_id", exercise_id_var),
            ("submitter_id", submitter_id_var),
        ):
            if getattr(record, name, None) is None:
                setattr(record, name, var.get())
        return True


class _ContainerFormatter(logging.Formatter):
    """Single-line formatter tuned for container stdout.

    - Always: ISO-8601 timestamp, level, logger name, message
    - WARNING+: appends [filename:lineno]
    - Submission context, when bound, is appended as ``sub=<id>``
    """

    _BASE_FMT = "%(asctime)s %(levelname)-8s %(name)s  %(message)s"
    _LOC_SUFFIX = "  [%(filename)s:%(lineno)d]"

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        base = super().formatTime(record, datefmt)
        ms = int(record.msecs)
        # Insert .NNN before the timezone offset (last 5 chars: +0000)
        return f"{base[:-5]}.{ms:03d}{base[-5:]}"

    def format(self, record: logging.LogRecord) -> str:
        if record.levelno >= logging.WARNING:
            self._style._fmt = self._BASE_FMT + self._LOC_SUFFIX
        else:
            self._style._fmt = self._BASE_FMT
        line = super().format(record)
        submission_id = getattr(record, "submission_id", None)
        if submission_id:
            line = f"{line}  sub={submission_id}"
        return line


class _JsonFormatter(logging.Formatter):
    """JSON-lines formatter for machine-parseable log output."""

    # Fields the request middleware and the grading context may attach.
    _CONTEXT_FIELDS = (
        "request_id",
        "method",
        "path",
        "status_code",
        "duration_ms",
        "submission_id",
        "exercise_id",
        "submitter_id",
    )

    def __init__(self) -> None:
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S%z")

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, object] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in self._CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def setup_logging(level_name: str, *, json_format: bool = False) -> None:
    """Configure the root logger for container environments.

    Args:
        level_name: Log level string (debug/info/warning/error); unknown
                    names fall back to INFO.
        json_format: If True, emit JSON lines. If False, human-readable.
    """
    level = getattr(logging, level_name.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_JsonFormatter() if json_format else _ContainerFormatter())
    handler.addFilter(_GradingContextFilter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    # Keep third-party loggers from flooding at DEBUG
    for name in ("uvicorn", "uvicorn.access", "uvicorn.error", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
