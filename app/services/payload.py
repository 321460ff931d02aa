"""Opaque submission/grading payloads and attachment names.

Payloads are arbitrary JSON documents stored as text.  They are not
interpreted here beyond pulling an error message out of grading data.
"""

from __future__ import annotations

import json
import logging
import string
from typing import Any

logger = logging.getLogger(__name__)

_SAFE_FILENAME_CHARS = frozenset(string.ascii_letters + string.digits + "._-")
_MAX_FILENAME_INPUT = 80


def encode_payload(data: Any) -> str | None:
    """JSON text for a payload; None for no payload or one JSON cannot hold."""
    if data is None:
        return None
    try:
        return json.dumps(data)
    except (TypeError, ValueError):
        logger.warning("Dropping payload of type %s: not JSON-encodable", type(data).__name__)
        return None


def decode_payload(raw: str | None) -> Any:
    """Decoded JSON document, the raw text if it is not JSON, None if empty."""
    if raw is None or raw == "":
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def grading_data_errors(grading_data: Any) -> str:
    """Error text reported by the grader inside grading_data, or "".

    The grader nests its own document under "grading_data", either as an
    object or as JSON text.
    """
    if not isinstance(grading_data, dict):
        return ""
    inner = grading_data.get("grading_data")
    if not inner:
        return ""
    if isinstance(inner, str):
        inner = decode_payload(inner)
    if not isinstance(inner, dict):
        return ""
    errors = inner.get("errors")
    if not errors:
        return ""
    return errors if isinstance(errors, str) else json.dumps(errors)


def safe_file_name(filename: str) -> str:
    safe = "".join(c for c in filename[:_MAX_FILENAME_INPUT] if c in _SAFE_FILENAME_CHARS)
    if not safe:
        return "file"
    if safe[0] == "-":
        return "_" + safe[1:]
    return safe
