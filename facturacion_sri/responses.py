"""JSON response helpers shared by the HTTP handlers."""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from typing import Any

from werkzeug.wrappers import Response

_CONTENT_TYPE = "application/json"

# Characters escaped in JSON text so it can be embedded safely in HTML.
_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _default(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"no se puede serializar {type(value).__name__} a JSON")


def _encode_json(data: Any) -> str:
    text = json.dumps(data, ensure_ascii=False, separators=(",", ":"), default=_default)
    for char, escaped in _HTML_ESCAPES:
        text = text.replace(char, escaped)
    return text + "\n"


def write_json_response(status: int, data: Any) -> Response:
    """Build a JSON response; a body of None yields an empty body."""
    body = "" if data is None else _encode_json(data)
    return Response(body, status=status, content_type=_CONTENT_TYPE)


def write_error_response(status: int, message: str) -> Response:
    """Build the standard JSON error response."""
    return write_json_response(
        status,
        {"error": True, "message": message, "status": status},
    )