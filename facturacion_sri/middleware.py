"""WSGI middleware: CORS headers and request logging."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Iterable, Optional

from werkzeug.wrappers import Response

logger = logging.getLogger(__name__)

WSGIApp = Callable[[dict, Callable[..., Any]], Iterable[bytes]]

CORS_HEADERS = (
    ("Access-Control-Allow-Origin", "*"),
    ("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS"),
    ("Access-Control-Allow-Headers", "Content-Type, Authorization"),
)


def cors_middleware(app: WSGIApp) -> WSGIApp:
    """Add CORS headers to every response and answer OPTIONS preflights directly."""

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        if environ.get("REQUEST_METHOD") == "OPTIONS":
            preflight = Response(b"", status=200, headers=list(CORS_HEADERS))
            return preflight(environ, start_response)

        def start_with_cors(
            status: str, headers: list[tuple[str, str]], exc_info: Optional[Any] = None
        ) -> Any:
            present = {name.lower() for name, _ in headers}
            extra = [(name, value) for name, value in CORS_HEADERS if name.lower() not in present]
            return start_response(status, list(headers) + extra, exc_info)

        return app(environ, start_with_cors)

    return wrapped


def logging_middleware(app: WSGIApp) -> WSGIApp:
    """Log method, path, status code, duration and remote address of each request."""

    def wrapped(environ: dict, start_response: Callable[..., Any]) -> Iterable[bytes]:
        start = time.perf_counter()
        status_code = 200

        def capture(
            status: str, headers: list[tuple[str, str]], exc_info: Optional[Any] = None
        ) -> Any:
            nonlocal status_code
            status_code = int(status.split(" ", 1)[0])
            return start_response(status, headers, exc_info)

        result = app(environ, capture)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.3fms %s",
            environ.get("REQUEST_METHOD", ""),
            environ.get("PATH_INFO", ""),
            status_code,
            duration_ms,
            environ.get("REMOTE_ADDR", ""),
        )
        return result

    return wrapped


def middleware_chain(app: WSGIApp) -> WSGIApp:
    """Apply CORS outermost, then logging, around the application."""
    return cors_middleware(logging_middleware(app))