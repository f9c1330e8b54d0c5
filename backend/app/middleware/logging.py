from __future__ import annotations

import logging
import re
import time
from collections.abc import Awaitable, Callable
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..metrics import REQUEST_COUNT, REQUEST_ERRORS, REQUEST_LATENCY

REQUEST_ID_HEADER = "X-Request-ID"
_REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One structured log line and one set of Prometheus samples per request.

    An incoming ``X-Request-ID`` is reused when it looks sane so traces can be
    joined with the frontend; otherwise a fresh uuid is issued.
    """

    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)
        self._logger = logging.getLogger("zenjournal.request")
        if self._logger.level == logging.NOTSET:
            self._logger.setLevel(logging.INFO)

    async def dispatch(  # type: ignore[override]
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        start = time.perf_counter()
        request_id = _incoming_request_id(request) or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            self._record(request, request_id, 500, start, failed=True)
            raise

        self._record(request, request_id, response.status_code, start)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _record(
        self,
        request: Request,
        request_id: str,
        status: int,
        start: float,
        *,
        failed: bool = False,
    ) -> None:
        duration_ms = (time.perf_counter() - start) * 1000
        path_template = _resolve_path_template(request)
        _observe_metrics(request.method, path_template, status, duration_ms)

        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self._logger.log(
            level,
            "request error" if failed else "request complete",
            extra={
                "request_id": request_id,
                "path": path_template,
                "method": request.method,
                "status": status,
                "duration_ms": round(duration_ms, 3),
                "user": getattr(request.state, "telemetry_user", None),
            },
            exc_info=failed,
        )


def _incoming_request_id(request: Request) -> str | None:
    value = request.headers.get(REQUEST_ID_HEADER)
    if value and _REQUEST_ID_PATTERN.match(value):
        return value
    return None


def _resolve_path_template(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None and hasattr(route, "path"):
        return str(route.path)
    return request.url.path


def _observe_metrics(method: str, path: str, status: int, duration_ms: float) -> None:
    status_str = str(status)
    REQUEST_COUNT.labels(method=method, path=path, status=status_str).inc()
    REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
    if status >= 500:
        REQUEST_ERRORS.labels(method=method, path=path, status=status_str).inc()
