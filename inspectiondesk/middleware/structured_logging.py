from __future__ import annotations

import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..services.runtime_metrics import METRICS

log = logging.getLogger("inspectiondesk.access")


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Access log: one record per request, rendered as JSON by JsonFormatter.

    Must wrap RequestIDMiddleware (i.e. be added after it) so request.state
    already carries the id when the line is written.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            METRICS.inc("http_requests")
            level = logging.WARNING if status_code >= 500 else logging.INFO
            log.log(
                level,
                "%s %s -> %s",
                request.method,
                request.url.path,
                status_code,
                extra={
                    "request_id": getattr(request.state, "request_id", None),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "latency_ms": round((time.perf_counter() - started) * 1000, 1),
                },
            )
