from __future__ import annotations

import re
import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# caller-supplied ids are echoed back, so keep them to something log-safe
_SAFE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_current: ContextVar[Optional[str]] = ContextVar("inspectiondesk_request_id", default=None)


def get_request_id() -> Optional[str]:
    return _current.get()


def _incoming_id(request: Request) -> Optional[str]:
    rid = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    return rid if _SAFE_ID.match(rid) else None


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id (caller's, or a fresh uuid4) and echoes it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        rid = _incoming_id(request) or uuid.uuid4().hex
        request.state.request_id = rid

        token = _current.set(rid)
        try:
            response = await call_next(request)
        finally:
            _current.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
