from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .logging_config import configure_logging
from .middleware.request_id import RequestIDMiddleware
from .middleware.structured_logging import StructuredLoggingMiddleware
from .routers.admin_inspections import router as admin_inspections_router
from .routers.field_agent_inspections import router as field_agent_inspections_router
from .routers.field_agents import router as field_agents_router
from .routers.health import router as health_router
from .routers.metrics import router as metrics_router
from .services.runtime_metrics import METRICS

API_PREFIX = "/api"

log = logging.getLogger("inspectiondesk.api")


def _cors_origins() -> list[str]:
    val = settings.cors_allow_origins
    if isinstance(val, str):
        v = val.strip()
        return ["*"] if v == "*" else [x.strip() for x in v.split(",") if x.strip()]
    if isinstance(val, list) and val:
        return val
    return ["*"]


def _error_body(message: str, details=None) -> dict:
    body = {"error": message}
    if details is not None:
        body["details"] = jsonable_encoder(details)
    return body


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code >= 500:
        METRICS.inc("http_5xx")
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), getattr(exc, "details", None)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=_error_body("Invalid request", exc.errors()))


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    METRICS.inc("http_5xx")
    log.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=_error_body("internal error"))


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="InspectionDesk", version=settings.app_version)

    # added last runs first: StructuredLogging wraps RequestID
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(StructuredLoggingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(Exception, _unhandled_error)

    # Ops
    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(metrics_router, prefix=API_PREFIX)

    # Admin
    app.include_router(admin_inspections_router, prefix=API_PREFIX)
    app.include_router(field_agents_router, prefix=API_PREFIX)

    # Field agents
    app.include_router(field_agent_inspections_router, prefix=API_PREFIX)

    return app


app = create_app()
