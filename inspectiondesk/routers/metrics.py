from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from ..services.runtime_metrics import METRICS

router = APIRouter(prefix="/metrics", tags=["ops"])


@router.get("", response_class=PlainTextResponse)
def metrics():
    return METRICS.render_text()
