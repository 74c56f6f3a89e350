from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import settings
from .middleware.request_id import get_request_id

# keys services pass through `extra=` that belong in the JSON line
EXTRA_KEYS = (
    "action",
    "inspection_id",
    "property_id",
    "field_agent_id",
    "user_id",
    "method",
    "path",
    "status_code",
    "latency_ms",
)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, tagged with env and the current request id."""

    def format(self, record: logging.LogRecord) -> str:
        out: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "env": settings.app_env,
            "msg": record.getMessage(),
        }

        rid = getattr(record, "request_id", None) or get_request_id()
        if rid:
            out["request_id"] = rid

        out.update({k: getattr(record, k) for k in EXTRA_KEYS if hasattr(record, k)})

        if record.exc_info:
            out["exc"] = self.formatException(record.exc_info)

        return json.dumps(out, ensure_ascii=False, default=str)


def configure_logging(level: str | None = None) -> None:
    lvl = (level or settings.log_level or "INFO").upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())

    # replace, not append: create_app() may run more than once per process
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(lvl)

    logging.getLogger("inspectiondesk").setLevel(lvl)
    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
