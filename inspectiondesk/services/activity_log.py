from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..auth import Principal
from ..errors import BadRequest
from ..models import AppUser, InspectionActivityLog

log = logging.getLogger("inspectiondesk.activity")

SENDER_MODEL_BY_ROLE = {
    "admin": "Admin",
    "buyer": "Buyer",
    "seller": "User",
    "field_agent": "User",
}


def _dumps(v: Optional[dict[str, Any]]) -> str:
    return json.dumps(v or {}, sort_keys=True, default=str)


def _loads(s: Optional[str]) -> dict[str, Any]:
    if not s:
        return {}
    try:
        v = json.loads(s)
        return v if isinstance(v, dict) else {}
    except ValueError:
        return {}


@dataclass(frozen=True)
class ActivityLogOut:
    id: int
    inspection_id: int
    property_id: int
    sender_id: Optional[int]
    sender_model: str
    sender_role: str
    sender_name: str
    sender_email: str
    message: str
    status: Optional[str]
    stage: Optional[str]
    meta: dict[str, Any]
    created_at: datetime


class ActivityLogger:
    """
    Append-only inspection trail.

    log() adds + flushes only; the caller commits together with the state
    change it describes, so a rolled-back transition leaves no entry behind.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def log(
        self,
        *,
        inspection_id: int,
        property_id: int,
        sender: Principal,
        message: str,
        status: Optional[str] = None,
        stage: Optional[str] = None,
        meta: Optional[dict[str, Any]] = None,
    ) -> InspectionActivityLog:
        row = InspectionActivityLog(
            inspection_id=int(inspection_id),
            property_id=int(property_id),
            sender_id=int(sender.user_id),
            sender_model=SENDER_MODEL_BY_ROLE.get(sender.role, "User"),
            sender_role=sender.role,
            message=message,
            status=status,
            stage=stage,
            meta_json=_dumps(meta),
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        self.db.flush()
        log.info(
            message,
            extra={"inspection_id": int(inspection_id), "property_id": int(property_id), "user_id": sender.user_id},
        )
        return row

    def list(
        self,
        *,
        inspection_id: Optional[int] = None,
        property_id: Optional[int] = None,
        page: int = 1,
        limit: int = 10,
    ) -> tuple[list[ActivityLogOut], dict[str, int]]:
        if inspection_id is None and property_id is None:
            raise BadRequest("propertyId or inspectionId is required")

        page = max(1, int(page))
        limit = max(1, int(limit))

        q = select(InspectionActivityLog, AppUser).outerjoin(AppUser, AppUser.id == InspectionActivityLog.sender_id)
        count_q = select(func.count(InspectionActivityLog.id))
        if inspection_id is not None:
            q = q.where(InspectionActivityLog.inspection_id == int(inspection_id))
            count_q = count_q.where(InspectionActivityLog.inspection_id == int(inspection_id))
        if property_id is not None:
            q = q.where(InspectionActivityLog.property_id == int(property_id))
            count_q = count_q.where(InspectionActivityLog.property_id == int(property_id))

        total = int(self.db.scalar(count_q) or 0)
        rows = self.db.execute(
            q.order_by(InspectionActivityLog.created_at.desc(), InspectionActivityLog.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()

        out: list[ActivityLogOut] = []
        for entry, sender in rows:
            out.append(
                ActivityLogOut(
                    id=int(entry.id),
                    inspection_id=int(entry.inspection_id),
                    property_id=int(entry.property_id),
                    sender_id=entry.sender_id,
                    sender_model=entry.sender_model,
                    sender_role=entry.sender_role,
                    sender_name=sender.display_name if sender else "Unknown",
                    sender_email=sender.email if sender else "",
                    message=entry.message,
                    status=entry.status,
                    stage=entry.stage,
                    meta=_loads(entry.meta_json),
                    created_at=entry.created_at,
                )
            )

        pagination = {
            "total": total,
            "page": page,
            "limit": limit,
            "totalPages": int(math.ceil(total / limit)) if total else 0,
        }
        return out, pagination
