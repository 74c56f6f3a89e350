from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..config import settings
from ..domain.inspection_states import ACTIVE_NEGOTIATION_STATUSES, AGENT_PENDING_STATUSES
from ..models import InspectionRequest
from .repositories import FieldAgentRepository, InspectionRepository

RECENT_LIMIT = 5


@dataclass(frozen=True)
class Page:
    page: int
    limit: int

    @classmethod
    def of(cls, page: Optional[int], limit: Optional[int]) -> "Page":
        p = max(1, int(page or 1))
        lim = int(limit or settings.page_size_default)
        lim = max(1, min(lim, settings.page_size_max))
        return cls(page=p, limit=lim)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def envelope(self, total: int) -> dict[str, int]:
        return {
            "total": int(total),
            "page": self.page,
            "limit": self.limit,
            "totalPages": int(math.ceil(total / self.limit)) if total else 0,
        }


def _apply_filters(stmt, filters: dict[str, Any]):
    for column, value in filters.items():
        if value is None or value == "":
            continue
        stmt = stmt.where(getattr(InspectionRequest, column) == value)
    return stmt


class InspectionQueries:
    def __init__(self, db: Session, *, inspections: InspectionRepository, agents: FieldAgentRepository) -> None:
        self.db = db
        self.inspections = inspections
        self.agents = agents

    def _paged(self, where: list, filters: dict[str, Any], page: Page) -> tuple[list[InspectionRequest], dict[str, int]]:
        base = _apply_filters(select(InspectionRequest.id).where(*where), filters)
        total = int(self.db.scalar(select(func.count()).select_from(base.subquery())) or 0)

        stmt = _apply_filters(self.inspections.hydrated_select().where(*where), filters)
        rows = self.db.scalars(
            stmt.order_by(InspectionRequest.created_at.desc(), InspectionRequest.id.desc())
            .offset(page.offset)
            .limit(page.limit)
        ).all()
        return list(rows), page.envelope(total)

    # ---- admin ----
    def admin_list(
        self,
        *,
        status: Optional[str] = None,
        stage: Optional[str] = None,
        property_id: Optional[int] = None,
        owner_id: Optional[int] = None,
        is_negotiating: Optional[bool] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> tuple[list[InspectionRequest], dict[str, int]]:
        filters = {
            "status": status,
            "stage": stage,
            "property_id": property_id,
            "owner_id": owner_id,
            "is_negotiating": is_negotiating,
        }
        where = [InspectionRequest.status != "pending_transaction"]
        return self._paged(where, filters, Page.of(page, limit))

    def admin_get(self, inspection_id: int) -> InspectionRequest:
        return self.inspections.must_get(inspection_id)

    def _count(self, *where) -> int:
        return int(self.db.scalar(select(func.count(InspectionRequest.id)).where(*where)) or 0)

    def admin_stats(self) -> dict[str, int]:
        return {
            "totalInspections": self._count(InspectionRequest.status != "pending_transaction"),
            "totalApprovedInspections": self._count(InspectionRequest.status == "inspection_approved"),
            "totalCompletedInspections": self._count(InspectionRequest.status == "completed"),
            "totalCancelledInspections": self._count(InspectionRequest.status == "cancelled"),
            "totalActiveNegotiations": self._count(InspectionRequest.status.in_(ACTIVE_NEGOTIATION_STATUSES)),
        }

    def for_field_agent(
        self, field_agent_user_id: int, *, page: Optional[int] = None, limit: Optional[int] = None
    ) -> tuple[list[InspectionRequest], dict[str, int]]:
        self.agents.must_get_by_user_id(field_agent_user_id)
        ids = self.agents.assigned_inspection_ids(field_agent_user_id)
        where = [InspectionRequest.id.in_(sorted(ids))]
        return self._paged(where, {}, Page.of(page, limit))

    # ---- field agent ----
    def agent_list(
        self,
        field_agent_user_id: int,
        *,
        status: Optional[str] = None,
        inspection_type: Optional[str] = None,
        inspection_mode: Optional[str] = None,
        stage: Optional[str] = None,
        property_id: Optional[int] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> tuple[list[InspectionRequest], dict[str, int]]:
        filters = {
            "status": status,
            "inspection_type": inspection_type,
            "inspection_mode": inspection_mode,
            "stage": stage,
            "property_id": property_id,
        }
        where = [InspectionRequest.assigned_field_agent_id == int(field_agent_user_id)]
        return self._paged(where, filters, Page.of(page, limit))

    def agent_recent(self, field_agent_user_id: int) -> list[InspectionRequest]:
        rows, _ = self._paged(
            [InspectionRequest.assigned_field_agent_id == int(field_agent_user_id)],
            {},
            Page(page=1, limit=RECENT_LIMIT),
        )
        return rows

    def agent_get(self, inspection_id: int, field_agent_user_id: int) -> InspectionRequest:
        return self.inspections.must_get_assigned(inspection_id, field_agent_user_id=field_agent_user_id)

    def agent_stats(self, field_agent_user_id: int) -> dict[str, Any]:
        mine = InspectionRequest.assigned_field_agent_id == int(field_agent_user_id)

        # updated_at - created_at, averaged in Python to stay dialect-neutral
        stamps = self.db.execute(
            select(InspectionRequest.created_at, InspectionRequest.updated_at).where(mine)
        ).all()
        hours = [
            (updated - created).total_seconds() / 3600.0
            for created, updated in stamps
            if created is not None and updated is not None
        ]
        avg = (sum(hours) / len(hours)) if hours else 0.0

        return {
            "totalInspections": self._count(mine),
            "pendingInspections": self._count(mine, InspectionRequest.status.in_(AGENT_PENDING_STATUSES)),
            "completedInspections": self._count(mine, InspectionRequest.status == "completed"),
            "cancelledInspections": self._count(mine, InspectionRequest.status == "cancelled"),
            "averageResponseTimeInHours": round(avg, 2),
        }
